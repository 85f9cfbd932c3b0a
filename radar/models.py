"""
Pydantic models shared across the Opportunity Radar core.

``Opportunity`` is the validated shape of a transformer payload. Its
validators normalise what can be normalised (scores, lists, category) and
reject what the quality gate forbids. Gate thresholds arrive through the
pydantic validation context (see ``radar.quality``).
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

#: Record ids are at most this long.
MAX_ID_LENGTH = 120

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


class Category(str, Enum):
    """Closed set of opportunity labels."""

    PRODUCT_TREND = "Product Trend"
    BUSINESS_MODEL = "Business Model"
    AI_TOOL = "AI Tool"
    CROSS_BORDER = "Cross-border"
    RISK_REGULATION = "Risk/Regulation"


DEFAULT_CATEGORY = Category.PRODUCT_TREND


def make_record_id(url: str) -> str:
    """Derive a record id from a source URL.

    Every non-alphanumeric character becomes ``_`` and the result is cut to
    120 characters. This is not a hash: distinct long URLs sharing a prefix
    collide.

    Examples:
        >>> make_record_id("https://bbc.co.uk/news/1")
        'https___bbc_co_uk_news_1'
    """
    return _NON_ALNUM_RE.sub("_", url or "")[:MAX_ID_LENGTH]


def clamp_score(value: Any, low: float = 0.0, high: float = 10.0) -> float:
    """Coerce *value* to a float inside ``[low, high]``; unparseable → *low*."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return low
    if math.isnan(number):
        return low
    return max(low, min(high, number))


def _string_list(value: Any) -> list[str]:
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _threshold(info: ValidationInfo, name: str, default: float) -> float:
    context = info.context or {}
    return context.get(name, default)


class Opportunity(BaseModel):
    """A transformer payload that passed the quality gate."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    category: Category = DEFAULT_CATEGORY
    summary: str
    opportunity_score: float = 0.0
    risk_score: float = 0.0
    who_is_it_for: list[str] = Field(default_factory=list)
    how_to_start: list[str]
    watch_out: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    confidence: float

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Category:
        if isinstance(value, str):
            wanted = value.strip().casefold()
            for category in Category:
                if category.value.casefold() == wanted:
                    return category
        return DEFAULT_CATEGORY

    @field_validator("summary", mode="before")
    @classmethod
    def _check_summary(cls, value: Any, info: ValidationInfo) -> str:
        if not isinstance(value, str):
            raise ValueError("summary must be a string")
        minimum = int(_threshold(info, "min_summary_chars", 30))
        if len(value) < minimum:
            raise ValueError(f"summary shorter than {minimum} characters")
        return value.strip()

    @field_validator("opportunity_score", "risk_score", mode="before")
    @classmethod
    def _clamp_scores(cls, value: Any) -> float:
        return clamp_score(value)

    @field_validator("who_is_it_for", "watch_out", "keywords", mode="before")
    @classmethod
    def _coerce_optional_list(cls, value: Any) -> list[str]:
        return _string_list(value) if isinstance(value, list) else []

    @field_validator("how_to_start", mode="before")
    @classmethod
    def _check_steps(cls, value: Any, info: ValidationInfo) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("how_to_start must be a list")
        minimum = int(_threshold(info, "min_steps", 3))
        if len(value) < minimum:
            raise ValueError(f"how_to_start needs at least {minimum} steps")
        return _string_list(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _check_confidence(cls, value: Any, info: ValidationInfo) -> float:
        # bool is an int subclass; "true" is not a confidence
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        if math.isnan(value):
            raise ValueError("confidence must be a number")
        minimum = float(_threshold(info, "min_confidence", 0.2))
        if value < minimum:
            raise ValueError(f"confidence below {minimum}")
        return min(float(value), 1.0)


class Record(BaseModel):
    """A persisted opportunity, one per feed entry."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = ""
    title: str = ""
    category: str = DEFAULT_CATEGORY.value
    summary: str = ""
    opportunity_score: float = 0.0
    risk_score: float = 0.0
    who_is_it_for: list[str] = Field(default_factory=list)
    how_to_start: list[str] = Field(default_factory=list)
    watch_out: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    date: str = ""
    source_url: str = Field(default="", alias="sourceUrl")
    sources: list[str] = Field(default_factory=list)

    # Records written by earlier runs hold whatever the model returned, so
    # loading coerces instead of failing the whole collection.

    @field_validator("id", "title", "summary", "date", "source_url", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_stored_category(cls, value: Any) -> str:
        if value is None or value == "":
            return DEFAULT_CATEGORY.value
        return value if isinstance(value, str) else str(value)

    @field_validator("opportunity_score", "risk_score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> float:
        return clamp_score(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return clamp_score(value, high=1.0)

    @field_validator("who_is_it_for", "how_to_start", "watch_out", "keywords", "sources", mode="before")
    @classmethod
    def _coerce_stored_list(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, str) else str(item) for item in value if item is not None]

    @classmethod
    def from_opportunity(
        cls,
        record_id: str,
        opportunity: Opportunity,
        *,
        fallback_title: str,
        date: str,
        source_url: str,
        source_name: str,
    ) -> Record:
        """Build a record from a validated opportunity and its feed entry."""
        return cls(
            id=record_id,
            title=opportunity.title or fallback_title[:MAX_ID_LENGTH],
            category=opportunity.category.value,
            summary=opportunity.summary,
            opportunity_score=opportunity.opportunity_score,
            risk_score=opportunity.risk_score,
            who_is_it_for=opportunity.who_is_it_for,
            how_to_start=opportunity.how_to_start,
            watch_out=opportunity.watch_out,
            keywords=opportunity.keywords,
            confidence=opportunity.confidence,
            date=date,
            source_url=source_url,
            sources=[source_name],
        )


class RadarCollection(BaseModel):
    """The persisted radar document: newest records first."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str
    updated_at: datetime = Field(alias="updatedAt")
    items: list[Record] = Field(default_factory=list)

    def ids(self) -> set[str]:
        """Return the set of record ids already in the collection."""
        return {item.id for item in self.items}
