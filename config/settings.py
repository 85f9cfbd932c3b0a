"""Application settings: all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises ValueError if ANTHROPIC_API_KEY is missing
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

from radar.feeds import FeedSource

#: Where the collection is written when ``RADAR_OUTPUT`` is not set.
DEFAULT_OUTPUT_PATH = "radar.json"
DEFAULT_TITLE = "China Opportunity Radar"

#: Trusted feeds used when ``RADAR_SOURCES`` is not set.
DEFAULT_SOURCES: tuple[FeedSource, ...] = (
    FeedSource(name="Reuters", url="https://feeds.reuters.com/reuters/worldNews"),
    FeedSource(name="BBC", url="https://feeds.bbci.co.uk/news/world/rss.xml"),
    FeedSource(name="Nikkei Asia", url="https://asia.nikkei.com/rss/feed/nar"),
    FeedSource(name="SCMP", url="https://www.scmp.com/rss/2/feed"),
)


def _sources_from_env() -> list[FeedSource]:
    """Parse ``RADAR_SOURCES`` (a JSON list of ``{"name", "url"}`` objects)."""
    raw = os.environ.get("RADAR_SOURCES", "").strip()
    if not raw:
        return list(DEFAULT_SOURCES)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"RADAR_SOURCES is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise ValueError("RADAR_SOURCES must be a JSON list of {name, url} objects.")

    sources: list[FeedSource] = []
    for item in data:
        if not isinstance(item, dict) or not item.get("name") or not item.get("url"):
            raise ValueError(f"Invalid RADAR_SOURCES entry: {item!r}")
        sources.append(FeedSource(name=str(item["name"]), url=str(item["url"])))
    return sources


@dataclass
class QualityThresholds:
    """Minimum bar a transformer payload must clear to become a record."""

    min_confidence: float = field(
        default_factory=lambda: float(os.environ.get("RADAR_MIN_CONFIDENCE", "0.2"))
    )
    min_summary_chars: int = 30
    min_steps: int = 3


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )

    # ── AI Model ────────────────────────────────────────────────────────────
    #: Model used to turn a news item into an opportunity payload.
    model: str = field(
        default_factory=lambda: os.environ.get("RADAR_MODEL", "claude-haiku-4-5")
    )

    # ── Feeds ───────────────────────────────────────────────────────────────
    sources: list[FeedSource] = field(default_factory=_sources_from_env)
    items_per_source: int = field(
        default_factory=lambda: int(os.environ.get("RADAR_ITEMS_PER_SOURCE", "10"))
    )
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RADAR_FETCH_TIMEOUT", "20"))
    )
    #: Characters of article content sent to the model.
    content_char_limit: int = 6500

    # ── Output ──────────────────────────────────────────────────────────────
    output_path: str = field(
        default_factory=lambda: os.environ.get("RADAR_OUTPUT", DEFAULT_OUTPUT_PATH)
    )
    title: str = field(
        default_factory=lambda: os.environ.get("RADAR_TITLE", DEFAULT_TITLE)
    )
    max_items: int = field(
        default_factory=lambda: int(os.environ.get("RADAR_MAX_ITEMS", "250"))
    )
    #: Fail instead of starting over when the existing file is corrupt.
    strict_load: bool = field(
        default_factory=lambda: os.environ.get("RADAR_STRICT_LOAD", "0") == "1"
    )

    thresholds: QualityThresholds = field(default_factory=QualityThresholds)

    def validate(self) -> None:
        """Raise ``ValueError`` if any required setting is missing or invalid."""
        if not self.anthropic_api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Copy .env.example to .env and add your key."
            )
        if not self.sources:
            raise ValueError("No feed sources configured.")
        if not 0.0 <= self.thresholds.min_confidence <= 1.0:
            raise ValueError(
                f"RADAR_MIN_CONFIDENCE must be between 0 and 1, "
                f"got {self.thresholds.min_confidence}"
            )
