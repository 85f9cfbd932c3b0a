"""Quality gate for transformer output.

A payload either becomes a typed ``Opportunity`` or a ``Rejection`` listing
why it fell short. Rejections are expected traffic, not errors: callers drop
them without retrying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from pydantic import ValidationError

from radar.models import Opportunity

if TYPE_CHECKING:
    from config.settings import QualityThresholds

logger = logging.getLogger(__name__)


@dataclass
class Rejection:
    """A payload that did not clear the quality gate."""

    reasons: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "; ".join(self.reasons) or "rejected"


def validate_opportunity(
    payload: Any,
    thresholds: QualityThresholds,
) -> Union[Opportunity, Rejection]:
    """Run *payload* through the quality gate.

    Rejects when ``summary`` is missing or shorter than
    ``thresholds.min_summary_chars``, when ``how_to_start`` is not a list of
    at least ``thresholds.min_steps`` entries, or when ``confidence`` is not a
    number at or above ``thresholds.min_confidence``.

    Args:
        payload: Parsed transformer output (normally a dict; anything else
            is rejected).
        thresholds: Minimum bar for acceptance.

    Returns:
        The validated ``Opportunity``, or a ``Rejection`` with the reasons.
    """
    if not isinstance(payload, dict):
        return Rejection(reasons=[f"payload is {type(payload).__name__}, not an object"])

    context = {
        "min_confidence": thresholds.min_confidence,
        "min_summary_chars": thresholds.min_summary_chars,
        "min_steps": thresholds.min_steps,
    }
    try:
        return Opportunity.model_validate(payload, context=context)
    except ValidationError as exc:
        reasons = [
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in exc.errors()
        ]
        return Rejection(reasons=reasons)
