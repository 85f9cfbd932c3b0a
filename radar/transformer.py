"""Claude-backed text transformer.

Turns one news item into a raw opportunity payload (a dict). The payload is
not trusted here: ``radar.quality`` decides whether it becomes a record.

The Anthropic client is lazy-initialised so that the class can be
instantiated in tests without requiring a live API key.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

#: Thai text for ten fields runs long; a cut-off answer fails to parse.
MAX_OUTPUT_TOKENS = 4096

#: System prompt for the transformation call.
_SYSTEM = (
    'You are "China Opportunity Radar" for Thai readers looking for side income. '
    "Turn the news item you are given into a practical money-making opportunity "
    "that can be pursued in Thailand or online. Write every string value in Thai. "
    "Return only valid JSON, no commentary, no markdown fences."
)

_RULES = (
    "Rules:\n"
    "- If the item offers no realistic way to earn or act, give a low confidence "
    "and use the Risk/Regulation category or a general summary.\n"
    "- opportunity_score and risk_score are 0-10.\n"
    "- Do not cite numbers or facts that are not in the content.\n"
    "- summary: 3-5 sentences, no guessing. who_is_it_for: 2-4 items. "
    "how_to_start: 4-6 concrete steps. watch_out: 2-4 items. keywords: 5-10 terms."
)

#: JSON schema requested from the model.
OPPORTUNITY_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Opportunity-style headline."},
        "category": {
            "type": "string",
            "enum": [
                "Product Trend",
                "Business Model",
                "AI Tool",
                "Cross-border",
                "Risk/Regulation",
            ],
        },
        "summary": {"type": "string"},
        "opportunity_score": {"type": "number"},
        "risk_score": {"type": "number"},
        "who_is_it_for": {"type": "array", "items": {"type": "string"}},
        "how_to_start": {"type": "array", "items": {"type": "string"}},
        "watch_out": {"type": "array", "items": {"type": "string"}},
        "keywords": {"type": "array", "items": {"type": "string"}},
        "confidence": {"type": "number", "description": "0.0-1.0"},
    },
    "required": [
        "title",
        "category",
        "summary",
        "opportunity_score",
        "risk_score",
        "who_is_it_for",
        "how_to_start",
        "watch_out",
        "keywords",
        "confidence",
    ],
    "additionalProperties": False,
}


def parse_payload(text: str) -> dict[str, Any]:
    """Parse model text as a JSON object; anything else becomes ``{}``."""
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Model returned non-JSON text (%d chars)", len(text or ""))
        return {}
    if not isinstance(data, dict):
        logger.warning("Model returned JSON %s, expected an object", type(data).__name__)
        return {}
    return data


class OpportunityTransformer:
    """Asks Claude to rewrite a news item as an opportunity payload."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: object = None  # Lazy-initialised anthropic.Anthropic

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            import anthropic
            # A failed call skips the item; the next scheduled run picks it up.
            self._client = anthropic.Anthropic(
                api_key=self.settings.anthropic_api_key,
                max_retries=0,
            )
        return self._client

    def build_prompt(self, title: str, url: str, content: str, source_name: str) -> str:
        """Assemble the user message; *content* is cut to the configured limit."""
        limit = self.settings.content_char_limit
        return (
            f"{_RULES}\n\n"
            f"SOURCE: {source_name}\n"
            f"TITLE: {title}\n"
            f"URL: {url}\n"
            f"CONTENT:\n{(content or '')[:limit]}"
        )

    def transform(self, title: str, url: str, content: str, source_name: str) -> dict[str, Any]:
        """Return the model's opportunity payload for one news item.

        Returns:
            The parsed JSON object, or ``{}`` when the model's text is not a
            JSON object (the quality gate then rejects it).

        Raises:
            anthropic.APIError: On API failures.
        """
        response = self.client.messages.create(
            model=self.settings.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            system=_SYSTEM,
            messages=[
                {"role": "user", "content": self.build_prompt(title, url, content, source_name)}
            ],
            output_config={
                "format": {"type": "json_schema", "schema": OPPORTUNITY_SCHEMA}
            },
        )
        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning(
                "Model output for %s hit max_tokens=%d and is likely truncated",
                url,
                MAX_OUTPUT_TOKENS,
            )
        text = "".join(
            getattr(block, "text", "") or ""
            for block in response.content
            if getattr(block, "type", "text") == "text"
        )
        return parse_payload(text)
