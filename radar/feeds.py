"""RSS/Atom feed fetching.

The HTTP request is made with ``requests`` so that a bounded timeout applies
(feedparser's own URL fetching has none); the body is then handed to
``feedparser``. Entries are flattened into ``FeedEntry`` objects whose fields
are always strings, so downstream code never deals with missing attributes.
"""

from __future__ import annotations

import calendar
import html
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

import feedparser
import requests

logger = logging.getLogger(__name__)

#: Sent with every feed request; some publishers reject the requests default.
USER_AGENT = "opportunity-radar/0.1"

_TAG_RE = re.compile(r"<[^<]+?>")
_WS_RE = re.compile(r"\s+")


class FeedError(Exception):
    """Raised when a feed cannot be fetched or parsed."""


@dataclass(frozen=True)
class FeedSource:
    """A trusted feed: display name plus endpoint URL."""

    name: str
    url: str


@dataclass
class FeedEntry:
    """One syndicated item, flattened to plain strings."""

    link: str
    title: str
    content: str
    published: str = ""


def strip_html(text: str) -> str:
    """Remove tags, unescape entities and collapse whitespace."""
    text = _TAG_RE.sub(" ", text or "")
    return _WS_RE.sub(" ", html.unescape(text)).strip()


def _published(entry: feedparser.FeedParserDict) -> str:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        # feedparser normalises parsed dates to UTC struct_time
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc).isoformat()
    return entry.get("published") or entry.get("updated") or ""


def _content(entry: feedparser.FeedParserDict) -> str:
    bodies = [block.get("value", "") for block in entry.get("content") or []]
    candidates = bodies + [entry.get("summary", ""), entry.get("description", "")]
    for candidate in candidates:
        text = strip_html(candidate)
        if text:
            return text
    return strip_html(entry.get("title", ""))


def to_entry(entry: feedparser.FeedParserDict) -> FeedEntry:
    """Flatten a feedparser entry; absent fields become empty strings."""
    return FeedEntry(
        # feedparser exposes <guid> as ``id``
        link=(entry.get("link") or entry.get("id") or "").strip(),
        title=strip_html(entry.get("title", "")),
        content=_content(entry),
        published=_published(entry),
    )


def fetch_entries(
    source: FeedSource,
    limit: int = 10,
    timeout: float = 20.0,
) -> list[FeedEntry]:
    """Fetch *source* and return its first *limit* entries.

    Args:
        source: The feed to fetch.
        limit: Maximum number of entries to return (most recent first, as
            published).
        timeout: Seconds to wait for the HTTP response.

    Returns:
        Flattened entries in feed order.

    Raises:
        FeedError: If the endpoint is unreachable, answers with an error
            status, or returns a document feedparser cannot read.
    """
    logger.info("Fetching feed %s: %s", source.name, source.url)

    try:
        response = requests.get(
            source.url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        raise FeedError(f"{source.name}: {exc}") from exc

    feed = feedparser.parse(response.content)
    if feed.bozo and not feed.entries:
        raise FeedError(f"{source.name}: unreadable feed ({feed.get('bozo_exception')})")
    if feed.bozo:
        logger.warning("Feed %s parsed with warnings: %s", source.name, feed.get("bozo_exception"))

    entries = [to_entry(entry) for entry in feed.entries[:limit]]
    logger.info("Fetched %d entries from %s", len(entries), source.name)
    return entries
