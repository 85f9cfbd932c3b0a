"""One batch run of the opportunity radar.

Flow
────
1. load the persisted collection (fresh one if absent or corrupt)
2. seen-set of existing record ids
3. for each source, sequentially: fetch the most recent entries
4. for each entry: derive the id, skip duplicates and empty entries
5. transform the entry with Claude
6. quality gate → Opportunity or Rejection
7. accepted → Record, id added to the seen-set
8. prepend new records, cap the collection, refresh updatedAt, save once

Source and item failures are logged and skipped; only startup problems and
unexpected errors end the run (see ``radar.cli``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Optional

from radar.feeds import FeedEntry, FeedSource, fetch_entries
from radar.models import Record, make_record_id
from radar.quality import Rejection, validate_opportunity
from radar.store import load_collection, merge_records, save_collection

if TYPE_CHECKING:
    from config.settings import Settings
    from radar.models import RadarCollection

logger = logging.getLogger(__name__)

Fetcher = Callable[..., list[FeedEntry]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunReport:
    """Counters for one pipeline run."""

    sources_fetched: int = 0
    sources_failed: int = 0
    entries_seen: int = 0
    skipped_empty: int = 0
    skipped_duplicate: int = 0
    transform_failures: int = 0
    rejected: int = 0
    added: int = 0


class IngestionPipeline:
    """Drives fetch → dedupe → transform → validate → merge → persist.

    Collaborators are injected so tests can run without network access:

    * ``fetch(source, limit=..., timeout=...)`` returns ``FeedEntry`` objects
    * ``transformer.transform(title, url, content, source_name)`` returns a dict
    """

    def __init__(
        self,
        settings: Settings,
        fetch: Fetcher = fetch_entries,
        transformer: Optional[Any] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings
        self.fetch = fetch
        if transformer is None:
            from radar.transformer import OpportunityTransformer
            transformer = OpportunityTransformer(settings)
        self.transformer = transformer
        self.clock = clock

    # ── Public entry point ─────────────────────────────────────────────────

    def run(self) -> RunReport:
        """Execute one full batch cycle and persist the result."""
        started = self.clock()
        report = RunReport()

        collection = load_collection(
            self.settings.output_path,
            title=self.settings.title,
            now=started,
            strict=self.settings.strict_load,
        )
        seen = collection.ids()
        added: list[Record] = []

        for source in self.settings.sources:
            added.extend(self._process_source(source, seen, report, started))

        report.added = len(added)
        self._persist(collection, added)

        logger.info(
            "Run finished: added=%d rejected=%d transform_failures=%d "
            "duplicates=%d empty=%d sources_ok=%d sources_failed=%d",
            report.added,
            report.rejected,
            report.transform_failures,
            report.skipped_duplicate,
            report.skipped_empty,
            report.sources_fetched,
            report.sources_failed,
        )
        return report

    # ── Per-source / per-entry steps ───────────────────────────────────────

    def _process_source(
        self,
        source: FeedSource,
        seen: set[str],
        report: RunReport,
        started: datetime,
    ) -> list[Record]:
        try:
            entries = self.fetch(
                source,
                limit=self.settings.items_per_source,
                timeout=self.settings.fetch_timeout,
            )
        except Exception as exc:
            logger.error("RSS fail: %s: %s", source.name, exc)
            report.sources_failed += 1
            return []

        report.sources_fetched += 1
        records: list[Record] = []

        for entry in entries[: self.settings.items_per_source]:
            report.entries_seen += 1
            record = self._process_entry(source, entry, seen, report, started)
            if record is not None:
                records.append(record)
                seen.add(record.id)

        return records

    def _process_entry(
        self,
        source: FeedSource,
        entry: FeedEntry,
        seen: set[str],
        report: RunReport,
        started: datetime,
    ) -> Optional[Record]:
        record_id = make_record_id(entry.link)
        if not entry.link or not entry.content or not record_id:
            report.skipped_empty += 1
            return None
        if record_id in seen:
            report.skipped_duplicate += 1
            return None

        try:
            payload = self.transformer.transform(
                title=entry.title,
                url=entry.link,
                content=entry.content[: self.settings.content_char_limit],
                source_name=source.name,
            )
        except Exception as exc:
            logger.error("AI fail: %s: %s: %s", source.name, entry.link, exc)
            report.transform_failures += 1
            return None

        result = validate_opportunity(payload, self.settings.thresholds)
        if isinstance(result, Rejection):
            logger.debug("Rejected %s: %s", entry.link, result)
            report.rejected += 1
            return None

        return Record.from_opportunity(
            record_id,
            result,
            fallback_title=entry.title,
            date=entry.published or started.isoformat(),
            source_url=entry.link,
            source_name=source.name,
        )

    # ── Persistence ────────────────────────────────────────────────────────

    def _persist(self, collection: RadarCollection, added: list[Record]) -> None:
        merge_records(collection, added, now=self.clock(), max_items=self.settings.max_items)
        save_collection(self.settings.output_path, collection)
