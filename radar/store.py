"""
JSON persistence for the radar collection.

Document
────────
{
  "title":     str
  "updatedAt": ISO-8601 UTC timestamp
  "items":     [Record, ...]   newest first, capped (default 250)
}

The file is always rewritten in full, pretty-printed, through a temporary
file in the same directory followed by an atomic rename.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Union

from pydantic import TypeAdapter, ValidationError

from radar.models import RadarCollection, Record

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 250

#: Mode for a newly created collection file; an existing file keeps its own.
DEFAULT_FILE_MODE = 0o644

_TIMESTAMP = TypeAdapter(datetime)


class CollectionCorruptError(Exception):
    """Raised in strict mode when the persisted collection cannot be read."""


def new_collection(title: str, now: datetime) -> RadarCollection:
    """Return an empty collection stamped with *now*."""
    return RadarCollection(title=title, updated_at=now, items=[])


def _corrupt(path: Path, title: str, now: datetime, strict: bool, reason: object) -> RadarCollection:
    if strict:
        raise CollectionCorruptError(f"Cannot read collection at {path}: {reason}")
    logger.warning("Collection at %s is corrupt, starting over: %s", path, reason)
    return new_collection(title, now)


def _timestamp(value: object, fallback: datetime) -> datetime:
    try:
        return _TIMESTAMP.validate_python(value)
    except ValidationError:
        return fallback


def load_collection(
    path: Union[str, Path],
    title: str,
    now: datetime,
    strict: bool = False,
) -> RadarCollection:
    """Load the collection at *path*.

    A missing file yields a fresh collection. Only a file that is not valid
    JSON, or whose top level is not an object with an ``items`` list, is
    discarded with a warning (its history is lost), unless *strict* is set.
    Odd field types inside items are coerced by ``Record``; an item that is
    not an object at all is dropped on its own.

    Raises:
        CollectionCorruptError: If the file is unreadable and *strict* is set.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No collection at %s; starting a new one", path)
        return new_collection(title, now)

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        return _corrupt(path, title, now, strict, exc)

    if not isinstance(document, dict) or not isinstance(document.get("items", []), list):
        return _corrupt(path, title, now, strict, "expected an object with an items list")

    items: list[Record] = []
    for index, raw in enumerate(document.get("items") or []):
        try:
            items.append(Record.model_validate(raw))
        except ValidationError as exc:
            if strict:
                raise CollectionCorruptError(f"Item {index} in {path}: {exc}") from exc
            logger.warning("Dropping unreadable item %d in %s: %s", index, path, exc)

    stored_title = document.get("title")
    reserved = ("title", "updatedAt", "updated_at", "items")
    extras = {k: v for k, v in document.items() if k not in reserved}
    return RadarCollection(
        **extras,
        title=stored_title if isinstance(stored_title, str) and stored_title else title,
        updated_at=_timestamp(document.get("updatedAt"), now),
        items=items,
    )


def save_collection(path: Union[str, Path], collection: RadarCollection) -> None:
    """Overwrite *path* with *collection* as indented UTF-8 JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = collection.model_dump(mode="json", by_alias=True)
    text = json.dumps(document, ensure_ascii=False, indent=2)

    # mkstemp creates 0600 files; the published file must stay readable
    mode = path.stat().st_mode & 0o777 if path.exists() else DEFAULT_FILE_MODE

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.write("\n")
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except Exception:
        os.unlink(tmp_name)
        raise

    logger.info("Saved %d items to %s", len(collection.items), path)


def merge_records(
    collection: RadarCollection,
    added: list[Record],
    now: datetime,
    max_items: int = DEFAULT_MAX_ITEMS,
) -> RadarCollection:
    """Prepend *added* to the collection, cap its length and stamp *now*.

    ``updated_at`` is refreshed even when *added* is empty so the file shows
    that a run happened.
    """
    if added:
        collection.items = (added + collection.items)[:max_items]
    else:
        collection.items = collection.items[:max_items]
    collection.updated_at = now
    return collection
