"""
Flask server for the Opportunity Radar collection.

Routes
──────
GET  /api/radar                     The whole collection (JSON)
       ?category=AI Tool            only records in this category
       ?limit=20                    at most this many records
GET  /api/radar/<id>                One record (JSON)
GET  /api/categories                The closed category list

The server only reads the collection written by ``radar-update``.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, request

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import DEFAULT_OUTPUT_PATH, DEFAULT_TITLE
from radar.models import Category
from radar.store import load_collection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)


def _output_path() -> Path:
    return Path(os.getenv("RADAR_OUTPUT", DEFAULT_OUTPUT_PATH))


def _collection():
    return load_collection(
        _output_path(),
        title=os.getenv("RADAR_TITLE", DEFAULT_TITLE),
        now=datetime.now(timezone.utc),
    )


# ── Radar API ──────────────────────────────────────────────────────────────

@app.route("/api/radar")
def get_radar():
    """Return the collection, optionally filtered by category and limited."""
    collection = _collection()
    items = collection.items

    category = request.args.get("category", "").strip()
    if category:
        items = [item for item in items if item.category == category]

    limit = request.args.get("limit", type=int)
    if limit is not None:
        if limit < 0:
            return jsonify({"error": "limit must not be negative"}), 400
        items = items[:limit]

    document = collection.model_dump(mode="json", by_alias=True)
    document["items"] = [item.model_dump(mode="json", by_alias=True) for item in items]
    if not _output_path().exists():
        # No run has written the file yet
        document["updatedAt"] = None
    return jsonify(document)


@app.route("/api/radar/<record_id>")
def get_record(record_id: str):
    """Return a single record by id."""
    for item in _collection().items:
        if item.id == record_id:
            return jsonify(item.model_dump(mode="json", by_alias=True))
    return jsonify({"error": "Not found"}), 404


@app.route("/api/categories")
def list_categories():
    """Return the labels a record's category can take."""
    return jsonify([category.value for category in Category])


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    debug = os.getenv("FLASK_DEBUG", "0") == "1"
    app.run(debug=debug, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
