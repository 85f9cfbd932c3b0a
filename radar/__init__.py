"""
Opportunity Radar core package.

Modules
───────
models     : Pydantic data models (Opportunity, Record, RadarCollection)
feeds      : RSS/Atom fetching with a bounded timeout (requests + feedparser)
transformer: Claude call that turns a news item into an opportunity payload
quality    : Quality gate: payload → Opportunity or Rejection
store      : JSON persistence of the radar collection (load, merge, save)
pipeline   : One batch run: fetch → dedupe → transform → validate → merge → save
cli        : ``radar-update`` entry point
"""
