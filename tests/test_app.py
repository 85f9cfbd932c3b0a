"""Tests for web/app.py: the read-only radar API."""

from __future__ import annotations

import json

import pytest

from web.app import app

DOCUMENT = {
    "title": "China Opportunity Radar",
    "updatedAt": "2026-10-18T06:00:00Z",
    "items": [
        {"id": "a", "title": "A", "category": "AI Tool", "sourceUrl": "https://a.example"},
        {"id": "b", "title": "B", "category": "Product Trend", "sourceUrl": "https://b.example"},
        {"id": "c", "title": "C", "category": "AI Tool", "sourceUrl": "https://c.example"},
    ],
}


@pytest.fixture
def client(tmp_path, monkeypatch):
    radar_file = tmp_path / "radar.json"
    radar_file.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    monkeypatch.setenv("RADAR_OUTPUT", str(radar_file))
    monkeypatch.delenv("RADAR_SOURCES", raising=False)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestRadar:
    def test_returns_collection(self, client):
        data = client.get("/api/radar").get_json()
        assert data["title"] == "China Opportunity Radar"
        assert [i["id"] for i in data["items"]] == ["a", "b", "c"]
        assert data["items"][0]["sourceUrl"] == "https://a.example"

    def test_category_filter(self, client):
        data = client.get("/api/radar", query_string={"category": "AI Tool"}).get_json()
        assert [i["id"] for i in data["items"]] == ["a", "c"]

    def test_limit(self, client):
        data = client.get("/api/radar?limit=1").get_json()
        assert [i["id"] for i in data["items"]] == ["a"]

    def test_negative_limit_rejected(self, client):
        assert client.get("/api/radar?limit=-1").status_code == 400

    def test_missing_file_gives_empty_collection(self, client, tmp_path, monkeypatch):
        monkeypatch.setenv("RADAR_OUTPUT", str(tmp_path / "absent.json"))
        data = client.get("/api/radar").get_json()
        assert data["items"] == []
        assert data["updatedAt"] is None

    def test_ignores_job_only_settings(self, client, monkeypatch):
        monkeypatch.setenv("RADAR_SOURCES", "not json")
        assert client.get("/api/radar").status_code == 200

    def test_title_from_environment_when_file_missing(self, client, tmp_path, monkeypatch):
        monkeypatch.setenv("RADAR_OUTPUT", str(tmp_path / "absent.json"))
        monkeypatch.setenv("RADAR_TITLE", "My Radar")
        assert client.get("/api/radar").get_json()["title"] == "My Radar"


class TestRecord:
    def test_found(self, client):
        assert client.get("/api/radar/b").get_json()["title"] == "B"

    def test_not_found(self, client):
        assert client.get("/api/radar/zzz").status_code == 404


class TestCategories:
    def test_lists_closed_set(self, client):
        assert client.get("/api/categories").get_json() == [
            "Product Trend",
            "Business Model",
            "AI Tool",
            "Cross-border",
            "Risk/Regulation",
        ]
