"""Tests for radar/quality.py: the quality gate."""

from __future__ import annotations

import pytest

from config.settings import QualityThresholds
from radar.models import Opportunity
from radar.quality import Rejection, validate_opportunity


@pytest.fixture
def thresholds() -> QualityThresholds:
    return QualityThresholds(min_confidence=0.2, min_summary_chars=30, min_steps=3)


def make_payload(**overrides) -> dict:
    payload = {
        "title": "Resell AI note-taking gadgets",
        "category": "AI Tool",
        "summary": "x" * 50,
        "opportunity_score": 6,
        "risk_score": 4,
        "who_is_it_for": ["Students", "Freelancers"],
        "how_to_start": ["Research", "Source", "List", "Promote"],
        "watch_out": ["Warranty"],
        "keywords": ["ai", "gadget"],
        "confidence": 0.9,
    }
    payload.update(overrides)
    return payload


class TestAccepts:
    def test_well_formed_payload(self, thresholds):
        result = validate_opportunity(make_payload(), thresholds)
        assert isinstance(result, Opportunity)
        assert result.how_to_start == ["Research", "Source", "List", "Promote"]

    def test_summary_exactly_at_minimum(self, thresholds):
        assert isinstance(validate_opportunity(make_payload(summary="s" * 30), thresholds), Opportunity)

    def test_exactly_three_steps(self, thresholds):
        payload = make_payload(how_to_start=["a", "b", "c"])
        assert isinstance(validate_opportunity(payload, thresholds), Opportunity)

    def test_confidence_exactly_at_minimum(self, thresholds):
        assert isinstance(validate_opportunity(make_payload(confidence=0.2), thresholds), Opportunity)

    def test_integer_confidence(self, thresholds):
        assert isinstance(validate_opportunity(make_payload(confidence=1), thresholds), Opportunity)

    def test_blank_steps_count_toward_minimum(self, thresholds):
        payload = make_payload(summary="x" * 30, how_to_start=["a", "b", ""], confidence=0.5)
        result = validate_opportunity(payload, thresholds)
        assert isinstance(result, Opportunity)
        assert result.how_to_start == ["a", "b"]

    def test_summary_length_includes_whitespace(self, thresholds):
        result = validate_opportunity(make_payload(summary="s" * 29 + " "), thresholds)
        assert isinstance(result, Opportunity)
        assert result.summary == "s" * 29

    @pytest.mark.parametrize("raw", [-5, 99, "lots", None, float("nan")])
    def test_scores_always_clamped(self, thresholds, raw):
        result = validate_opportunity(
            make_payload(opportunity_score=raw, risk_score=raw), thresholds
        )
        assert isinstance(result, Opportunity)
        assert 0 <= result.opportunity_score <= 10
        assert 0 <= result.risk_score <= 10


class TestRejects:
    def test_empty_payload(self, thresholds):
        assert isinstance(validate_opportunity({}, thresholds), Rejection)

    def test_non_dict_payload(self, thresholds):
        result = validate_opportunity(["not", "an", "object"], thresholds)
        assert isinstance(result, Rejection)
        assert "list" in str(result)

    def test_missing_summary(self, thresholds):
        payload = make_payload()
        del payload["summary"]
        assert isinstance(validate_opportunity(payload, thresholds), Rejection)

    def test_short_summary(self, thresholds):
        result = validate_opportunity(make_payload(summary="s" * 29), thresholds)
        assert isinstance(result, Rejection)
        assert "summary" in str(result)

    def test_non_string_summary(self, thresholds):
        assert isinstance(validate_opportunity(make_payload(summary=12345), thresholds), Rejection)

    def test_two_steps(self, thresholds):
        result = validate_opportunity(make_payload(how_to_start=["a", "b"]), thresholds)
        assert isinstance(result, Rejection)
        assert "how_to_start" in str(result)

    def test_steps_not_a_list(self, thresholds):
        payload = make_payload(how_to_start="do it, then do more, then profit")
        assert isinstance(validate_opportunity(payload, thresholds), Rejection)

    def test_low_confidence(self, thresholds):
        result = validate_opportunity(make_payload(confidence=0.19), thresholds)
        assert isinstance(result, Rejection)
        assert "confidence" in str(result)

    @pytest.mark.parametrize("raw", ["0.9", True, None, float("nan")])
    def test_non_numeric_confidence(self, thresholds, raw):
        assert isinstance(validate_opportunity(make_payload(confidence=raw), thresholds), Rejection)

    def test_configurable_confidence(self):
        strict = QualityThresholds(min_confidence=0.45)
        result = validate_opportunity(make_payload(confidence=0.4), strict)
        assert isinstance(result, Rejection)

    def test_collects_every_reason(self, thresholds):
        result = validate_opportunity(
            make_payload(summary="short", how_to_start=[], confidence=0.0), thresholds
        )
        assert isinstance(result, Rejection)
        assert len(result.reasons) == 3
