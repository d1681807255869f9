"""Tests for council/parsing.py."""

import pytest

from council.models import Severity
from council.parsing import LabeledResponseParser, ResponseParseError, normalize_confidence


@pytest.fixture
def parser() -> LabeledResponseParser:
    return LabeledResponseParser()


def test_parses_labeled_reply(parser):
    text = "Severity: CRITICAL\nConfidence: 0.9\nChanged position: yes\nThe token is logged on line 3."
    parsed = parser.parse(text, Severity.MAJOR)
    assert parsed.severity is Severity.CRITICAL
    assert parsed.confidence == 0.9
    assert parsed.changed_position is True
    assert parsed.argument == "The token is logged on line 3."


@pytest.mark.parametrize("raw,expected", [("85", 0.85), ("85%", 0.85), ("0.4", 0.4), ("100", 1.0)])
def test_confidence_percentages_are_reinterpreted(parser, raw, expected):
    parsed = parser.parse(f"Confidence: {raw}\nArgument text.", Severity.MINOR)
    assert parsed.confidence == pytest.approx(expected)


def test_out_of_range_confidence_is_unset(parser):
    parsed = parser.parse("Confidence: 250\nArgument text.", Severity.MINOR)
    assert parsed.confidence is None


def test_missing_severity_is_none_and_unchanged(parser):
    parsed = parser.parse("I still think this is right.", Severity.MINOR)
    assert parsed.severity is None
    assert parsed.confidence is None
    assert parsed.changed_position is False


def test_severity_aliases_and_change_detection(parser):
    parsed = parser.parse("**Severity:** warning\nKeeping it.", Severity.MAJOR)
    assert parsed.severity is Severity.MAJOR
    assert parsed.changed_position is False

    parsed = parser.parse("Severity: suggestion\nDowngrading.", Severity.MAJOR)
    assert parsed.severity is Severity.MINOR
    assert parsed.changed_position is True


def test_maintained_position_is_not_a_change(parser):
    parsed = parser.parse("Position: maintained\nSame view.", Severity.MAJOR)
    assert parsed.changed_position is False


def test_metadata_only_reply_falls_back_to_raw_text(parser):
    parsed = parser.parse("Severity: MINOR\nConfidence: 0.7", Severity.MAJOR)
    assert parsed.argument.startswith("Severity: MINOR")


def test_empty_reply_raises(parser):
    with pytest.raises(ResponseParseError):
        parser.parse("   \n", Severity.MAJOR)


def test_normalize_confidence():
    assert normalize_confidence(0.3, 0.5) == 0.3
    assert normalize_confidence(70, 0.5) == 0.7
    assert normalize_confidence(-1, 0.5) == 0.5
    assert normalize_confidence(101, 0.5) == 0.5
