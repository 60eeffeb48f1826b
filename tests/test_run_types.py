"""Tests for run-type inference and tier labels."""

from __future__ import annotations

import pytest

from analysis.dto import RunType
from analysis.fields import build_fields
from analysis.run_types import (
    detect_run_type_from_fields,
    extract_tier_number,
    format_tier_label,
    get_tournament_league,
    parse_run_type,
)

pytestmark = pytest.mark.unit


def test_explicit_run_type_wins() -> None:
    """A recognized `_runType` value is used regardless of the tier."""

    fields = build_fields({"Tier": "10+", "_Run Type": "Milestone"})
    assert detect_run_type_from_fields(fields) is RunType.milestone


def test_unrecognized_run_type_falls_back_to_tier() -> None:
    """A trailing `+` on the tier means tournament; otherwise farm."""

    assert detect_run_type_from_fields(build_fields({"Tier": "10+", "_Run Type": "weird"})) is RunType.tournament
    assert detect_run_type_from_fields(build_fields({"Tier": "10"})) is RunType.farm
    assert detect_run_type_from_fields(build_fields({"Wave": "100"})) is RunType.farm


def test_legacy_run_type_label() -> None:
    """The legacy `run_type` label migrates to `_runType`."""

    fields = build_fields({"Tier": "11", "run_type": "TOURNAMENT"})
    assert detect_run_type_from_fields(fields) is RunType.tournament


def test_parse_run_type() -> None:
    """Recognition is case-insensitive; unknown values are None."""

    assert parse_run_type(" Farm ") is RunType.farm
    assert parse_run_type("event") is None
    assert parse_run_type(None) is None


def test_extract_tier_number() -> None:
    """Numeric and tournament tiers resolve to an int; a missing tier is 0."""

    assert extract_tier_number(build_fields({"Tier": "11"})["tier"]) == 11
    assert extract_tier_number(build_fields({"Tier": "8+"})["tier"]) == 8
    assert extract_tier_number(None) == 0


def test_tier_labels() -> None:
    """Tournament tiers carry their league name."""

    assert get_tournament_league(8) == "Platinum"
    assert get_tournament_league(14) == "Legend"
    assert get_tournament_league(0) is None
    assert format_tier_label("8+", 8) == "8+ Platinum"
    assert format_tier_label("10", 10) == "10"
    assert format_tier_label(None, None) == "-"
