"""Tests for duration parsing and formatting."""

from __future__ import annotations

import pytest

from analysis.durations import format_duration, format_duration_for_key, parse_duration, parse_duration_seconds

pytestmark = pytest.mark.unit


def test_parse_duration_sums_every_unit() -> None:
    """`1d 13h 24m 51s` is exactly 134691 seconds."""

    assert parse_duration("1d 13h 24m 51s") == 134_691


def test_parse_duration_is_case_insensitive_and_accepts_subsets() -> None:
    """Unit letters may be upper case and any unit may be missing."""

    assert parse_duration("7h 46m 6s") == 27_966
    assert parse_duration("7H 46M 6S") == 27_966
    assert parse_duration("46m") == 2_760
    assert parse_duration("2d") == 172_800


def test_parse_duration_accepts_clock_and_plain_seconds() -> None:
    """`HH:MM:SS`, `MM:SS` and bare numbers are accepted too."""

    assert parse_duration("00:12:34") == 754
    assert parse_duration("12:34") == 754
    assert parse_duration("45") == 45


def test_parse_duration_defaults_to_zero() -> None:
    """Empty or unrecognized durations parse to 0 (or None for the strict variant)."""

    assert parse_duration("") == 0
    assert parse_duration(None) == 0
    assert parse_duration("soon") == 0
    assert parse_duration_seconds("soon") is None


def test_format_duration() -> None:
    """Zero units are omitted and an empty duration renders as `0s`."""

    assert format_duration(134_691) == "1d 13h 24m 51s"
    assert format_duration(3_600) == "1h"
    assert format_duration(0) == "0s"


def test_format_duration_for_key_folds_days_into_hours() -> None:
    """Key formatting always includes h/m/s and never days."""

    assert format_duration_for_key(27_933) == "7h 45m 33s"
    assert format_duration_for_key(90_061) == "25h 1m 1s"
    assert format_duration_for_key(0) == "0h 0m 0s"
