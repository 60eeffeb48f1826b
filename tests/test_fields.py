"""Tests for field-name normalization and typed field construction."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from analysis.dto import FieldDataType, ImportFormatSettings
from analysis.fields import (
    build_fields,
    create_field,
    get_field_data_type,
    is_internal_field,
    normalize_field_name,
    to_camel_case,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Coins earned", "coinsEarned"),
        ("coins_earned", "coinsEarned"),
        ("  Real   Time ", "realTime"),
        ("Battle Date", "battleDate"),
        ("_Run Type", "_runType"),
        ("_Notes", "_notes"),
        ("date", "_date"),
        ("Time", "_time"),
        ("run_type", "_runType"),
        ("runType", "_runType"),
        ("placement", "_rank"),
    ],
)
def test_normalize_field_name(header: str, expected: str) -> None:
    """Headers become camelCase and legacy names migrate to internal fields."""

    assert normalize_field_name(header) == expected


def test_to_camel_case_and_internal_fields() -> None:
    """camelCase collapses separator runs; only known `_` fields are internal."""

    assert to_camel_case("Enemies Hit by Orbs") == "enemiesHitByOrbs"
    assert is_internal_field("_notes")
    assert not is_internal_field("_custom")
    assert not is_internal_field("coinsEarned")


def test_get_field_data_type() -> None:
    """Types come from exact names first, then `time`/`date` substrings, else number."""

    assert get_field_data_type("Real Time") is FieldDataType.duration
    assert get_field_data_type("Battle Date") is FieldDataType.date
    assert get_field_data_type("_Date") is FieldDataType.date
    assert get_field_data_type("Killed By") is FieldDataType.string
    assert get_field_data_type("_Notes") is FieldDataType.string
    assert get_field_data_type("Tier", "10+") is FieldDataType.string
    assert get_field_data_type("Tier", "10") is FieldDataType.number
    assert get_field_data_type("Something New") is FieldDataType.number


def test_create_field_number_keeps_raw_and_canonical_display() -> None:
    """Numbers parse with the configured separator and display canonically."""

    comma = ImportFormatSettings(decimal_separator=",", thousands_separator=".")
    field = create_field("Coins earned", "43,91T", comma)

    assert field.value == Decimal("43910000000000")
    assert field.raw_value == "43,91T"
    assert field.display_value == "43.9T"
    assert field.original_key == "Coins earned"
    assert field.data_type is FieldDataType.number


def test_create_field_duration_date_and_notes() -> None:
    """Durations become seconds, dates datetimes, and notes are decoded."""

    duration = create_field("Real Time", "7h 46m 6s")
    assert duration.value == 27_966
    assert duration.display_value == "7h 46m 6s"

    date_field = create_field("Battle Date", "Oct 14, 2025 13:14")
    assert date_field.value == datetime(2025, 10, 14, 13, 14, tzinfo=timezone.utc)

    unparsed = create_field("Battle Date", "someday")
    assert unparsed.value == "someday"
    assert unparsed.data_type is FieldDataType.date

    notes = create_field("_Notes", "first\\nsecond")
    assert notes.value == "first\nsecond"
    assert notes.raw_value == "first\nsecond"


def test_create_field_defaults_unparseable_numbers_to_zero() -> None:
    """Malformed optional numbers never raise."""

    field = create_field("Gem Blocks Tapped", "lots")
    assert field.value == Decimal(0)
    assert field.raw_value == "lots"


def test_build_fields_last_label_wins_and_skips_empty() -> None:
    """Duplicate normalized names keep the last value; empty values are dropped."""

    fields = build_fields({"Coins earned": "1M", "coins_earned": "2M", "Cells Earned": ""})

    assert set(fields) == {"coinsEarned"}
    assert fields["coinsEarned"].raw_value == "2M"
