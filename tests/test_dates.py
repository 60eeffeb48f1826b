"""Tests for battle date parsing, validation and timestamp resolution."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from analysis.dates import (
    BattleDateErrorCode,
    construct_date,
    derive_date_time_from_battle_date,
    format_canonical_battle_date,
    parse_battle_date,
    parse_timestamp_from_fields,
    validate_battle_date,
)
from analysis.dto import DateFormat
from analysis.fields import create_field, create_internal_field

pytestmark = pytest.mark.unit

UTC = timezone.utc


def test_parse_battle_date_month_first() -> None:
    """Capitalized English months parse with the default layout."""

    assert parse_battle_date("Oct 14, 2025 13:14") == datetime(2025, 10, 14, 13, 14, tzinfo=UTC)
    assert parse_battle_date("2025-12-01 13:45:00") == datetime(2025, 12, 1, 13, 45, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "expected_month"),
    [
        ("nov. 20, 2025 22:28", 11),
        ("déc. 25, 2025 22:28", 12),
        ("févr. 3, 2025 22:28", 2),
        ("okt. 9, 2025 22:28", 10),
        ("dez 1, 2025 22:28", 12),
        ("mär. 3, 2025 22:28", 3),
    ],
)
def test_parse_battle_date_lowercase_locale_months(raw: str, expected_month: int) -> None:
    """French and German abbreviations parse with or without a trailing period."""

    parsed = parse_battle_date(raw, DateFormat.month_first_lowercase)
    assert parsed is not None
    assert parsed.month == expected_month
    assert (parsed.hour, parsed.minute) == (22, 28)
    assert parsed.tzinfo is not None


def test_parse_battle_date_returns_none_for_garbage() -> None:
    """Unparseable dates never raise."""

    assert parse_battle_date("") is None
    assert parse_battle_date("yesterday") is None
    assert parse_battle_date("Foo 14, 2025 13:14") is None



def test_parse_battle_date_twelve_hour_clock() -> None:
    assert parse_battle_date("Nov 26, 2025 1:14 PM") == datetime(2025, 11, 26, 13, 14, tzinfo=UTC)
    assert parse_battle_date("Nov 26, 2025 12:05 am") == datetime(2025, 11, 26, 0, 5, tzinfo=UTC)
    assert parse_battle_date("nov. 26, 2025 12:05 PM", DateFormat.month_first_lowercase) == datetime(
        2025, 11, 26, 12, 5, tzinfo=UTC
    )
    assert parse_battle_date("Nov 26, 2025 1:14 tomorrow") is None


def test_derive_date_time_from_battle_date() -> None:
    """Derived internal fields are ISO date and 24-hour time."""

    battle_date = datetime(2025, 10, 14, 9, 5, tzinfo=UTC)
    assert derive_date_time_from_battle_date(battle_date) == ("2025-10-14", "09:05:00")
    assert format_canonical_battle_date(battle_date) == "Oct 14, 2025 09:05"


def test_construct_date() -> None:
    """ISO date plus optional time combine into a UTC datetime."""

    assert construct_date("2025-10-14", "13:14:00") == datetime(2025, 10, 14, 13, 14, tzinfo=UTC)
    assert construct_date("2025-10-14") == datetime(2025, 10, 14, tzinfo=UTC)
    assert construct_date("") is None
    assert construct_date("not a date", "12:00") is None


def test_validate_battle_date_success() -> None:
    """Valid dates carry the parsed datetime and no error."""

    result = validate_battle_date("Oct 14, 2025 13:14", now=datetime(2025, 10, 20, tzinfo=UTC))
    assert result.success
    assert result.date == datetime(2025, 10, 14, 13, 14, tzinfo=UTC)


@pytest.mark.parametrize(
    ("raw", "code"),
    [
        ("", BattleDateErrorCode.empty),
        ("   ", BattleDateErrorCode.empty),
        ("14/10/2025 at noon", BattleDateErrorCode.invalid_format),
        ("Foo 14, 2025 13:14", BattleDateErrorCode.invalid_month),
        ("Oct 14, 2025 25:14", BattleDateErrorCode.invalid_hour),
        ("Oct 14, 2025 13:14 PM", BattleDateErrorCode.invalid_hour),
        ("Oct 14, 2025 13:14 later", BattleDateErrorCode.invalid_format),
        ("Oct 14, 2025 13:75", BattleDateErrorCode.invalid_minute),
        ("Feb 30, 2025 13:14", BattleDateErrorCode.invalid_day),
        ("Oct 14, 2019 13:14", BattleDateErrorCode.too_old),
    ],
)
def test_validate_battle_date_errors(raw: str, code: BattleDateErrorCode) -> None:
    """Each failure mode reports its own error code and a suggestion."""

    result = validate_battle_date(raw, now=datetime(2025, 10, 20, tzinfo=UTC))
    assert not result.success
    assert result.error is not None
    assert result.error.code is code
    assert result.error.raw_value == raw
    assert result.error.suggestion


def test_validate_battle_date_future_dates_are_optional() -> None:
    """Future dates fail only when the future check is enabled."""

    now = datetime(2025, 10, 1, tzinfo=UTC)
    strict = validate_battle_date("Oct 14, 2025 13:14", now=now)
    assert strict.error is not None
    assert strict.error.code is BattleDateErrorCode.future_date

    lenient = validate_battle_date("Oct 14, 2025 13:14", now=now, warn_future_dates=False)
    assert lenient.success


def test_parse_timestamp_from_fields_priority() -> None:
    """Battle date wins over `_date`/`_time`, which win over the fallback."""

    fallback = datetime(2024, 1, 1, tzinfo=UTC)
    fields = {
        "battleDate": create_field("Battle Date", "Oct 14, 2025 13:14"),
        "_date": create_internal_field("Date", "2025-10-01"),
        "_time": create_internal_field("Time", "08:00:00"),
    }
    assert parse_timestamp_from_fields(fields, fallback) == datetime(2025, 10, 14, 13, 14, tzinfo=UTC)

    del fields["battleDate"]
    assert parse_timestamp_from_fields(fields, fallback) == datetime(2025, 10, 1, 8, 0, tzinfo=UTC)

    assert parse_timestamp_from_fields({}, fallback) == fallback
