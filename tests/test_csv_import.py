"""Tests for delimited (CSV/TSV) run import."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from analysis.dates import BattleDateErrorCode
from analysis.dto import ImportFormatSettings, RunType
from analysis.field_similarity import FieldStatus, SimilarityType
from core.parsers.csv_import import (
    CsvDelimiter,
    detect_delimiter,
    failure_message,
    get_delimiter_string,
    parse_generic_csv,
)

pytestmark = pytest.mark.unit

TSV = "\n".join(
    [
        "Battle Date\tTier\tWave\tReal Time\tCoins earned\tBrand New",
        "Oct 14, 2025 13:14\t11\t5881\t7h 46m 6s\t43.91T\t12",
        "Oct 13, 2025 09:00\t10+\t4000\t5h 0m 0s\t10.5T\t",
    ]
)


def test_delimiter_helpers() -> None:
    assert get_delimiter_string(CsvDelimiter.tab) == "\t"
    assert get_delimiter_string("semicolon") == ";"
    assert get_delimiter_string(CsvDelimiter.custom, "|") == "|"
    assert get_delimiter_string(CsvDelimiter.custom) == ","

    assert detect_delimiter("a\tb,c") == "\t"
    assert detect_delimiter("a;b;c,d") == ";"
    assert detect_delimiter("a,b") == ","


def test_failure_message() -> None:
    assert failure_message(ValueError("boom")) == "Failed to parse data: boom"
    assert failure_message(ValueError()) == "Unknown error"


def test_tab_separated_rows_become_runs() -> None:
    """Each row becomes a run; battle dates derive `_date`/`_time`."""

    result = parse_generic_csv(TSV)

    assert result.errors == ()
    assert result.failed == 0
    assert result.missing_battle_date_column is False
    assert len(result.success) == 2

    first, second = result.success
    assert first.tier == 11
    assert first.wave == 5881
    assert first.real_time == 27_966
    assert first.coins_earned == Decimal("43910000000000")
    assert first.timestamp == datetime(2025, 10, 14, 13, 14, tzinfo=timezone.utc)
    assert first.field_raw("_date") == "2025-10-14"
    assert first.field_raw("_time") == "13:14:00"
    assert first.field_value("brandNew") == Decimal(12)
    assert first.fields["brandNew"].original_key == "Brand New"

    assert second.run_type is RunType.tournament
    assert "brandNew" not in second.fields
    assert first.id != second.id


def test_field_mapping_report() -> None:
    """Registered headers are never new; unknown headers are still imported."""

    result = parse_generic_csv("Tier\tcoins_earned\tBrand New\n11\t5T\t1", known_fields=["Coins earned"])
    report = result.field_mapping_report

    statuses = {mapping.csv_header: mapping.status for mapping in report.mapped_fields}
    assert statuses == {
        "Tier": FieldStatus.exact_match,
        "coins_earned": FieldStatus.similar_field,
        "Brand New": FieldStatus.new_field,
    }
    assert report.new_fields == ("Brand New",)
    assert report.unsupported_fields == ("Brand New",)
    assert len(report.similar_fields) == 1
    assert report.similar_fields[0].existing_field == "Coins earned"
    assert report.similar_fields[0].similarity_type is SimilarityType.case_variation
    assert result.missing_battle_date_column is True


def test_comma_delimited_with_quotes() -> None:
    result = parse_generic_csv('Tier,Wave,_Notes\n10,100,"hello, world"\n')

    assert len(result.success) == 1
    assert result.success[0].field_raw("_notes") == "hello, world"


def test_semicolon_delimited_comma_decimals() -> None:
    settings = ImportFormatSettings(decimal_separator=",", thousands_separator=".")
    result = parse_generic_csv("Tier;Wave;Coins earned\n11;5.881;43,91T", import_format=settings)

    run = result.success[0]
    assert run.wave == 5881
    assert run.coins_earned == Decimal("43910000000000")


def test_multi_character_custom_delimiter() -> None:
    result = parse_generic_csv("Tier||Wave\n12||300", delimiter="||")

    assert result.success[0].tier == 12
    assert result.success[0].wave == 300


def test_empty_and_header_only_inputs() -> None:
    assert parse_generic_csv("   ").errors == ("Failed to parse data: No data provided",)

    header_only = parse_generic_csv("Tier\tWave\n")
    assert header_only.success == ()
    assert header_only.errors == ("Failed to parse data: No data rows found",)


def test_rows_with_extra_cells_fail_individually() -> None:
    result = parse_generic_csv("Tier\tWave\n10\t100\t5\n11\t200")

    assert result.failed == 1
    assert result.errors == ("Row 2: Too many columns (expected max 2, got 3)",)
    assert [run.tier for run in result.success] == [11]


def test_repeated_header_uses_last_column() -> None:
    result = parse_generic_csv("Tier\tWave\tWave\n10\t100\t200\n11\t300\t")

    assert [run.wave for run in result.success] == [200, 300]
    assert result.success[0].fields["wave"].raw_value == "200"


def test_valid_battle_date_keeps_explicit_date_and_time() -> None:
    """Own `_Date`/`_Time` values are kept as written next to a valid battle date."""

    result = parse_generic_csv(
        "Battle Date\t_Date\t_Time\tTier\tWave\n"
        "Oct 14, 2025 13:14\t2025-10-13\t23:59:00\t11\t300"
    )

    (run,) = result.success
    assert result.date_warnings == ()
    assert run.field_raw("_date") == "2025-10-13"
    assert run.field_raw("_time") == "23:59:00"
    assert run.timestamp == datetime(2025, 10, 14, 13, 14, tzinfo=timezone.utc)


def test_invalid_battle_date_fixable_from_internal_fields() -> None:
    """A bad battle date still imports; `_date`/`_time` supply the timestamp."""

    result = parse_generic_csv(
        "Battle Date\t_Date\t_Time\tTier\tWave\tReal Time\n"
        "Feb 30, 2025 10:00\t2025-02-28\t10:00:00\t10\t500\t1h 0m 0s"
    )

    assert len(result.success) == 1
    assert result.success[0].timestamp == datetime(2025, 2, 28, 10, 0, tzinfo=timezone.utc)

    (warning,) = result.date_warnings
    assert warning.row_number == 1
    assert warning.raw_value == "Feb 30, 2025 10:00"
    assert warning.error.code is BattleDateErrorCode.invalid_day
    assert warning.is_fixable is True
    assert warning.fallback_used == "internal-fields"
    assert warning.derived_battle_date == datetime(2025, 2, 28, 10, 0, tzinfo=timezone.utc)
    assert warning.context.tier == 10
    assert warning.context.wave == 500
    assert warning.context.duration == "1h 0m 0s"


def test_unparseable_battle_date_falls_back_to_import_time() -> None:
    result = parse_generic_csv("Battle Date\tTier\nsometime\t10\n\tnope")

    assert len(result.success) == 2
    first, second = result.date_warnings
    assert first.error.code is BattleDateErrorCode.invalid_format
    assert first.fallback_used == "import-time"
    assert first.is_fixable is False
    assert second.row_number == 2
    assert second.error.code is BattleDateErrorCode.empty
