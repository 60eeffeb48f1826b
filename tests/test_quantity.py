"""Tests for shorthand quantity parsing and formatting."""

from __future__ import annotations

from decimal import Decimal

import pytest

from analysis.dto import ImportFormatSettings
from analysis.quantity import (
    UnitType,
    format_canonical_quantity,
    format_large_number,
    parse_quantity,
    parse_shorthand_number,
    resolve_magnitude,
)

pytestmark = pytest.mark.unit

COMMA_DECIMAL = ImportFormatSettings(decimal_separator=",", thousands_separator=".")


def test_parse_quantity_handles_compact_suffixes() -> None:
    """Parse compact K/M/q suffixes into scaled Decimals."""

    parsed = parse_quantity("7.67M", unit_type=UnitType.coins)
    assert parsed.raw_value == "7.67M"
    assert parsed.normalized_value == Decimal("7670000")
    assert parsed.magnitude == "M"
    assert parsed.unit_type == UnitType.coins

    parsed = parse_quantity("111.78q", unit_type=UnitType.damage)
    assert parsed.normalized_value == Decimal("111780000000000000")
    assert parsed.magnitude == "q"

    parsed = parse_quantity("1.44k")
    assert parsed.normalized_value == Decimal("1440")
    assert parsed.magnitude == "K"
    assert parsed.unit_type == UnitType.count


def test_parse_quantity_handles_multiplier_and_percent() -> None:
    """Parse multiplier-style values into normalized Decimals."""

    parsed = parse_quantity("x1.15")
    assert parsed.normalized_value == Decimal("1.15")
    assert parsed.magnitude is None
    assert parsed.unit_type == UnitType.multiplier

    parsed = parse_quantity("15%")
    assert parsed.normalized_value == Decimal("0.15")
    assert parsed.unit_type == UnitType.multiplier


def test_parse_quantity_never_raises_on_unknown_formats() -> None:
    """Return a Quantity with `normalized_value=None` for unknown inputs."""

    parsed = parse_quantity("not-a-number", unit_type=UnitType.coins)
    assert parsed.normalized_value is None
    assert parsed.unit_type == UnitType.coins

    assert parse_quantity("").normalized_value is None
    assert parse_quantity("12ZZ").normalized_value is None


def test_shorthand_numbers_honor_the_decimal_separator() -> None:
    """`43.91T` and `43,91T` agree once the configured separator is applied."""

    assert parse_shorthand_number("1.13T") == Decimal("1130000000000")
    assert parse_shorthand_number("43.91T") == Decimal("43910000000000")
    assert parse_shorthand_number("43,91T", COMMA_DECIMAL) == Decimal("43910000000000")


def test_shorthand_numbers_drop_grouping_and_currency() -> None:
    """Thousands separators and a leading `$` are ignored."""

    assert parse_shorthand_number("1,234,567") == Decimal("1234567")
    assert parse_shorthand_number("1.234.567", COMMA_DECIMAL) == Decimal("1234567")
    assert parse_shorthand_number("$55.90M") == Decimal("55900000")
    assert parse_shorthand_number("1.5aa") == Decimal("1.5") * Decimal(10) ** 36


def test_shorthand_numbers_default_to_zero() -> None:
    """Unparseable input parses to zero instead of raising."""

    assert parse_shorthand_number("Boss") == Decimal(0)
    assert parse_shorthand_number("") == Decimal(0)


def test_magnitude_suffix_casing() -> None:
    """Lowercase k/m/b/t resolve upward; q/Q and s/S stay distinct."""

    assert resolve_magnitude("k") == "K"
    assert resolve_magnitude("q") == "q"
    assert resolve_magnitude("Q") == "Q"
    assert resolve_magnitude("AB") == "ab"
    assert resolve_magnitude("zz") is None


def test_format_large_number() -> None:
    """Format with one decimal, scale suffixes and no trailing `.0`."""

    assert format_large_number(999) == "999"
    assert format_large_number(Decimal("1000")) == "1K"
    assert format_large_number(Decimal("1500000")) == "1.5M"
    assert format_large_number(Decimal("43910000000000")) == "43.9T"
    assert format_large_number(Decimal("999950")) == "1M"
    assert format_large_number(Decimal("1500000"), COMMA_DECIMAL) == "1,5M"


def test_format_canonical_quantity_rewrites_locale_text() -> None:
    """Comma-decimal text is rewritten exactly in period-decimal form."""

    assert format_canonical_quantity(Decimal("43910000000000"), "43,91T") == "43.91T"
    assert format_canonical_quantity(Decimal("1234.5"), "1.234,5") == "1234.5"
    assert format_canonical_quantity(Decimal("1.15"), "x1,15") == "x1.15"
    assert format_canonical_quantity(Decimal("0.125"), "12,5%") == "12.5%"


def test_format_canonical_quantity_keeps_canonical_or_unparseable_text() -> None:
    """Already-canonical and non-numeric raw text is returned unchanged."""

    assert format_canonical_quantity(Decimal("7670000"), "7.67M") == "7.67M"
    assert format_canonical_quantity(Decimal(0), "Boss") == "Boss"
