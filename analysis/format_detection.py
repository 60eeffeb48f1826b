"""Advisory detection of the number and date format used by imported data.

Detection inspects a few reliable "canary" values from a raw field map and
reports whether they disagree with the configured `ImportFormatSettings`.
It never alters parsed output; absence of evidence is never a mismatch.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final

from .dto import DateFormat, ImportFormatSettings

# Separator followed by 1-2 fractional digits and a magnitude suffix.
_COMMA_DECIMAL_RE = re.compile(r"\d,\d{1,2}[KMBTqQsSONDa-j]", re.IGNORECASE)
_PERIOD_DECIMAL_RE = re.compile(r"\d\.\d{1,2}[KMBTqQsSONDa-j]", re.IGNORECASE)

_CAPITALIZED_MONTH_RE = re.compile(r"^[A-Z][a-z]{2,}\s+\d")
_LOWERCASE_MONTH_RE = re.compile(r"^\S+\.?\s+\d")

DECIMAL_CANARY_KEYS: Final[tuple[tuple[str, str], ...]] = (
    ("coins_earned", "Coins earned"),
    ("damage_dealt", "Damage dealt"),
)
DATE_CANARY_KEYS: Final[tuple[str, str]] = ("battle_date", "Battle Date")


@dataclass(frozen=True, slots=True)
class FormatMismatchResult:
    """Detected formats and whether they disagree with configured settings.

    Attributes:
        number_mismatch: True when a decimal separator was detected and differs.
        date_mismatch: True when a date format was detected and differs.
        detected_decimal_separator: `.`/`,` or None when undetermined.
        detected_date_format: DateFormat or None when undetermined.
    """

    number_mismatch: bool
    date_mismatch: bool
    detected_decimal_separator: str | None
    detected_date_format: DateFormat | None

    @property
    def has_mismatch(self) -> bool:
        """Return True when either check found a mismatch."""

        return self.number_mismatch or self.date_mismatch


def detect_decimal_separator_from_value(value: str | None) -> str | None:
    """Infer the decimal separator from a shorthand value such as `43,91T`.

    Args:
        value: Raw number string.

    Returns:
        `,` or `.` when the value has a fractional part before a magnitude
        suffix; None for integers (`100K`) or missing input.
    """

    if not value:
        return None
    if _COMMA_DECIMAL_RE.search(value):
        return ","
    if _PERIOD_DECIMAL_RE.search(value):
        return "."
    return None


def detect_date_format_from_value(value: str | None) -> DateFormat | None:
    """Infer the battle date layout from a raw date string.

    Args:
        value: Raw battle date such as `Nov 26, 2025 13:14` or `déc. 25, 2025 12:00`.

    Returns:
        DateFormat, or None for ISO-style or unrecognized text.
    """

    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None

    if _CAPITALIZED_MONTH_RE.match(trimmed):
        return DateFormat.month_first

    first = trimmed[0]
    if first == first.lower() and first != first.upper():
        if _LOWERCASE_MONTH_RE.match(trimmed):
            return DateFormat.month_first_lowercase
    return None


def _first_present(raw_field_map: Mapping[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        candidate = raw_field_map.get(key)
        if candidate:
            return candidate
    return None


def detect_format_mismatch(
    raw_field_map: Mapping[str, str],
    settings: ImportFormatSettings,
) -> FormatMismatchResult:
    """Compare canary values in a raw field map against configured settings.

    Args:
        raw_field_map: Source label -> raw value, as extracted from the paste.
        settings: The configured import format.

    Returns:
        FormatMismatchResult.
    """

    detected_separator: str | None = None
    for keys in DECIMAL_CANARY_KEYS:
        detected_separator = detect_decimal_separator_from_value(
            _first_present(raw_field_map, keys)
        )
        if detected_separator is not None:
            break

    detected_date_format = detect_date_format_from_value(
        _first_present(raw_field_map, DATE_CANARY_KEYS)
    )

    return FormatMismatchResult(
        number_mismatch=(
            detected_separator is not None and detected_separator != settings.decimal_separator
        ),
        date_mismatch=(
            detected_date_format is not None and detected_date_format != settings.date_format
        ),
        detected_decimal_separator=detected_separator,
        detected_date_format=detected_date_format,
    )
