"""Best-effort unit/quantity parsing utilities.

Battle Reports express most values as compact numeric strings (`7.67M`,
`43,91T`, `$55.90M`, `x1.15`, `4.96aa`). This module normalizes them into
Decimals while honoring the decimal separator of the source data.

This module is intentionally:
- pure (no Django imports, no database writes),
- defensive (never raises on unknown formats).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Final

from .dto import CANONICAL_STORAGE_FORMAT, ImportFormatSettings


class UnitType(Enum):
    """Supported unit categories."""

    coins = "coins"
    cash = "cash"
    damage = "damage"
    count = "count"
    time = "time"
    multiplier = "multiplier"


@dataclass(frozen=True)
class Quantity:
    """A parsed quantity with both raw and normalized representations.

    Attributes:
        raw_value: The original raw string value (trimmed).
        normalized_value: The parsed numeric value as a Decimal, or None if the
            value could not be parsed.
        magnitude: The canonical magnitude suffix (e.g. `K`, `T`, `q`, `aa`),
            or None when not applicable.
        unit_type: The category of unit this value represents.
    """

    raw_value: str
    normalized_value: Decimal | None
    magnitude: str | None
    unit_type: UnitType


# Single-letter suffixes are case-sensitive past T (q/Q and s/S differ).
_MAGNITUDE_MULTIPLIERS: Final[dict[str, Decimal]] = {
    "": Decimal(1),
    "K": Decimal(10) ** 3,
    "M": Decimal(10) ** 6,
    "B": Decimal(10) ** 9,
    "T": Decimal(10) ** 12,
    "q": Decimal(10) ** 15,
    "Q": Decimal(10) ** 18,
    "s": Decimal(10) ** 21,
    "S": Decimal(10) ** 24,
    "O": Decimal(10) ** 27,
    "N": Decimal(10) ** 30,
    "D": Decimal(10) ** 33,
}
_MAGNITUDE_MULTIPLIERS.update(
    {f"a{letter}": Decimal(10) ** (36 + 3 * offset) for offset, letter in enumerate("abcdefghij")}
)

# Largest first, for formatting.
_FORMAT_SCALE: Final[tuple[tuple[str, Decimal], ...]] = tuple(
    sorted(
        ((suffix, multiplier) for suffix, multiplier in _MAGNITUDE_MULTIPLIERS.items() if suffix),
        key=lambda item: item[1],
        reverse=True,
    )
)

_COMPACT_RE = re.compile(r"^(?P<number>[+-]?(?:\d+(?:\.\d*)?|\.\d+))\s*(?P<suffix>[A-Za-z]{1,2})?$")
_GROUPING_CHARACTERS: Final[frozenset[str]] = frozenset({",", ".", " ", "\u00a0", "\u202f", "'"})


def resolve_magnitude(suffix: str) -> str | None:
    """Return the canonical magnitude suffix for user-typed casing.

    Args:
        suffix: Suffix exactly as it appeared after the number.

    Returns:
        The canonical key into the multiplier table, or None when unknown.

    Notes:
        An exact match always wins so `q` (quadrillion) and `Q` (quintillion)
        stay distinct. Otherwise lowercase `k/m/b/t` resolve to their uppercase
        forms and two-letter tiers are matched case-insensitively.
    """

    if suffix in _MAGNITUDE_MULTIPLIERS:
        return suffix
    if len(suffix) == 1 and suffix.upper() in _MAGNITUDE_MULTIPLIERS:
        return suffix.upper()
    if len(suffix) == 2 and suffix.lower() in _MAGNITUDE_MULTIPLIERS:
        return suffix.lower()
    return None


def parse_quantity(
    raw_value: str,
    *,
    unit_type: UnitType = UnitType.count,
    import_format: ImportFormatSettings | None = None,
) -> Quantity:
    """Parse a compact quantity string into a normalized Decimal.

    Args:
        raw_value: Raw value string (e.g. `7.67M`, `43,91T`, `x1.15`, `15%`).
        unit_type: Unit category to assign for non-annotated values.
        import_format: Separators used by the source data. Defaults to the
            canonical period-decimal format.

    Returns:
        Quantity where `normalized_value` is None when parsing fails.

    Notes:
        - A leading `x` forces `unit_type=multiplier` and parses the remainder.
        - A trailing `%` forces `unit_type=multiplier` and normalizes as a
          fraction (e.g. `15%` -> `0.15`).
    """

    trimmed = (raw_value or "").strip()
    if not trimmed:
        return Quantity(
            raw_value=trimmed, normalized_value=None, magnitude=None, unit_type=unit_type
        )

    import_format = import_format or CANONICAL_STORAGE_FORMAT

    if trimmed[:1].casefold() == "x":
        return _parse_multiplier(trimmed, import_format=import_format)

    if trimmed.endswith("%"):
        return _parse_percent(trimmed, import_format=import_format)

    return _parse_compact_number(trimmed, unit_type=unit_type, import_format=import_format)


def parse_shorthand_number(value: str, import_format: ImportFormatSettings | None = None) -> Decimal:
    """Parse a shorthand number such as `43.91T`, defaulting to zero.

    Args:
        value: Raw value string.
        import_format: Separators used by the source data.

    Returns:
        The parsed Decimal, or `Decimal(0)` when the value cannot be parsed.
    """

    parsed = parse_quantity(value, import_format=import_format)
    if parsed.normalized_value is None:
        return Decimal(0)
    return parsed.normalized_value


def _parse_multiplier(value: str, *, import_format: ImportFormatSettings) -> Quantity:
    """Parse `x1.15` multiplier strings."""

    number_text = value[1:].strip()
    number = _parse_decimal(number_text, import_format=import_format)
    return Quantity(
        raw_value=value.strip(),
        normalized_value=number,
        magnitude=None,
        unit_type=UnitType.multiplier,
    )


def _parse_percent(value: str, *, import_format: ImportFormatSettings) -> Quantity:
    """Parse percent strings like `15%` into fractional multipliers."""

    number_text = value[:-1].strip()
    number = _parse_decimal(number_text, import_format=import_format)
    if number is None:
        normalized = None
    else:
        normalized = number / Decimal(100)
    return Quantity(
        raw_value=value.strip(),
        normalized_value=normalized,
        magnitude=None,
        unit_type=UnitType.multiplier,
    )


def _parse_compact_number(
    value: str, *, unit_type: UnitType, import_format: ImportFormatSettings
) -> Quantity:
    """Parse `7.67M`-style compact numbers."""

    cleaned = value.strip()
    number_text = _normalize_separators(cleaned.replace("$", ""), import_format=import_format)
    match = _COMPACT_RE.match(number_text)
    if match is None:
        return Quantity(raw_value=cleaned, normalized_value=None, magnitude=None, unit_type=unit_type)

    suffix = match.group("suffix") or ""
    magnitude = resolve_magnitude(suffix)
    if magnitude is None:
        return Quantity(raw_value=cleaned, normalized_value=None, magnitude=suffix, unit_type=unit_type)

    number = _to_decimal(match.group("number"))
    if number is None:
        normalized = None
    else:
        normalized = number * _MAGNITUDE_MULTIPLIERS[magnitude]

    return Quantity(
        raw_value=cleaned,
        normalized_value=normalized,
        magnitude=magnitude or None,
        unit_type=unit_type,
    )


def _normalize_separators(text: str, *, import_format: ImportFormatSettings) -> str:
    """Drop grouping characters and convert the decimal separator to `.`."""

    decimal_separator = import_format.decimal_separator
    kept = [
        char
        for char in text.strip()
        if char == decimal_separator or char not in _GROUPING_CHARACTERS
    ]
    normalized = "".join(kept)
    if decimal_separator != ".":
        normalized = normalized.replace(decimal_separator, ".")
    return normalized


def _parse_decimal(number_text: str, *, import_format: ImportFormatSettings) -> Decimal | None:
    """Parse a Decimal from a Battle Report-style numeric string."""

    return _to_decimal(_normalize_separators(number_text, import_format=import_format))


def _to_decimal(cleaned: str) -> Decimal | None:
    """Convert already-normalized text into a Decimal."""

    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


def format_large_number(
    value: Decimal | float | int,
    import_format: ImportFormatSettings | None = None,
) -> str:
    """Format a value using scale suffixes with one decimal place.

    Args:
        value: Numeric value to format.
        import_format: Controls the decimal separator of the output. Defaults
            to the canonical period-decimal format.

    Returns:
        `123` for values below one thousand, otherwise e.g. `1.5M`, `43.9T`,
        `1aa`. A trailing `.0` is dropped.
    """

    decimal_separator = (import_format or CANONICAL_STORAGE_FORMAT).decimal_separator
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    magnitude = abs(number)
    if magnitude < 1000:
        return str(int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP)))

    index = len(_FORMAT_SCALE) - 1
    for candidate_index, (_, candidate_multiplier) in enumerate(_FORMAT_SCALE):
        if magnitude >= candidate_multiplier:
            index = candidate_index
            break

    suffix, multiplier = _FORMAT_SCALE[index]
    scaled = (number / multiplier).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if abs(scaled) >= 1000 and index > 0:
        # 999.95K rounds up into the next scale.
        suffix, multiplier = _FORMAT_SCALE[index - 1]
        scaled = (number / multiplier).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    text = f"{scaled:f}"
    if text.endswith(".0"):
        text = text[:-2]
    if decimal_separator != ".":
        text = text.replace(".", decimal_separator)
    return f"{text}{suffix}"


_TRAILING_SUFFIX_RE = re.compile(r"([A-Za-z]{1,2})$")


def format_canonical_quantity(value: Decimal, raw_value: str) -> str:
    """Re-express a parsed number in the canonical storage format.

    Args:
        value: Parsed value of the field.
        raw_value: Text the value was parsed from, in any supported format.

    Returns:
        `raw_value` when it already parses to `value` canonically; otherwise
        the exact value rewritten with a `.` decimal and no grouping, keeping
        the raw text's `x` prefix, `%` suffix, `$` sign or magnitude suffix.
        Unparseable raw text is returned unchanged.
    """

    raw = raw_value.strip()
    if parse_quantity(raw).normalized_value == value:
        return raw
    if value == 0 and not any(char.isdigit() for char in raw):
        return raw

    if raw[:1] in {"x", "X"}:
        return f"{raw[0]}{_plain_decimal(value)}"
    if raw.endswith("%"):
        return f"{_plain_decimal(value * 100)}%"

    prefix = "$" if raw.startswith("$") else ""
    suffix_match = _TRAILING_SUFFIX_RE.search(raw)
    if suffix_match is not None:
        suffix = resolve_magnitude(suffix_match.group(1))
        if suffix:
            return f"{prefix}{_plain_decimal(value / _MAGNITUDE_MULTIPLIERS[suffix])}{suffix}"
    return f"{prefix}{_plain_decimal(value)}"


def _plain_decimal(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros."""

    return f"{value.normalize():f}"
