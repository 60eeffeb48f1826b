"""Field-name normalization and typed FieldValue construction.

Game exports label their metrics in Title Case (`Coins earned`), snake_case
(`coins_earned`) or arbitrary spacing. All of them normalize to camelCase
internal names (`coinsEarned`). App-generated metadata lives in
underscore-prefixed internal fields (`_date`, `_notes`, ...).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Final

from .dates import construct_date, parse_battle_date
from .dto import CANONICAL_STORAGE_FORMAT, DateFormat, FieldDataType, FieldValue, ImportFormatSettings
from .durations import format_duration, parse_duration
from .notes_encoding import decode_notes_from_storage
from .quantity import format_large_number, parse_shorthand_number

FIELD_DATE: Final[str] = "_date"
FIELD_TIME: Final[str] = "_time"
FIELD_NOTES: Final[str] = "_notes"
FIELD_RUN_TYPE: Final[str] = "_runType"
FIELD_RANK: Final[str] = "_rank"

# Export order; internal fields precede game fields.
INTERNAL_FIELD_ORDER: Final[tuple[str, ...]] = (
    FIELD_DATE,
    FIELD_TIME,
    FIELD_NOTES,
    FIELD_RUN_TYPE,
    FIELD_RANK,
)

INTERNAL_FIELD_HEADERS: Final[dict[str, str]] = {
    FIELD_DATE: "_Date",
    FIELD_TIME: "_Time",
    FIELD_NOTES: "_Notes",
    FIELD_RUN_TYPE: "_Run Type",
    FIELD_RANK: "_Rank",
}

LEGACY_FIELD_MIGRATIONS: Final[dict[str, str]] = {
    "date": FIELD_DATE,
    "time": FIELD_TIME,
    "notes": FIELD_NOTES,
    "runType": FIELD_RUN_TYPE,
    "run_type": FIELD_RUN_TYPE,
    "rank": FIELD_RANK,
    "placement": FIELD_RANK,
}

_EXACT_FIELD_TYPES: Final[dict[str, FieldDataType]] = {
    "_date": FieldDataType.date,
    "date": FieldDataType.date,
    "_time": FieldDataType.date,
    "time": FieldDataType.date,
    "_notes": FieldDataType.string,
    "notes": FieldDataType.string,
    "_runtype": FieldDataType.string,
    "runtype": FieldDataType.string,
    "_run_type": FieldDataType.string,
    "run_type": FieldDataType.string,
    "_run type": FieldDataType.string,
    "run type": FieldDataType.string,
    "battle date": FieldDataType.date,
    "battledate": FieldDataType.date,
    "battle_date": FieldDataType.date,
    "killed by": FieldDataType.string,
}

# Substring rules, first match wins.
_PATTERN_FIELD_TYPES: Final[tuple[tuple[str, FieldDataType], ...]] = (
    ("time", FieldDataType.duration),
    ("date", FieldDataType.date),
)

_NOTES_KEYS: Final[frozenset[str]] = frozenset({"_notes", "notes"})

_CAMEL_BOUNDARY_RE = re.compile(r"[^a-zA-Z0-9]+(.)")


def to_camel_case(text: str) -> str:
    """Lowercase `text` and collapse each non-alphanumeric run into a capital.

    `Coins earned` -> `coinsEarned`, `coins_earned` -> `coinsEarned`.
    """

    return _CAMEL_BOUNDARY_RE.sub(lambda match: match.group(1).upper(), text.lower())


def is_internal_field(field_name: str) -> bool:
    """Return True for app-generated underscore-prefixed fields."""

    return field_name in INTERNAL_FIELD_HEADERS


def migrate_legacy_field_name(field_name: str) -> str:
    """Return the internal name for a legacy field, or the name unchanged."""

    return LEGACY_FIELD_MIGRATIONS.get(field_name, field_name)


def normalize_field_name(header: str) -> str:
    """Convert a source header into its internal camelCase field name.

    Underscore-prefixed headers (`_Run Type`) keep their prefix
    (`_runType`); other headers are camelCased and legacy names migrated.
    """

    cleaned = header.strip()
    if cleaned.startswith("_"):
        return "_" + to_camel_case(cleaned[1:])
    if cleaned in LEGACY_FIELD_MIGRATIONS:
        return LEGACY_FIELD_MIGRATIONS[cleaned]
    return migrate_legacy_field_name(to_camel_case(cleaned))


def get_field_data_type(original_key: str, raw_value: str | None = None) -> FieldDataType:
    """Decide how a field's raw value is interpreted.

    Args:
        original_key: Source label/header.
        raw_value: Raw value, used for tournament tiers such as `10+`.

    Returns:
        FieldDataType; unrecognized names default to number.
    """

    lower_key = original_key.strip().lower()
    exact = _EXACT_FIELD_TYPES.get(lower_key)
    if exact is not None:
        return exact

    if lower_key == "tier" and raw_value and "+" in raw_value:
        return FieldDataType.string

    for pattern, data_type in _PATTERN_FIELD_TYPES:
        if pattern in lower_key:
            return data_type
    return FieldDataType.number


def create_field(
    original_key: str,
    raw_value: str,
    import_format: ImportFormatSettings | None = None,
) -> FieldValue:
    """Build a FieldValue with typed value and canonical display text.

    Args:
        original_key: Source label/header, kept for export.
        raw_value: Raw text as it appeared in the source.
        import_format: Separators and date layout of the source data.

    Returns:
        FieldValue. Unparseable numbers become 0; unparseable dates keep the
        raw text as their value.
    """

    import_format = import_format or CANONICAL_STORAGE_FORMAT
    data_type = get_field_data_type(original_key, raw_value)

    if data_type is FieldDataType.duration:
        seconds = parse_duration(raw_value)
        return FieldValue(
            value=seconds,
            raw_value=raw_value,
            display_value=format_duration(seconds),
            original_key=original_key,
            data_type=data_type,
        )

    if data_type is FieldDataType.date:
        parsed = _parse_date_value(raw_value, import_format.date_format)
        return FieldValue(
            value=parsed if parsed is not None else raw_value,
            raw_value=raw_value,
            display_value=raw_value,
            original_key=original_key,
            data_type=data_type,
        )

    if data_type is FieldDataType.string:
        text = raw_value
        if original_key.strip().lower() in _NOTES_KEYS:
            # Stored decoded so exports re-encode exactly once.
            text = decode_notes_from_storage(raw_value)
        return create_internal_field(original_key, text)

    number = parse_shorthand_number(raw_value, import_format)
    return FieldValue(
        value=number,
        raw_value=raw_value,
        display_value=format_large_number(number),
        original_key=original_key,
        data_type=FieldDataType.number,
    )


def _parse_date_value(raw_value: str, date_format: DateFormat) -> datetime | None:
    parsed = parse_battle_date(raw_value, date_format)
    if parsed is None:
        parsed = construct_date(raw_value)
    return parsed


def create_internal_field(original_key: str, value: str) -> FieldValue:
    """Build a string FieldValue for app-generated metadata."""

    return FieldValue(
        value=value,
        raw_value=value,
        display_value=value,
        original_key=original_key,
        data_type=FieldDataType.string,
    )


def build_fields(
    raw_field_map: Mapping[str, str],
    import_format: ImportFormatSettings | None = None,
) -> dict[str, FieldValue]:
    """Create FieldValues for every non-empty entry of a label -> raw map.

    Keys are normalized with `normalize_field_name`; when two labels
    normalize to the same name the last one wins.
    """

    fields: dict[str, FieldValue] = {}
    for original_key, raw_value in raw_field_map.items():
        if not raw_value:
            continue
        field_name = normalize_field_name(original_key)
        if not field_name:
            continue
        fields[field_name] = create_field(original_key, raw_value, import_format)
    return fields
