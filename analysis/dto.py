"""DTO types shared by the import, detection and aggregation modules.

DTOs are plain data containers. They intentionally avoid any Django/ORM
dependencies so parsing and duplicate detection stay pure and testable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Final, Union


class RunType(str, Enum):
    """Closed set of run categories."""

    farm = "farm"
    tournament = "tournament"
    milestone = "milestone"


class FieldDataType(str, Enum):
    """How a FieldValue's `value` should be interpreted."""

    number = "number"
    string = "string"
    date = "date"
    duration = "duration"


class DateFormat(str, Enum):
    """Battle date layouts produced by the game export."""

    month_first = "month-first"
    month_first_lowercase = "month-first-lowercase"


DECIMAL_SEPARATORS: Final[tuple[str, ...]] = (".", ",")
THOUSANDS_SEPARATORS: Final[tuple[str, ...]] = (",", ".", " ", "")

FieldScalar = Union[Decimal, int, str, datetime]


@dataclass(frozen=True, slots=True)
class ImportFormatSettings:
    """Shape of incoming import text.

    Attributes:
        decimal_separator: `.` or `,`.
        thousands_separator: `,`, `.`, a space, or empty for none.
        date_format: Battle date layout used by the source data.
    """

    decimal_separator: str = "."
    thousands_separator: str = ","
    date_format: DateFormat = DateFormat.month_first

    def __post_init__(self) -> None:
        """Reject separators outside the supported sets."""

        if self.decimal_separator not in DECIMAL_SEPARATORS:
            raise ValueError(f"Unsupported decimal separator {self.decimal_separator!r}.")
        if self.thousands_separator not in THOUSANDS_SEPARATORS:
            raise ValueError(f"Unsupported thousands separator {self.thousands_separator!r}.")
        if self.thousands_separator == self.decimal_separator:
            raise ValueError("Thousands and decimal separators must differ.")
        if not isinstance(self.date_format, DateFormat):
            object.__setattr__(self, "date_format", DateFormat(self.date_format))


CANONICAL_STORAGE_FORMAT: Final[ImportFormatSettings] = ImportFormatSettings()


@dataclass(frozen=True, slots=True)
class FieldValue:
    """One parsed data point within a run.

    Attributes:
        value: Typed value used for computation.
        raw_value: Original string as it appeared in the source text.
        display_value: Pre-formatted string computed once at parse time.
        original_key: Source column/label name before camelCase normalization.
        data_type: Drives how `value` is interpreted.
    """

    value: FieldScalar
    raw_value: str
    display_value: str
    original_key: str
    data_type: FieldDataType


@dataclass(frozen=True, slots=True)
class RunRecord:
    """One play session.

    Attributes:
        id: Opaque identifier assigned at creation.
        timestamp: When the run was played.
        tier: Difficulty tier (0 only when the source omitted it).
        wave: Wave reached.
        coins_earned: Coins earned, unit-normalized.
        cells_earned: Cells earned, unit-normalized.
        real_time: Real-world duration in whole seconds.
        run_type: Run category.
        fields: camelCase field name -> FieldValue.
    """

    id: str
    timestamp: datetime
    tier: int
    wave: int
    coins_earned: Decimal
    cells_earned: Decimal
    real_time: int
    run_type: RunType
    fields: Mapping[str, FieldValue] = field(default_factory=dict)

    def field_value(self, field_name: str) -> FieldScalar | None:
        """Return the typed value for a field, or None when absent."""

        found = self.fields.get(field_name)
        return found.value if found is not None else None

    def field_raw(self, field_name: str) -> str:
        """Return the raw string for a field, or an empty string when absent."""

        found = self.fields.get(field_name)
        return found.raw_value if found is not None else ""
