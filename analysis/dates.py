"""Battle date parsing, validation and ISO formatting.

Battle Reports carry a single combined "Battle Date" value whose layout
depends on the device language:

- `month-first`: `Oct 14, 2025 13:14` (capitalized English month)
- `month-first-lowercase`: `nov. 20, 2025 22:28`, `déc. 25, 2025 12:00`,
  `okt. 14, 2025 13:14` (lowercase English/French/German abbreviations)

Clock times are taken as written and attached to UTC so derived `_date` and
`_time` values match the report text exactly.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Final, Protocol

from .dto import DateFormat

_ENGLISH_MONTHS: Final[dict[str, int]] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
_ENGLISH_MONTHS.update(
    {name.lower(): index for index, name in enumerate(calendar.month_name) if name}
)

_FRENCH_MONTHS: Final[dict[str, int]] = {
    "janv": 1,
    "févr": 2,
    "fevr": 2,
    "mars": 3,
    "avr": 4,
    "mai": 5,
    "juin": 6,
    "juil": 7,
    "août": 8,
    "aout": 8,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "déc": 12,
    "dec": 12,
}

_GERMAN_MONTHS: Final[dict[str, int]] = {
    "jan": 1,
    "jän": 1,
    "feb": 2,
    "mär": 3,
    "märz": 3,
    "apr": 4,
    "mai": 5,
    "jun": 6,
    "juni": 6,
    "jul": 7,
    "juli": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "okt": 10,
    "nov": 11,
    "dez": 12,
}

# Keys are lowercase and carry no trailing period.
MONTH_MAPPINGS: Final[dict[DateFormat, dict[str, int]]] = {
    DateFormat.month_first: dict(_ENGLISH_MONTHS),
    DateFormat.month_first_lowercase: {**_ENGLISH_MONTHS, **_GERMAN_MONTHS, **_FRENCH_MONTHS},
}

_CANONICAL_MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

# month, day, year, hour, minute, optional AM/PM
BATTLE_DATE_RE = re.compile(
    r"^(\S+?)\.?\s+(\d{1,2}),?\s+(\d{4})\s+(\d{1,2}):(\d{2})(?:\s*([AP]M))?$", re.IGNORECASE
)

_NATIVE_FORMATS: Final[tuple[str, ...]] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%b %d, %Y %H:%M",
    "%B %d, %Y %H:%M",
)

_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})")

DEFAULT_MIN_BATTLE_DATE: Final[datetime] = datetime(2020, 1, 1, tzinfo=timezone.utc)


class BattleDateErrorCode(str, Enum):
    """Reasons a battle date failed validation."""

    empty = "empty"
    invalid_format = "invalid-format"
    invalid_month = "invalid-month"
    invalid_hour = "invalid-hour"
    invalid_minute = "invalid-minute"
    invalid_day = "invalid-day"
    future_date = "future-date"
    too_old = "too-old"


@dataclass(frozen=True, slots=True)
class BattleDateValidationError:
    """Detailed validation failure for user feedback.

    Args:
        code: Machine-readable failure reason.
        raw_value: The value that failed validation.
        message: Human-readable description.
        suggestion: Optional hint for fixing the value.
    """

    code: BattleDateErrorCode
    raw_value: str
    message: str
    suggestion: str | None = None


@dataclass(frozen=True, slots=True)
class BattleDateValidationResult:
    """Outcome of `validate_battle_date`; exactly one of `date`/`error` is set."""

    date: datetime | None = None
    error: BattleDateValidationError | None = None

    @property
    def success(self) -> bool:
        """Return True when the value parsed and passed every check."""

        return self.date is not None and self.error is None


class _HasRawValue(Protocol):
    raw_value: str


def format_iso_date(value: datetime) -> str:
    """Format a datetime as `YYYY-MM-DD`."""

    return value.strftime("%Y-%m-%d")


def format_iso_time(value: datetime) -> str:
    """Format a datetime as 24-hour `HH:MM:SS`."""

    return value.strftime("%H:%M:%S")


def format_filename_datetime(value: datetime) -> str:
    """Format a datetime for filenames (`YYYY-MM-DD_HH-MM-SS`)."""

    return value.strftime("%Y-%m-%d_%H-%M-%S")


def format_canonical_battle_date(value: datetime) -> str:
    """Format a datetime in the canonical storage layout (`Oct 14, 2025 13:14`)."""

    month = _CANONICAL_MONTH_ABBREVIATIONS[value.month - 1]
    return f"{month} {value.day}, {value.year} {value.hour:02d}:{value.minute:02d}"


def derive_date_time_from_battle_date(battle_date: datetime) -> tuple[str, str]:
    """Return `(YYYY-MM-DD, HH:MM:SS)` strings for the internal date/time fields."""

    return format_iso_date(battle_date), format_iso_time(battle_date)


def lookup_month(month_text: str, date_format: DateFormat | str) -> int | None:
    """Resolve a month token (with or without trailing period) to 1-12."""

    mappings = MONTH_MAPPINGS[DateFormat(date_format)]
    key = month_text.strip().lower().rstrip(".")
    return mappings.get(key)


def parse_battle_date(
    value: str | None,
    date_format: DateFormat | str = DateFormat.month_first,
) -> datetime | None:
    """Parse a Battle Report date string into a UTC datetime.

    Args:
        value: Raw battle date string.
        date_format: Layout configured for the source data.

    Returns:
        Timezone-aware datetime, or None when the value cannot be parsed.
    """

    if not value or not value.strip():
        return None
    date_format = DateFormat(date_format)
    cleaned = value.strip()

    if date_format is DateFormat.month_first:
        native = _try_native_formats(cleaned)
        if native is not None:
            return native

    return _parse_with_month_table(cleaned, date_format)


def _try_native_formats(value: str) -> datetime | None:
    """Try fixed strptime layouts and ISO-8601 (best-effort)."""

    for fmt in _NATIVE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return as_utc(parsed)

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return as_utc(parsed)


def _parse_with_month_table(value: str, date_format: DateFormat) -> datetime | None:
    """Parse `mon. DD, YYYY HH:MM` using the locale month tables."""

    match = BATTLE_DATE_RE.match(value)
    if match is None:
        return None

    month_text, day, year, hour_text, minute, meridiem = match.groups()
    month = lookup_month(month_text, date_format)
    hour = _to_24_hour(int(hour_text), meridiem)
    if month is None or hour is None:
        return None
    try:
        return datetime(int(year), month, int(day), hour, int(minute), tzinfo=timezone.utc)
    except ValueError:
        return None


def _to_24_hour(hour: int, meridiem: str | None) -> int | None:
    """Convert a 12-hour clock hour to 24-hour; None when out of range."""

    if meridiem is None:
        return hour
    if hour < 1 or hour > 12:
        return None
    hour %= 12
    return hour + 12 if meridiem.upper() == "PM" else hour


def as_utc(parsed: datetime) -> datetime:
    """Attach UTC to a naive datetime or convert an aware one to UTC."""

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def construct_date(date_str: str | None, time_str: str | None = None) -> datetime | None:
    """Combine an ISO date and optional `HH:MM[:SS]` time into a UTC datetime.

    Args:
        date_str: Date string such as `2025-10-14`.
        time_str: Optional time string such as `13:14:00`.

    Returns:
        Timezone-aware datetime, or None when the parts cannot be combined.
    """

    if not date_str or not date_str.strip():
        return None
    combined = date_str.strip()
    if time_str and time_str.strip():
        combined = f"{combined} {time_str.strip()}"

    try:
        parsed = datetime.fromisoformat(combined)
    except ValueError:
        return _try_native_formats(combined)
    return as_utc(parsed)


def parse_timestamp_from_fields(
    fields: Mapping[str, _HasRawValue],
    fallback: datetime | None = None,
    *,
    date_format: DateFormat | str = DateFormat.month_first,
) -> datetime:
    """Resolve a run timestamp from its fields.

    Priority: `battleDate`, then `_date`/`_time` (or legacy `date`/`time`),
    then `fallback`, then the current time.
    """

    battle_date_field = fields.get("battleDate")
    if battle_date_field is not None:
        battle_date = parse_battle_date(battle_date_field.raw_value, date_format)
        if battle_date is not None:
            return battle_date

    date_field = fields.get("_date") or fields.get("date")
    time_field = fields.get("_time") or fields.get("time")
    if date_field is not None:
        timestamp = construct_date(
            date_field.raw_value, time_field.raw_value if time_field is not None else None
        )
        if timestamp is not None:
            return timestamp

    if fallback is not None:
        return as_utc(fallback)
    return datetime.now(tz=timezone.utc)


def validate_battle_date(
    value: str | None,
    *,
    date_format: DateFormat | str = DateFormat.month_first,
    warn_future_dates: bool = True,
    min_date: datetime | None = None,
    now: datetime | None = None,
) -> BattleDateValidationResult:
    """Validate a battle date and return either the datetime or a detailed error.

    Args:
        value: Raw battle date string.
        date_format: Layout configured for the source data.
        warn_future_dates: Reject dates more than one day in the future.
        min_date: Earliest plausible date (defaults to 2020-01-01).
        now: Reference time for the future check (defaults to now).

    Returns:
        BattleDateValidationResult.
    """

    raw = value if isinstance(value, str) else ""
    if not raw.strip():
        message = "Battle date is empty" if not raw else "Battle date contains only whitespace"
        return _failure(
            BattleDateErrorCode.empty,
            raw,
            message,
            "Ensure the Battle Date field contains a valid date",
        )

    date_format = DateFormat(date_format)
    cleaned = raw.strip()

    parsed: datetime | None = None
    if date_format is DateFormat.month_first:
        parsed = _try_native_formats(cleaned)
        if parsed is not None:
            time_error = _validate_time_in_text(cleaned, raw)
            if time_error is not None:
                return BattleDateValidationResult(error=time_error)

    if parsed is None:
        manual = _validate_manually(cleaned, raw, date_format)
        if isinstance(manual, BattleDateValidationError):
            return BattleDateValidationResult(error=manual)
        parsed = manual

    range_error = _validate_date_range(
        parsed, raw, warn_future_dates=warn_future_dates, min_date=min_date, now=now
    )
    if range_error is not None:
        return BattleDateValidationResult(error=range_error)
    return BattleDateValidationResult(date=parsed)


def _failure(
    code: BattleDateErrorCode, raw: str, message: str, suggestion: str | None = None
) -> BattleDateValidationResult:
    return BattleDateValidationResult(
        error=BattleDateValidationError(code=code, raw_value=raw, message=message, suggestion=suggestion)
    )


def _validate_manually(
    value: str, raw: str, date_format: DateFormat
) -> datetime | BattleDateValidationError:
    match = BATTLE_DATE_RE.match(value)
    if match is None:
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_format,
            raw_value=raw,
            message=f'Battle date format not recognized: "{raw}"',
            suggestion='Expected format: "Oct 14, 2025 13:14" or "nov. 20, 2025 22:28"',
        )

    month_text, day_text, year_text, hour_text, minute_text, meridiem = match.groups()
    month = lookup_month(month_text, date_format)
    if month is None:
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_month,
            raw_value=raw,
            message=f'Unknown month name: "{month_text}"',
            suggestion="Use abbreviated month names like Jan, Feb, Mar, Apr, May, Jun, Jul, Aug, Sep, Oct, Nov, Dec",
        )

    year, day, minute = int(year_text), int(day_text), int(minute_text)
    hour = _to_24_hour(int(hour_text), meridiem)
    if hour is None:
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_hour,
            raw_value=raw,
            message=f"Invalid hour: {int(hour_text)}",
            suggestion="Hour must be between 1 and 12 with AM/PM",
        )
    time_error = _validate_time_range(hour, minute, raw)
    if time_error is not None:
        return time_error

    max_days = calendar.monthrange(year, month)[1]
    if day < 1 or day > max_days:
        month_name = calendar.month_name[month]
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_day,
            raw_value=raw,
            message=f"Invalid day {day} for {month_name}",
            suggestion=f"{month_name} {year} has {max_days} days",
        )

    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def _validate_time_in_text(value: str, raw: str) -> BattleDateValidationError | None:
    match = _TIME_RE.search(value)
    if match is None:
        return None
    return _validate_time_range(int(match.group(1)), int(match.group(2)), raw)


def _validate_time_range(hour: int, minute: int, raw: str) -> BattleDateValidationError | None:
    if hour < 0 or hour > 23:
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_hour,
            raw_value=raw,
            message=f"Invalid hour: {hour}",
            suggestion="Hour must be between 0 and 23",
        )
    if minute < 0 or minute > 59:
        return BattleDateValidationError(
            code=BattleDateErrorCode.invalid_minute,
            raw_value=raw,
            message=f"Invalid minute: {minute}",
            suggestion="Minute must be between 0 and 59",
        )
    return None


def _validate_date_range(
    parsed: datetime,
    raw: str,
    *,
    warn_future_dates: bool,
    min_date: datetime | None,
    now: datetime | None,
) -> BattleDateValidationError | None:
    if warn_future_dates:
        reference = now or datetime.now(tz=timezone.utc)
        # One day of slack for timezone differences.
        if parsed > reference + timedelta(days=1):
            return BattleDateValidationError(
                code=BattleDateErrorCode.future_date,
                raw_value=raw,
                message="Date is in the future",
                suggestion="Check that the year and date are correct",
            )

    if parsed < (min_date or DEFAULT_MIN_BATTLE_DATE):
        return BattleDateValidationError(
            code=BattleDateErrorCode.too_old,
            raw_value=raw,
            message="Date appears to be too old",
            suggestion="Check that the year is correct",
        )
    return None
