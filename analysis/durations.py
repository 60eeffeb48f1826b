"""Duration parsing and formatting for Battle Report time values."""

from __future__ import annotations

import re

_UNIT_DURATION_RE = re.compile(
    r"^\s*(?:(?P<days>\d+)\s*d)?\s*(?:(?P<hours>\d+)\s*h)?\s*(?:(?P<minutes>\d+)\s*m)?\s*(?:(?P<seconds>\d+)\s*s)?\s*$",
    re.IGNORECASE,
)


def parse_duration_seconds(value: str | None) -> int | None:
    """Parse a duration string into seconds, best-effort.

    Args:
        value: Raw duration such as `7h 46m 6s`, `1d 13h 24m 51s`,
            `00:12:34`, or a bare number of seconds.

    Returns:
        Total whole seconds, or None when the value is empty or unrecognized.
    """

    if value is None:
        return None

    cleaned = value.strip()
    if not cleaned:
        return None

    units = _parse_unit_duration_seconds(cleaned)
    if units is not None:
        return units

    hms = _parse_hms_seconds(cleaned)
    if hms is not None:
        return hms

    digits = cleaned.replace(",", "")
    if digits.isdigit():
        return int(digits)

    return None


def parse_duration(value: str | None) -> int:
    """Parse a duration string into seconds, defaulting to zero."""

    parsed = parse_duration_seconds(value)
    return parsed if parsed is not None else 0


def _parse_unit_duration_seconds(value: str) -> int | None:
    """Parse `1d 13h 24m 51s`-style durations; unit letters are case-insensitive."""

    match = _UNIT_DURATION_RE.match(value)
    if match is None:
        return None
    parts = match.groupdict()
    if all(part is None for part in parts.values()):
        return None

    days = int(parts["days"] or 0)
    hours = int(parts["hours"] or 0)
    minutes = int(parts["minutes"] or 0)
    seconds = int(parts["seconds"] or 0)
    return days * 86_400 + hours * 3_600 + minutes * 60 + seconds


def _parse_hms_seconds(value: str) -> int | None:
    """Parse `HH:MM:SS` or `MM:SS` formatted durations."""

    parts = value.split(":")
    if len(parts) not in {2, 3}:
        return None
    if not all(p.strip().isdigit() for p in parts):
        return None

    numbers = [int(p) for p in parts]
    if len(numbers) == 2:
        minutes, seconds = numbers
        return minutes * 60 + seconds

    hours, minutes, seconds = numbers
    return hours * 3600 + minutes * 60 + seconds


def format_duration(seconds: int) -> str:
    """Format seconds as `1d 13h 24m 51s`, omitting zero units (`0s` when empty)."""

    days, remainder = divmod(int(seconds), 86_400)
    hours, remainder = divmod(remainder, 3_600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0:
        parts.append(f"{secs}s")
    return " ".join(parts) or "0s"


def format_duration_for_key(seconds: int) -> str:
    """Format seconds as `7h 45m 33s`, always including every unit.

    Days are folded into hours so the output depends only on the total.
    """

    hours, remainder = divmod(int(seconds), 3_600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"
