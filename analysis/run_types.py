"""Run-type inference and tournament league labels."""

from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Final

from .dto import FieldDataType, FieldValue, RunType
from .fields import FIELD_RUN_TYPE

_LEADING_DIGITS_RE = re.compile(r"^\s*(\d+)")

# Minimum tier for each tournament league, highest first.
_LEAGUE_THRESHOLDS: Final[tuple[tuple[int, str], ...]] = (
    (14, "Legend"),
    (11, "Champion"),
    (8, "Platinum"),
    (5, "Gold"),
    (3, "Silver"),
    (1, "Copper"),
)


def parse_run_type(value: str | None) -> RunType | None:
    """Return the RunType for a recognized value (case-insensitive), else None."""

    if not value:
        return None
    try:
        return RunType(value.strip().lower())
    except ValueError:
        return None


def determine_run_type(tier_raw: str | None) -> RunType:
    """Infer the run type from a raw tier string: a trailing `+` means tournament."""

    if tier_raw and tier_raw.strip().endswith("+"):
        return RunType.tournament
    return RunType.farm


def detect_run_type_from_fields(fields: Mapping[str, FieldValue]) -> RunType:
    """Resolve a run's type from its fields.

    An explicit recognized `_runType` (or legacy `runType`) wins. Otherwise
    the raw tier string decides; no tier at all means farm.
    """

    for field_name in (FIELD_RUN_TYPE, "runType"):
        explicit = fields.get(field_name)
        if explicit is not None:
            run_type = parse_run_type(explicit.raw_value)
            if run_type is not None:
                return run_type

    tier_field = fields.get("tier")
    return determine_run_type(tier_field.raw_value if tier_field is not None else None)


def extract_tier_number(tier_field: FieldValue | None) -> int:
    """Return the numeric tier from a number field or a `10+` tournament string.

    Returns 0 when the tier is absent or unparseable.
    """

    if tier_field is None:
        return 0
    if tier_field.data_type is FieldDataType.number and isinstance(tier_field.value, (int, Decimal)):
        return max(int(tier_field.value), 0)
    match = _LEADING_DIGITS_RE.match(tier_field.raw_value)
    return int(match.group(1)) if match else 0


def get_tournament_league(tier: int) -> str | None:
    """Map a tournament tier to its league name (None for non-positive tiers)."""

    if tier <= 0:
        return None
    for minimum, league in _LEAGUE_THRESHOLDS:
        if tier >= minimum:
            return league
    return None


def format_tier_label(tier_raw: str | None, tier: int | None) -> str:
    """Format a tier for display, e.g. `8+ Platinum` for tournaments, `10` for farming."""

    if tier_raw and "+" in tier_raw:
        tier_number = tier if tier and tier > 0 else 0
        if not tier_number:
            match = _LEADING_DIGITS_RE.match(tier_raw)
            tier_number = int(match.group(1)) if match else 0
        if tier_number <= 0:
            return tier_raw
        league = get_tournament_league(tier_number)
        return f"{tier_number}+ {league}" if league else f"{tier_number}+"

    if tier and tier > 0:
        return str(tier)
    return tier_raw or "-"
