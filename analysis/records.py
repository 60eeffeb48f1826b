"""Assembly of RunRecords from parsed fields."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal

from .dates import as_utc
from .dto import FieldValue, RunRecord
from .run_types import detect_run_type_from_fields, extract_tier_number


class RunRecordError(ValueError):
    """Raised when a run violates the record invariants (e.g. tier < 1)."""


def new_run_id() -> str:
    """Return a fresh opaque run identifier."""

    return uuid.uuid4().hex


def _decimal_field(fields: Mapping[str, FieldValue], name: str) -> Decimal:
    found = fields.get(name)
    if found is None or isinstance(found.value, bool) or not isinstance(found.value, (int, Decimal)):
        return Decimal(0)
    return max(Decimal(found.value), Decimal(0))


def _int_field(fields: Mapping[str, FieldValue], name: str) -> int:
    return int(_decimal_field(fields, name))


def build_run_record(
    fields: Mapping[str, FieldValue],
    *,
    timestamp: datetime,
    run_id: str | None = None,
) -> RunRecord:
    """Derive the cached key stats from fields and build a RunRecord.

    Args:
        fields: Normalized field mapping.
        timestamp: Resolved run timestamp; naive values are taken as UTC.
        run_id: Existing identifier to keep; a new one is generated otherwise.

    Returns:
        RunRecord. Missing numeric stats default to 0.
    """

    return RunRecord(
        id=run_id or new_run_id(),
        timestamp=as_utc(timestamp),
        tier=extract_tier_number(fields.get("tier")),
        wave=_int_field(fields, "wave"),
        coins_earned=_decimal_field(fields, "coinsEarned"),
        cells_earned=_decimal_field(fields, "cellsEarned"),
        real_time=_int_field(fields, "realTime"),
        run_type=detect_run_type_from_fields(fields),
        fields=dict(fields),
    )


def validate_run_record(run: RunRecord) -> RunRecord:
    """Check the storage invariants of a run.

    Raises:
        RunRecordError: If tier < 1 or wave/real time are negative.
    """

    if run.tier < 1:
        raise RunRecordError("Run is missing a tier (tier must be at least 1).")
    if run.wave < 0:
        raise RunRecordError("Wave must be non-negative.")
    if run.real_time < 0:
        raise RunRecordError("Real time must be non-negative.")
    return run
