"""Composite-key duplicate detection for imported runs.

Two runs are the same session when they share tier, wave and real time;
coins and cells may differ because the game keeps updating a report after
it was first copied. Membership checks use hash sets; the existing run is
only located with a linear scan once a match is confirmed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .dto import RunRecord
from .durations import format_duration_for_key


@dataclass(frozen=True, slots=True)
class DuplicateDetectionResult:
    """Outcome of checking one run against existing runs."""

    is_duplicate: bool
    composite_key: str
    existing_run: RunRecord | None = None


@dataclass(frozen=True, slots=True)
class DuplicatePair:
    """An incoming run paired with the stored run it duplicates."""

    new_run: RunRecord
    existing_run: RunRecord
    composite_key: str


@dataclass(frozen=True, slots=True)
class BatchDuplicateResult:
    """Classification of an import batch.

    Attributes:
        new_runs: Runs to store, in input order.
        duplicates: Runs matching an existing run.
        composite_keys: Keys of `new_runs`, index-aligned.
    """

    new_runs: tuple[RunRecord, ...] = ()
    duplicates: tuple[DuplicatePair, ...] = ()
    composite_keys: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class KeyCollision:
    """Runs sharing a single composite key."""

    key: str
    runs: tuple[RunRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class KeyCollisionReport:
    """Diagnostic summary of composite-key uniqueness across a collection."""

    total_runs: int
    unique_keys: int
    collisions: tuple[KeyCollision, ...]


def generate_composite_key(run: RunRecord) -> str:
    """Return `tier|wave|Hh Mm Ss` for a run, e.g. `10|5006|7h 45m 33s`."""

    return f"{run.tier or 0}|{run.wave or 0}|{format_duration_for_key(run.real_time or 0)}"


def generate_composite_keys_set(runs: Iterable[RunRecord]) -> frozenset[str]:
    """Build the lookup set of composite keys for existing runs."""

    return frozenset(generate_composite_key(run) for run in runs)


def _find_by_key(existing_runs: Sequence[RunRecord], composite_key: str) -> RunRecord | None:
    for existing in existing_runs:
        if generate_composite_key(existing) == composite_key:
            return existing
    return None


def detect_duplicate(
    run: RunRecord,
    existing_keys: frozenset[str] | set[str],
    existing_runs: Sequence[RunRecord],
) -> DuplicateDetectionResult:
    """Check a single run against existing runs.

    Args:
        run: Incoming run.
        existing_keys: Keys from `generate_composite_keys_set(existing_runs)`.
        existing_runs: Stored runs, scanned only on a key match.

    Returns:
        DuplicateDetectionResult with the matching stored run when found.
    """

    composite_key = generate_composite_key(run)
    if composite_key not in existing_keys:
        return DuplicateDetectionResult(is_duplicate=False, composite_key=composite_key)
    return DuplicateDetectionResult(
        is_duplicate=True,
        composite_key=composite_key,
        existing_run=_find_by_key(existing_runs, composite_key),
    )


def detect_batch_duplicates(
    new_runs: Sequence[RunRecord],
    existing_keys: frozenset[str] | set[str],
    existing_runs: Sequence[RunRecord],
) -> BatchDuplicateResult:
    """Split an import batch into new runs and duplicates of stored runs.

    Args:
        new_runs: Incoming runs in input order.
        existing_keys: Keys of the stored runs.
        existing_runs: Stored runs.

    Returns:
        BatchDuplicateResult.

    Notes:
        - A run matching a stored key becomes a DuplicatePair. If the stored
          run cannot be located the incoming run is dropped.
        - Within the batch the first occurrence of a key is new; later
          occurrences are absorbed without being reported.
        - Inputs are never mutated.
    """

    accepted: list[RunRecord] = []
    duplicates: list[DuplicatePair] = []
    accepted_keys: list[str] = []
    processed_keys: set[str] = set()

    for run in new_runs:
        composite_key = generate_composite_key(run)
        if composite_key in existing_keys:
            existing = _find_by_key(existing_runs, composite_key)
            if existing is not None:
                duplicates.append(
                    DuplicatePair(new_run=run, existing_run=existing, composite_key=composite_key)
                )
        elif composite_key in processed_keys:
            continue
        else:
            accepted.append(run)
            accepted_keys.append(composite_key)
            processed_keys.add(composite_key)

    return BatchDuplicateResult(
        new_runs=tuple(accepted),
        duplicates=tuple(duplicates),
        composite_keys=tuple(accepted_keys),
    )


def analyze_key_collisions(runs: Iterable[RunRecord]) -> KeyCollisionReport:
    """Group runs by composite key and report keys shared by several runs."""

    grouped: dict[str, list[RunRecord]] = {}
    total = 0
    for run in runs:
        total += 1
        grouped.setdefault(generate_composite_key(run), []).append(run)

    return KeyCollisionReport(
        total_runs=total,
        unique_keys=len(grouped),
        collisions=tuple(
            KeyCollision(key=key, runs=tuple(members))
            for key, members in grouped.items()
            if len(members) > 1
        ),
    )
