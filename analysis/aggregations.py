"""Aggregation helpers over stored runs.

Deterministic, reusable aggregation functions for tier statistics and
time series, without Django dependencies.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable

from .dto import RunRecord, RunType
from .percentiles import PercentileResults, calculate_all_percentiles

_SECONDS_PER_HOUR = Decimal(3600)


@dataclass(frozen=True, slots=True)
class FieldStats:
    """Statistics for one numeric field across the runs of a tier.

    Attributes:
        max_value: Highest value observed.
        max_value_run: Run that achieved `max_value` (first one on ties).
        hourly_rate: `max_value` per hour of that run, or None when its
            real time is zero.
        percentiles: P99/P90/P75/P50 of the field.
        longest_duration: Longest real time among the runs, in seconds.
    """

    max_value: Decimal
    max_value_run: RunRecord
    hourly_rate: Decimal | None
    percentiles: PercentileResults
    longest_duration: int


@dataclass(frozen=True, slots=True)
class TierStats:
    """Per-tier summary, with stats for each requested field present in the tier."""

    tier: int
    run_count: int
    fields: dict[str, FieldStats]


def numeric_field_value(run: RunRecord, field_name: str) -> Decimal | None:
    """Return a run field as a Decimal when it holds a number or duration."""

    value = run.field_value(field_name)
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        return None
    return Decimal(value)


def calculate_per_hour(value: Decimal | int, duration_seconds: int) -> Decimal:
    """Scale a run total to a per-hour rate; zero duration yields zero."""

    if duration_seconds <= 0:
        return Decimal(0)
    return Decimal(value) * _SECONDS_PER_HOUR / Decimal(duration_seconds)


def filter_runs_by_date(
    runs: Iterable[RunRecord],
    *,
    start_date: date | None,
    end_date: date | None,
) -> tuple[RunRecord, ...]:
    """Filter runs by an inclusive date range on `timestamp.date()`."""

    filtered: list[RunRecord] = []
    for run in runs:
        run_date = run.timestamp.date()
        if start_date is not None and run_date < start_date:
            continue
        if end_date is not None and run_date > end_date:
            continue
        filtered.append(run)
    return tuple(filtered)


def filter_runs_by_type(runs: Iterable[RunRecord], run_type: RunType | None) -> tuple[RunRecord, ...]:
    """Keep runs of one type; None keeps every run."""

    if run_type is None:
        return tuple(runs)
    return tuple(run for run in runs if run.run_type is run_type)


def average_metric(
    runs: Iterable[RunRecord],
    *,
    value_getter: Callable[[RunRecord], Decimal | None],
) -> Decimal | None:
    """Average a selected metric across runs, skipping runs without a value.

    Returns:
        Arithmetic mean, or None when no values exist.
    """

    total = Decimal(0)
    count = 0
    for run in runs:
        value = value_getter(run)
        if value is None:
            continue
        total += value
        count += 1
    if count == 0:
        return None
    return total / count


def coins_per_hour(run: RunRecord) -> Decimal | None:
    """Coins earned per hour of real time, or None for zero-length runs."""

    if run.real_time <= 0:
        return None
    return calculate_per_hour(run.coins_earned, run.real_time)


def daily_average_series(
    runs: Iterable[RunRecord],
    *,
    value_getter: Callable[[RunRecord], Decimal | None] | None = None,
) -> dict[str, Decimal]:
    """Aggregate runs into a daily average series keyed by ISO date.

    Args:
        runs: Runs to aggregate.
        value_getter: Metric extractor. Defaults to coins per hour.

    Returns:
        Mapping of `YYYY-MM-DD` -> average value, in date order.
    """

    if value_getter is None:
        value_getter = coins_per_hour

    buckets: dict[str, list[Decimal]] = defaultdict(list)
    for run in runs:
        value = value_getter(run)
        if value is None:
            continue
        buckets[run.timestamp.date().isoformat()].append(value)

    return {key: sum(values) / len(values) for key, values in sorted(buckets.items())}


def simple_moving_average(
    values: Sequence[Decimal | None],
    *,
    window: int,
) -> list[Decimal | None]:
    """Compute a simple moving average over a series.

    Args:
        values: Series aligned to chart labels (None for missing).
        window: Window size (>= 2).

    Returns:
        A list the same length as `values`, with None where the window is
        incomplete or contains a missing value.
    """

    if window < 2:
        raise ValueError("window must be >= 2")

    averaged: list[Decimal | None] = [None] * len(values)
    for idx in range(window - 1, len(values)):
        window_values = values[idx - window + 1 : idx + 1]
        if any(v is None for v in window_values):
            continue
        averaged[idx] = sum(v for v in window_values if v is not None) / window
    return averaged


def calculate_field_stats(runs: Sequence[RunRecord], field_name: str) -> FieldStats | None:
    """Compute max, hourly rate and percentiles for one field.

    Returns:
        FieldStats, or None when no run carries a numeric value for the field.
    """

    max_value: Decimal | None = None
    max_value_run: RunRecord | None = None
    values: list[Decimal] = []
    longest_duration = 0

    for run in runs:
        value = numeric_field_value(run, field_name)
        if value is not None:
            values.append(value)
            if max_value is None or value > max_value:
                max_value = value
                max_value_run = run
        longest_duration = max(longest_duration, run.real_time)

    if max_value is None or max_value_run is None:
        return None

    hourly_rate = None
    if max_value_run.real_time > 0:
        hourly_rate = calculate_per_hour(max_value, max_value_run.real_time)

    return FieldStats(
        max_value=max_value,
        max_value_run=max_value_run,
        hourly_rate=hourly_rate,
        percentiles=calculate_all_percentiles(values),
        longest_duration=longest_duration,
    )


def calculate_tier_stats(runs: Iterable[RunRecord], field_names: Sequence[str]) -> list[TierStats]:
    """Group runs by tier and compute field stats, highest tier first.

    Runs with tier 0 (tier missing from the source) are excluded.
    """

    groups: dict[int, list[RunRecord]] = defaultdict(list)
    for run in runs:
        if run.tier:
            groups[run.tier].append(run)

    stats: list[TierStats] = []
    for tier in sorted(groups, reverse=True):
        tier_runs = groups[tier]
        fields: dict[str, FieldStats] = {}
        for field_name in field_names:
            field_stats = calculate_field_stats(tier_runs, field_name)
            if field_stats is not None:
                fields[field_name] = field_stats
        stats.append(TierStats(tier=tier, run_count=len(tier_runs), fields=fields))
    return stats
