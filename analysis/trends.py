"""Period grouping and trend analysis over stored runs.

Runs are bucketed into calendar periods (or taken one at a time), each
period is reduced to one value per field, and the resulting series is
classified by direction and shape. Periods are anchored on the newest run
rather than the current time so an idle player still sees their last
stretch of activity.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Final

from .aggregations import calculate_per_hour, numeric_field_value
from .dto import RunRecord

_MONTH_ABBREVIATIONS: Final[tuple[str, ...]] = (
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

STABLE_CHANGE_PERCENT: Final[Decimal] = Decimal("0.1")
_DOMINANT_SHARE: Final[Decimal] = Decimal("0.7")
_VOLATILE_SHARE: Final[Decimal] = Decimal("0.5")


class TrendsDuration(str, Enum):
    """How runs are bucketed into periods."""

    per_run = "per-run"
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class TrendsAggregation(str, Enum):
    """How a period's values reduce to one number."""

    sum = "sum"
    average = "average"
    min = "min"
    max = "max"
    hourly = "hourly"


class TrendType(str, Enum):
    """Shape of a value series."""

    upward = "upward"
    downward = "downward"
    stable = "stable"
    volatile = "volatile"
    linear = "linear"


class ChangeDirection(str, Enum):
    up = "up"
    down = "down"
    stable = "stable"


class Significance(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


@dataclass(frozen=True, slots=True)
class PeriodData:
    """Runs falling inside one period.

    Attributes:
        label: Short period label (`10/14`, `Week of 10/12`, `Oct`, or a run
            header in per-run mode).
        runs: Runs inside the inclusive bounds, newest first.
        start: Inclusive period start.
        end: Inclusive period end.
        sub_label: Extra detail; set in per-run mode only.
    """

    label: str
    runs: tuple[RunRecord, ...]
    start: datetime
    end: datetime
    sub_label: str | None = None


@dataclass(frozen=True, slots=True)
class FieldTrend:
    """Trend of one field across periods.

    Attributes:
        field_name: camelCase field name.
        display_name: Original label of the first run carrying the field.
        values: Aggregated values, oldest period first.
        absolute_change: Last value minus first value.
        percent_change: Change relative to the first value.
        direction: Direction of `percent_change`.
        trend_type: Shape of `values`.
        significance: `percent_change` measured against the threshold.
    """

    field_name: str
    display_name: str
    values: tuple[Decimal, ...]
    absolute_change: Decimal
    percent_change: Decimal
    direction: ChangeDirection
    trend_type: TrendType
    significance: Significance


def _month_day(value: datetime) -> str:
    return f"{value.month}/{value.day}"


def _day_start(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min, tzinfo=value.tzinfo)


def _day_end(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max, tzinfo=value.tzinfo)


def period_bounds(
    reference: datetime,
    duration: TrendsDuration | str,
    offset: int,
) -> tuple[datetime, datetime, str]:
    """Return `(start, end, label)` of the period `offset` steps before `reference`.

    Days run midnight to midnight, weeks Sunday to Saturday and months from
    the first to the last day.

    Raises:
        ValueError: For `per-run`, which has no calendar bounds.
    """

    duration = TrendsDuration(duration)
    if duration is TrendsDuration.daily:
        target = reference - timedelta(days=offset)
        return _day_start(target), _day_end(target), _month_day(target)

    if duration is TrendsDuration.weekly:
        target = reference - timedelta(weeks=offset)
        # weekday() counts from Monday; weeks here start on Sunday.
        start = _day_start(target - timedelta(days=(target.weekday() + 1) % 7))
        end = _day_end(start + timedelta(days=6))
        return start, end, f"Week of {_month_day(start)}"

    if duration is TrendsDuration.monthly:
        month_index = reference.year * 12 + reference.month - 1 - offset
        year, month = divmod(month_index, 12)
        start = datetime(year, month + 1, 1, tzinfo=reference.tzinfo)
        next_year, next_month = divmod(month_index + 1, 12)
        end = datetime(next_year, next_month + 1, 1, tzinfo=reference.tzinfo) - timedelta(microseconds=1)
        return start, end, _MONTH_ABBREVIATIONS[month]

    raise ValueError(f"Unsupported duration: {duration.value}")


def run_header(run: RunRecord) -> tuple[str, str]:
    """Return a `(header, sub-header)` pair labelling a single run."""

    return f"T{run.tier} W{run.wave}", run.timestamp.strftime("%m/%d %H:%M")


def group_runs_by_period(
    runs: Iterable[RunRecord],
    duration: TrendsDuration | str,
    quantity: int,
) -> list[PeriodData]:
    """Group runs into the `quantity` most recent periods, newest first.

    Per-run mode returns one period per run. Calendar modes always return
    `quantity` periods, empty ones included.
    """

    duration = TrendsDuration(duration)
    ordered = sorted(runs, key=lambda run: run.timestamp, reverse=True)

    if duration is TrendsDuration.per_run:
        periods = []
        for run in ordered[:quantity]:
            header, sub_header = run_header(run)
            periods.append(
                PeriodData(label=header, sub_label=sub_header, runs=(run,), start=run.timestamp, end=run.timestamp)
            )
        return periods

    reference = ordered[0].timestamp if ordered else datetime.now(tz=timezone.utc)
    periods = []
    for offset in range(quantity):
        start, end, label = period_bounds(reference, duration, offset)
        period_runs = tuple(run for run in ordered if start <= run.timestamp <= end)
        periods.append(PeriodData(label=label, runs=period_runs, start=start, end=end))
    return periods


def numerical_fields(periods: Iterable[PeriodData]) -> list[str]:
    """List fields holding a number or duration in any run, in first-seen order."""

    seen: dict[str, None] = {}
    for period in periods:
        for run in period.runs:
            for field_name in run.fields:
                if field_name not in seen and numeric_field_value(run, field_name) is not None:
                    seen[field_name] = None
    return list(seen)


def apply_aggregation(
    values: Sequence[Decimal],
    runs: Sequence[RunRecord],
    aggregation: TrendsAggregation | str = TrendsAggregation.average,
) -> Decimal:
    """Reduce a period's values; an empty period yields 0.

    Hourly divides the sum by the total real time of `runs`.
    """

    if not values:
        return Decimal(0)

    aggregation = TrendsAggregation(aggregation)
    if aggregation is TrendsAggregation.sum:
        return sum(values, Decimal(0))
    if aggregation is TrendsAggregation.min:
        return min(values)
    if aggregation is TrendsAggregation.max:
        return max(values)
    if aggregation is TrendsAggregation.hourly:
        return calculate_per_hour(sum(values, Decimal(0)), sum(run.real_time for run in runs))
    return sum(values, Decimal(0)) / len(values)


def aggregate_period_values(
    runs: Sequence[RunRecord],
    field_names: Sequence[str],
    aggregation: TrendsAggregation | str = TrendsAggregation.average,
) -> dict[str, Decimal]:
    """Aggregate each field over `runs`; runs without the field are skipped."""

    result: dict[str, Decimal] = {}
    for field_name in field_names:
        values = [
            value for value in (numeric_field_value(run, field_name) for run in runs) if value is not None
        ]
        result[field_name] = apply_aggregation(values, runs, aggregation)
    return result


def analyze_trend_type(values: Sequence[Decimal]) -> TrendType:
    """Classify a series ordered oldest to newest.

    Fewer than three values are stable. Otherwise a direction covering 70%
    of the steps wins; frequent reversals (half the steps) are volatile and
    anything else is linear.
    """

    if len(values) < 3:
        return TrendType.stable

    differences = [current - previous for previous, current in zip(values, values[1:])]
    steps = Decimal(len(differences))
    if sum(1 for d in differences if d > 0) >= steps * _DOMINANT_SHARE:
        return TrendType.upward
    if sum(1 for d in differences if d < 0) >= steps * _DOMINANT_SHARE:
        return TrendType.downward
    if sum(1 for d in differences if d == 0) >= steps * _DOMINANT_SHARE:
        return TrendType.stable

    reversals = sum(
        1
        for previous, current in zip(differences, differences[1:])
        if (current > 0 and previous < 0) or (current < 0 and previous > 0)
    )
    if reversals >= steps * _VOLATILE_SHARE:
        return TrendType.volatile
    return TrendType.linear


def calculate_field_trend(
    periods: Sequence[PeriodData],
    field_name: str,
    threshold_percent: Decimal | int = 5,
    aggregation: TrendsAggregation | str = TrendsAggregation.average,
) -> FieldTrend:
    """Compute the trend of one field across periods given newest first.

    Args:
        periods: Output of `group_runs_by_period`.
        field_name: Field to follow.
        threshold_percent: A change of at least this much is medium
            significance; twice as much is high.
        aggregation: Per-period reduction.

    Returns:
        FieldTrend. A zero first value counts as a 100% rise when the last
        value is positive.
    """

    values: list[Decimal] = []
    display_name = field_name
    for period in reversed(periods):
        values.append(aggregate_period_values(period.runs, [field_name], aggregation)[field_name])
        if display_name == field_name:
            found = next((run.fields[field_name] for run in period.runs if field_name in run.fields), None)
            if found is not None:
                display_name = found.original_key or field_name

    first = values[0] if values else Decimal(0)
    last = values[-1] if values else Decimal(0)
    absolute_change = last - first
    if first == 0:
        percent_change = Decimal(100) if last > 0 else Decimal(0)
    else:
        percent_change = absolute_change / abs(first) * 100

    magnitude = abs(percent_change)
    if magnitude < STABLE_CHANGE_PERCENT:
        direction = ChangeDirection.stable
    else:
        direction = ChangeDirection.up if percent_change > 0 else ChangeDirection.down

    threshold = Decimal(threshold_percent)
    if magnitude >= threshold * 2:
        significance = Significance.high
    elif magnitude >= threshold:
        significance = Significance.medium
    else:
        significance = Significance.low

    return FieldTrend(
        field_name=field_name,
        display_name=display_name,
        values=tuple(values),
        absolute_change=absolute_change,
        percent_change=percent_change,
        direction=direction,
        trend_type=analyze_trend_type(values),
        significance=significance,
    )
