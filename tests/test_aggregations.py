"""Tests for per-tier statistics and time-series aggregation."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from analysis.aggregations import (
    average_metric,
    calculate_field_stats,
    calculate_per_hour,
    calculate_tier_stats,
    coins_per_hour,
    daily_average_series,
    filter_runs_by_date,
    filter_runs_by_type,
    simple_moving_average,
)
from analysis.dto import RunType

pytestmark = pytest.mark.unit


def _day(day: int) -> datetime:
    return datetime(2025, 10, day, 12, 0, tzinfo=timezone.utc)


def test_calculate_per_hour() -> None:
    assert calculate_per_hour(Decimal(300), 7200) == Decimal(150)
    assert calculate_per_hour(Decimal(300), 0) == Decimal(0)


def test_tier_stats_highest_tier_first(run_factory) -> None:
    """Runs group by tier; fields missing from every run are left out."""

    runs = [
        run_factory(run_id="a", tier=10, coins=100, real_time=3600),
        run_factory(run_id="b", tier=10, coins=300, real_time=7200),
        run_factory(run_id="c", tier=11, coins=50, real_time=1800),
    ]

    stats = calculate_tier_stats(runs, ["coinsEarned", "cellsEarned"])

    assert [tier.tier for tier in stats] == [11, 10]
    assert stats[1].run_count == 2
    assert set(stats[1].fields) == {"coinsEarned"}

    coins = stats[1].fields["coinsEarned"]
    assert coins.max_value == Decimal(300)
    assert coins.max_value_run.id == "b"
    assert coins.hourly_rate == Decimal(150)
    assert coins.percentiles.p50 == Decimal(300)
    assert coins.longest_duration == 7200


def test_tier_stats_skip_runs_without_tier(run_factory) -> None:
    runs = [run_factory(run_id="a", tier=0)]

    assert calculate_tier_stats(runs, ["coinsEarned"]) == []


def test_field_stats_without_duration_has_no_hourly_rate(run_factory) -> None:
    stats = calculate_field_stats([run_factory(coins=10, real_time=0)], "coinsEarned")

    assert stats is not None
    assert stats.hourly_rate is None
    assert calculate_field_stats([run_factory()], "missingField") is None


def test_filters(run_factory) -> None:
    runs = [
        run_factory(run_id="a", timestamp=_day(1)),
        run_factory(run_id="b", timestamp=_day(5), run_type=RunType.tournament),
        run_factory(run_id="c", timestamp=_day(9)),
    ]

    in_range = filter_runs_by_date(runs, start_date=date(2025, 10, 2), end_date=date(2025, 10, 9))
    assert [run.id for run in in_range] == ["b", "c"]
    assert [run.id for run in filter_runs_by_type(runs, RunType.tournament)] == ["b"]
    assert len(filter_runs_by_type(runs, None)) == 3


def test_daily_average_and_moving_average(run_factory) -> None:
    runs = [
        run_factory(run_id="a", coins=3600, real_time=3600, timestamp=_day(2)),
        run_factory(run_id="b", coins=7200, real_time=3600, timestamp=_day(2)),
        run_factory(run_id="c", coins=100, real_time=0, timestamp=_day(1)),
    ]

    assert coins_per_hour(runs[2]) is None
    assert daily_average_series(runs) == {"2025-10-02": Decimal(5400)}
    assert average_metric(runs, value_getter=coins_per_hour) == Decimal(5400)

    averaged = simple_moving_average([Decimal(1), Decimal(3), None, Decimal(5)], window=2)
    assert averaged == [None, Decimal(2), None, None]
    with pytest.raises(ValueError):
        simple_moving_average([], window=1)
