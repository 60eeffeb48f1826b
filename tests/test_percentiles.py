"""Tests for floor-index percentiles."""

from __future__ import annotations

import random
from decimal import Decimal

import pytest

from analysis.percentiles import calculate_all_percentiles, calculate_percentile

pytestmark = pytest.mark.unit


def test_percentiles_use_floor_index() -> None:
    """Index is floor(p * n), clamped to the last element."""

    values = list(range(1, 11))
    assert calculate_percentile(values, 0.5) == 6
    assert calculate_percentile(values, 0.99) == 10
    assert calculate_percentile(values, 1.0) == 10
    assert calculate_percentile([], 0.5) is None
    assert calculate_percentile([7], 0.99) == 7


def test_calculate_all_percentiles_sorts_once() -> None:
    """Unsorted input is handled and empty input yields all None."""

    results = calculate_all_percentiles([Decimal(5), Decimal(1), Decimal(3), Decimal(2), Decimal(4)])
    assert (results.p50, results.p75, results.p90, results.p99) == (3, 4, 5, 5)

    empty = calculate_all_percentiles([])
    assert (empty.p50, empty.p75, empty.p90, empty.p99) == (None, None, None, None)


def test_percentiles_are_monotonic() -> None:
    """P50 <= P75 <= P90 <= P99 <= max for arbitrary data."""

    rng = random.Random(1234)
    for size in (1, 2, 7, 50, 1000):
        values = [rng.uniform(-1e6, 1e6) for _ in range(size)]
        results = calculate_all_percentiles(values)
        assert results.p50 <= results.p75 <= results.p90 <= results.p99 <= max(values)
