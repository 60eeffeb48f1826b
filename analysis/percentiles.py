"""Floor-index percentiles for tier statistics."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeVar

NumberT = TypeVar("NumberT", int, float, Decimal)


@dataclass(frozen=True, slots=True)
class PercentileResults:
    """P99/P90/P75/P50 of a dataset; all None when the dataset is empty."""

    p99: int | float | Decimal | None = None
    p90: int | float | Decimal | None = None
    p75: int | float | Decimal | None = None
    p50: int | float | Decimal | None = None


def calculate_percentile(sorted_values: Sequence[NumberT], percentile: float) -> NumberT | None:
    """Return the value at `floor(percentile * n)`, clamped to the last index.

    Args:
        sorted_values: Values in ascending order.
        percentile: Fraction in [0, 1], e.g. 0.99 for P99.

    Returns:
        The selected value, or None for an empty sequence.
    """

    if not sorted_values:
        return None
    if len(sorted_values) == 1:
        return sorted_values[0]
    index = min(math.floor(percentile * len(sorted_values)), len(sorted_values) - 1)
    return sorted_values[index]


def calculate_all_percentiles(values: Iterable[NumberT]) -> PercentileResults:
    """Compute P99/P90/P75/P50 with a single sort."""

    ordered = sorted(values)
    if not ordered:
        return PercentileResults()
    return PercentileResults(
        p99=calculate_percentile(ordered, 0.99),
        p90=calculate_percentile(ordered, 0.90),
        p75=calculate_percentile(ordered, 0.75),
        p50=calculate_percentile(ordered, 0.50),
    )
