"""Breakdown discrepancy between a reported total and the sum of its sources."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Final

from .dto import RunRecord

DISCREPANCY_THRESHOLD: Final[Decimal] = Decimal("0.01")

_PERCENT_QUANTUM: Final[Decimal] = Decimal("0.01")


class DiscrepancyType(str, Enum):
    """Direction of a breakdown discrepancy."""

    unknown = "unknown"
    overage = "overage"


@dataclass(frozen=True, slots=True)
class Discrepancy:
    """A breakdown gap large enough to surface.

    Attributes:
        type: `unknown` when the total exceeds its sources, `overage` otherwise.
        value: Absolute difference.
        percentage: Difference relative to the total, rounded to 2 decimals.
    """

    type: DiscrepancyType
    value: Decimal
    percentage: Decimal


def _as_decimal(value: Decimal | int | float) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_discrepancy(
    total: Decimal | int | float,
    source_sum: Decimal | int | float,
    threshold: Decimal | int | float = DISCREPANCY_THRESHOLD,
) -> Discrepancy | None:
    """Compare a total against the sum of its breakdown sources.

    Args:
        total: Reported total (e.g. damage dealt).
        source_sum: Sum of the itemized sources.
        threshold: Fraction of the total at or below which the gap is ignored.

    Returns:
        Discrepancy, or None when the gap does not exceed the threshold.

    Notes:
        A zero total with non-zero sources is a 100% overage.
    """

    total = _as_decimal(total)
    source_sum = _as_decimal(source_sum)
    threshold = _as_decimal(threshold)

    difference = abs(total - source_sum)
    if difference == 0:
        return None

    if total == 0:
        return Discrepancy(type=DiscrepancyType.overage, value=difference, percentage=Decimal(100))

    if difference / abs(total) <= threshold:
        return None

    percentage = (difference / abs(total) * 100).quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
    kind = DiscrepancyType.unknown if total > source_sum else DiscrepancyType.overage
    return Discrepancy(type=kind, value=difference, percentage=percentage)


COIN_SOURCE_FIELDS: Final[tuple[str, ...]] = (
    "coinsFromDeathWave",
    "coinsFromGoldenTower",
    "coinsFromBlackHole",
    "coinsFromSpotlight",
    "coinsFromOrb",
    "coinsFromCoinUpgrade",
    "coinsFromCoinBonuses",
)


def run_breakdown_discrepancy(
    run: RunRecord,
    *,
    total_field: str = "coinsEarned",
    source_fields: Sequence[str] = COIN_SOURCE_FIELDS,
    threshold: Decimal | int | float = DISCREPANCY_THRESHOLD,
) -> Discrepancy | None:
    """Compare a run's total against its itemized source fields.

    Returns:
        Discrepancy, or None when the run carries no source fields or the gap
        does not exceed the threshold.
    """

    sources = [run.field_value(name) for name in source_fields]
    numbers = [Decimal(value) for value in sources if isinstance(value, (int, Decimal))]
    if not numbers:
        return None
    total = run.field_value(total_field)
    if not isinstance(total, (int, Decimal)):
        total = Decimal(0)
    return calculate_discrepancy(total, sum(numbers, Decimal(0)), threshold)
