"""Source breakdowns: how a run's total splits across its itemized sources."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from .aggregations import numeric_field_value
from .discrepancy import COIN_SOURCE_FIELDS
from .dto import RunRecord
from .field_registry import field_label, get_field_spec
from .fields import to_camel_case

_PERCENT_QUANTUM: Final[Decimal] = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class SourceCategory:
    """A total field and the source fields that add up to it."""

    name: str
    total_field: str
    source_fields: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SourceValue:
    """One source's share of a run total.

    Attributes:
        field_name: camelCase source field.
        label: Display label of the field.
        value: Source value (0 when the run lacks it).
        percentage: Share of the total, rounded half up to 2 places.
    """

    field_name: str
    label: str
    value: Decimal
    percentage: Decimal


COIN_SOURCES: Final[SourceCategory] = SourceCategory(
    name="coins", total_field="coinsEarned", source_fields=COIN_SOURCE_FIELDS
)


def extract_field_value(run: RunRecord, field_name: str) -> Decimal:
    """Return a numeric field, trying registered aliases; 0 when absent."""

    value = numeric_field_value(run, field_name)
    if value is not None:
        return value
    spec = get_field_spec(field_name)
    if spec is not None:
        for alias in spec.aliases:
            value = numeric_field_value(run, to_camel_case(alias))
            if value is not None:
                return value
    return Decimal(0)


def calculate_percentage(value: Decimal, total: Decimal) -> Decimal:
    if total == 0 or value == 0:
        return Decimal(0)
    return (value / total * 100).quantize(_PERCENT_QUANTUM, rounding=ROUND_HALF_UP)


def sum_source_values(run: RunRecord, source_fields: Iterable[str]) -> Decimal:
    return sum((extract_field_value(run, name) for name in source_fields), Decimal(0))


def calculate_run_total(run: RunRecord, category: SourceCategory) -> Decimal:
    """Use the category's total field when positive, else the sum of its sources."""

    total = extract_field_value(run, category.total_field)
    if total > 0:
        return total
    return sum_source_values(run, category.source_fields)


def has_source_data(run: RunRecord, category: SourceCategory) -> bool:
    """Return True when the run carries a positive total or any positive source."""

    if extract_field_value(run, category.total_field) > 0:
        return True
    return any(extract_field_value(run, name) > 0 for name in category.source_fields)


def extract_source_values(run: RunRecord, category: SourceCategory) -> list[SourceValue]:
    """Return every source of `category` for one run, in category order."""

    total = calculate_run_total(run, category)
    values = []
    for field_name in category.source_fields:
        value = extract_field_value(run, field_name)
        values.append(
            SourceValue(
                field_name=field_name,
                label=field_label(field_name),
                value=value,
                percentage=calculate_percentage(value, total),
            )
        )
    return values


def non_zero_sources(sources: Iterable[SourceValue]) -> list[SourceValue]:
    return [source for source in sources if source.value > 0]


def sort_by_percentage(sources: Sequence[SourceValue]) -> list[SourceValue]:
    """Sort sources by share, largest first; ties keep their order."""

    return sorted(sources, key=lambda source: source.percentage, reverse=True)
