"""Tests for coin source breakdowns."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from analysis.dto import FieldDataType, FieldValue
from analysis.sources import (
    COIN_SOURCES,
    calculate_percentage,
    calculate_run_total,
    extract_field_value,
    extract_source_values,
    has_source_data,
    non_zero_sources,
    sort_by_percentage,
)

pytestmark = pytest.mark.unit


def _coins(label: str, value: int) -> FieldValue:
    return FieldValue(Decimal(value), str(value), str(value), label, FieldDataType.number)


def test_calculate_percentage() -> None:
    assert calculate_percentage(Decimal(1), Decimal(3)) == Decimal("33.33")
    assert calculate_percentage(Decimal(2), Decimal(3)) == Decimal("66.67")
    assert calculate_percentage(Decimal(5), Decimal(0)) == Decimal(0)


def test_source_shares_of_the_total(run_factory) -> None:
    run = run_factory(
        coins=1000,
        extra_fields={
            "coinsFromGoldenTower": _coins("Coins From Golden Tower", 600),
            "coinsFromOrb": _coins("Coins From Orb", 150),
        },
    )

    sources = extract_source_values(run, COIN_SOURCES)

    assert [source.field_name for source in sources] == list(COIN_SOURCES.source_fields)
    shown = sort_by_percentage(non_zero_sources(sources))
    assert [(source.label, source.percentage) for source in shown] == [
        ("Coins From Golden Tower", Decimal("60.00")),
        ("Coins From Orb", Decimal("15.00")),
    ]


def test_total_falls_back_to_source_sum(run_factory) -> None:
    run = run_factory(
        coins=0,
        extra_fields={
            "coinsFromGoldenTower": _coins("Coins From Golden Tower", 600),
            "coinsFromOrb": _coins("Coins From Orb", 150),
        },
    )

    assert calculate_run_total(run, COIN_SOURCES) == Decimal(750)
    shares = {source.field_name: source.percentage for source in extract_source_values(run, COIN_SOURCES)}
    assert shares["coinsFromGoldenTower"] == Decimal("80.00")
    assert shares["coinsFromDeathWave"] == Decimal(0)


def test_has_source_data(run_factory) -> None:
    assert has_source_data(run_factory(coins=5), COIN_SOURCES) is True
    assert has_source_data(run_factory(coins=0), COIN_SOURCES) is False


def test_extract_field_value_uses_registered_aliases(run_factory) -> None:
    run = run_factory(coins=0)
    fields = {name: value for name, value in run.fields.items() if name != "coinsEarned"}
    fields["coins"] = _coins("Coins", 42)
    run = replace(run, fields=fields)

    assert extract_field_value(run, "coinsEarned") == Decimal(42)
    assert extract_field_value(run, "coinsFromOrb") == Decimal(0)
