"""Pytest fixtures shared across the test suite."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from analysis.dto import FieldDataType, FieldValue, RunRecord, RunType

SAMPLE_BATTLE_REPORT = "\n".join(
    [
        "Battle Report",
        "Battle Date\tOct 14, 2025 13:14",
        "Game Time\t1d 13h 24m 51s",
        "Real Time\t7h 46m 6s",
        "Tier\t11",
        "Wave\t5881",
        "Killed By\tBoss",
        "Coins earned\t43.91T",
        "Coins per hour\t5.65T",
        "Cash earned\t$1.55T",
        "Interest earned\t$9.12M",
        "Gem Blocks Tapped\t3",
        "Cells Earned\t72.19K",
        "Reroll Shards Earned\t10.22K",
        "Combat",
        "Damage dealt\t1.23aa",
        "Utility",
        "Coins From Golden Tower\t10.5T",
        "",
    ]
)


@pytest.fixture
def player(db):
    """Return a persisted Player."""

    from gamedata.models import Player

    return Player.objects.create(name="alice")


@pytest.fixture
def battle_report_text() -> str:
    """Return a representative pasted Battle Report."""

    return SAMPLE_BATTLE_REPORT


def make_run(
    *,
    run_id: str = "run-1",
    tier: int = 10,
    wave: int = 5000,
    real_time: int = 27_933,
    coins: Decimal | int = 0,
    timestamp: datetime | None = None,
    run_type: RunType = RunType.farm,
    extra_fields: dict[str, FieldValue] | None = None,
) -> RunRecord:
    """Build a RunRecord for tests without going through a parser."""

    fields = {
        "tier": FieldValue(Decimal(tier), str(tier), str(tier), "Tier", FieldDataType.number),
        "wave": FieldValue(Decimal(wave), str(wave), str(wave), "Wave", FieldDataType.number),
        "realTime": FieldValue(real_time, f"{real_time}s", f"{real_time}s", "Real Time", FieldDataType.duration),
        "coinsEarned": FieldValue(Decimal(coins), str(coins), str(coins), "Coins earned", FieldDataType.number),
    }
    fields.update(extra_fields or {})
    return RunRecord(
        id=run_id,
        timestamp=timestamp or datetime(2025, 10, 14, 13, 14, tzinfo=timezone.utc),
        tier=tier,
        wave=wave,
        coins_earned=Decimal(coins),
        cells_earned=Decimal(0),
        real_time=real_time,
        run_type=run_type,
        fields=fields,
    )


@pytest.fixture
def run_factory():
    """Return the `make_run` builder."""

    return make_run


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, commands, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
