"""Integration tests for player-scoped models."""

from __future__ import annotations

import pytest
from django.core.exceptions import ValidationError

from analysis.dto import DateFormat, ImportFormatSettings
from gamedata.models import ImportFormatPreference, Player, RunStore

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


def test_import_format_preference_round_trip(player) -> None:
    preference = ImportFormatPreference.objects.create(
        player=player,
        decimal_separator=",",
        thousands_separator="",
        date_format=DateFormat.month_first_lowercase.value,
    )

    assert player.import_format == preference
    assert preference.to_settings() == ImportFormatSettings(
        decimal_separator=",", thousands_separator="", date_format=DateFormat.month_first_lowercase
    )


@pytest.mark.parametrize(
    ("decimal_separator", "thousands_separator"),
    [(",", ","), (";", ","), (".", "'")],
)
def test_import_format_preference_rejects_bad_separators(
    player, decimal_separator: str, thousands_separator: str
) -> None:
    with pytest.raises(ValidationError):
        ImportFormatPreference.objects.create(
            player=player,
            decimal_separator=decimal_separator,
            thousands_separator=thousands_separator,
        )
    assert not ImportFormatPreference.objects.exists()


def test_run_store_is_removed_with_its_player(player) -> None:
    RunStore.objects.create(player=player, payload="_Id\tTier\nabc\t11\n")
    assert str(player.run_store).startswith(f"RunStore(player={player.pk}")

    Player.objects.filter(pk=player.pk).delete()

    assert not RunStore.objects.exists()
