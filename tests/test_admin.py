"""Integration tests for the GameData admin registrations."""

from __future__ import annotations

import pytest
from django.contrib import admin
from django.urls import reverse

from gamedata.admin import RunStoreAdmin
from gamedata.models import RunStore

pytestmark = [pytest.mark.integration, pytest.mark.django_db]


def test_run_count_ignores_header_and_blank_lines(player) -> None:
    store = RunStore.objects.create(player=player, payload="_Id\tTier\na\t11\nb\t12\n\n")
    model_admin = RunStoreAdmin(RunStore, admin.site)

    assert model_admin.run_count(store) == 2
    assert model_admin.run_count(RunStore(player=player, payload="")) == 0


@pytest.mark.parametrize("model_name", ["player", "runstore", "importformatpreference"])
def test_changelists_render_for_staff(admin_client, player, model_name: str) -> None:
    RunStore.objects.create(player=player, payload="_Id\tTier\na\t11\n")

    response = admin_client.get(reverse(f"admin:gamedata_{model_name}_changelist"))

    assert response.status_code == 200
