"""Admin registrations for GameData models."""

from __future__ import annotations

from django.contrib import admin

from gamedata.models import ImportFormatPreference, Player, RunStore


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    """Admin configuration for Player."""

    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(RunStore)
class RunStoreAdmin(admin.ModelAdmin):
    """Admin configuration for RunStore.

    The payload is read-only; runs change through the import services.
    """

    list_display = ("player", "run_count", "updated_at")
    readonly_fields = ("payload", "updated_at")

    @admin.display(description="Runs")
    def run_count(self, obj: RunStore) -> int:
        """Return the number of data rows in the stored payload."""

        lines = [line for line in obj.payload.splitlines() if line.strip()]
        return max(len(lines) - 1, 0)


@admin.register(ImportFormatPreference)
class ImportFormatPreferenceAdmin(admin.ModelAdmin):
    """Admin configuration for ImportFormatPreference."""

    list_display = ("player", "decimal_separator", "thousands_separator", "date_format", "updated_at")
    list_filter = ("date_format",)
