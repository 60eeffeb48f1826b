"""Django app configuration for stored runs and player preferences."""

from __future__ import annotations

from django.apps import AppConfig


class GameDataConfig(AppConfig):
    """AppConfig for players, run stores and import format preferences."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "gamedata"
    verbose_name = "Game data"
