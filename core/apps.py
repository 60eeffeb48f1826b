"""App configuration for the run import/export services."""

from __future__ import annotations

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Hosts the parsers, services and run management commands."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Run tracking"
