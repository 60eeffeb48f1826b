"""Database models for players, their stored runs and import preferences."""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

from analysis.dto import DECIMAL_SEPARATORS, THOUSANDS_SEPARATORS, DateFormat, ImportFormatSettings


class Player(models.Model):
    """Owner of a run store and import preferences."""

    name = models.CharField(max_length=80, unique=True, default="default")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        """Return the player name for display contexts."""

        return self.name


class RunStore(models.Model):
    """Key-value blob holding all of a player's runs.

    `payload` is tab-delimited text produced by
    `core.parsers.csv_export.serialize_run_store`; an empty payload means no
    runs.
    """

    player = models.OneToOneField(Player, on_delete=models.CASCADE, related_name="run_store")
    payload = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Run Store"
        verbose_name_plural = "Run Stores"

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return f"RunStore(player={self.player_id}, bytes={len(self.payload)})"


class ImportFormatPreference(models.Model):
    """Persisted import format for a player, overriding the settings defaults."""

    DECIMAL_CHOICES = [(".", "Period (.)"), (",", "Comma (,)")]
    THOUSANDS_CHOICES = [(",", "Comma (,)"), (".", "Period (.)"), (" ", "Space"), ("", "None")]
    DATE_FORMAT_CHOICES = [(choice.value, choice.value) for choice in DateFormat]

    player = models.OneToOneField(Player, on_delete=models.CASCADE, related_name="import_format")
    decimal_separator = models.CharField(max_length=1, choices=DECIMAL_CHOICES, default=".")
    thousands_separator = models.CharField(
        max_length=1, choices=THOUSANDS_CHOICES, default=",", blank=True
    )
    date_format = models.CharField(
        max_length=32, choices=DATE_FORMAT_CHOICES, default=DateFormat.month_first.value
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Import Format Preference"
        verbose_name_plural = "Import Format Preferences"

    def __str__(self) -> str:
        """Return a concise display string for admin/debug usage."""

        return (
            f"ImportFormatPreference(player={self.player_id}, decimal={self.decimal_separator!r}, "
            f"thousands={self.thousands_separator!r}, date={self.date_format})"
        )

    def clean(self) -> None:
        """Reject unsupported or conflicting separators."""

        if self.decimal_separator not in DECIMAL_SEPARATORS:
            raise ValidationError({"decimal_separator": "Unsupported decimal separator."})
        if self.thousands_separator not in THOUSANDS_SEPARATORS:
            raise ValidationError({"thousands_separator": "Unsupported thousands separator."})
        if self.thousands_separator == self.decimal_separator:
            raise ValidationError("Thousands and decimal separators must differ.")

    def save(self, *args, **kwargs) -> None:
        """Persist the preference after validating it."""

        self.full_clean()
        super().save(*args, **kwargs)

    def to_settings(self) -> ImportFormatSettings:
        """Return the preference as an ImportFormatSettings value."""

        return ImportFormatSettings(
            decimal_separator=self.decimal_separator,
            thousands_separator=self.thousands_separator,
            date_format=DateFormat(self.date_format),
        )
