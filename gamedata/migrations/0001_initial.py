from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="Player",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(default="default", max_length=80, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="RunStore",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payload", models.TextField(blank=True, default="")),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "player",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="run_store",
                        to="gamedata.player",
                    ),
                ),
            ],
            options={
                "verbose_name": "Run Store",
                "verbose_name_plural": "Run Stores",
            },
        ),
        migrations.CreateModel(
            name="ImportFormatPreference",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "decimal_separator",
                    models.CharField(
                        choices=[(".", "Period (.)"), (",", "Comma (,)")], default=".", max_length=1
                    ),
                ),
                (
                    "thousands_separator",
                    models.CharField(
                        blank=True,
                        choices=[(",", "Comma (,)"), (".", "Period (.)"), (" ", "Space"), ("", "None")],
                        default=",",
                        max_length=1,
                    ),
                ),
                (
                    "date_format",
                    models.CharField(
                        choices=[
                            ("month-first", "month-first"),
                            ("month-first-lowercase", "month-first-lowercase"),
                        ],
                        default="month-first",
                        max_length=32,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "player",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="import_format",
                        to="gamedata.player",
                    ),
                ),
            ],
            options={
                "verbose_name": "Import Format Preference",
                "verbose_name_plural": "Import Format Preferences",
            },
        ),
    ]
