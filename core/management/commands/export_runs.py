"""Export a player's stored runs as delimited text."""

from __future__ import annotations

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from core.parsers.csv_export import ExportOutputFormat, export_to_csv, generate_export_filename
from core.parsers.csv_import import CsvDelimiter
from core.services import load_runs
from gamedata.models import Player


class Command(BaseCommand):
    """Write stored runs to a CSV/TSV file or stdout."""

    help = "Export a player's runs (tab-delimited by default)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("--player", default="default", help="Player name (default: default).")
        parser.add_argument(
            "--output",
            default=None,
            help="Output file, '-' for stdout, or a directory for a generated file name.",
        )
        parser.add_argument(
            "--delimiter",
            choices=[choice.value for choice in CsvDelimiter],
            default=CsvDelimiter.tab.value,
        )
        parser.add_argument("--custom-delimiter", default=None, help="Separator for --delimiter=custom.")
        parser.add_argument(
            "--format",
            dest="output_format",
            choices=[choice.value for choice in ExportOutputFormat],
            default=ExportOutputFormat.raw.value,
            help="raw keeps source text; canonical normalizes numbers and dates.",
        )
        parser.add_argument(
            "--no-app-fields",
            action="store_true",
            help="Omit _Date/_Time/_Notes/_Run Type/_Rank columns.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        if options["delimiter"] == CsvDelimiter.custom.value and not options["custom_delimiter"]:
            raise CommandError("--delimiter=custom requires --custom-delimiter.")

        player = Player.objects.filter(name=options["player"]).first()
        if player is None:
            raise CommandError(f"Unknown player: {options['player']!r}")

        runs = load_runs(player)
        result = export_to_csv(
            runs,
            delimiter=options["delimiter"],
            custom_delimiter=options["custom_delimiter"],
            include_app_fields=not options["no_app_fields"],
            output_format=options["output_format"],
        )

        for conflict in result.conflicts:
            examples = ", ".join(repr(value) for value in conflict.example_values)
            self.stderr.write(
                f"Field {conflict.header!r} contains the delimiter in {conflict.affected_run_count} "
                f"run(s) (quoted): {examples}"
            )

        output = options["output"] or "-"
        if output == "-":
            self.stdout.write(result.csv_content, ending="")
            return None

        target = Path(output)
        if target.is_dir():
            target = target / generate_export_filename(result.row_count)
        try:
            target.write_text(result.csv_content, encoding="utf-8")
        except OSError as exc:
            raise CommandError(f"Cannot write {str(target)!r}: {exc}") from exc
        self.stdout.write(
            f"[EXPORT] player={player.name} rows={result.row_count} fields={result.field_count} file={target}"
        )
        return None
