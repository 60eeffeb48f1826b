"""Import runs from a Battle Report paste or a delimited file."""

from __future__ import annotations

import sys
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from core.parsers.csv_import import CsvDelimiter, get_delimiter_string
from core.services import DuplicateResolution, ImportResult, import_clipboard_run, import_csv_runs
from gamedata.models import Player

_CSV_SUFFIXES = {".csv", ".tsv"}


class Command(BaseCommand):
    """Parse runs, detect duplicates and store them in the player's run store."""

    help = "Import runs from a Battle Report text file or a CSV/TSV export (use '-' for stdin)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument("path", help="File to import, or '-' to read stdin.")
        parser.add_argument(
            "--player",
            default="default",
            help="Player name; created when missing (default: default).",
        )
        parser.add_argument(
            "--kind",
            choices=["battle-report", "csv"],
            default=None,
            help="Input kind. Defaults to csv for .csv/.tsv files, battle-report otherwise.",
        )
        parser.add_argument(
            "--delimiter",
            choices=[choice.value for choice in CsvDelimiter],
            default=None,
            help="CSV delimiter; detected from the header line when omitted.",
        )
        parser.add_argument("--custom-delimiter", default=None, help="Separator for --delimiter=custom.")
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Replace stored runs that duplicate incoming runs (default: skip them).",
        )
        parser.add_argument(
            "--check",
            action="store_true",
            help="Dry-run: report what would change without writing.",
        )
        parser.add_argument(
            "--write",
            action="store_true",
            help="Write changes to the database.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        path: str = options["path"]
        check: bool = options["check"]
        write: bool = options["write"]

        if check and write:
            raise CommandError("Use either --check or --write, not both.")
        if not check and not write:
            raise CommandError("Refusing to write without explicit intent; pass --check or --write.")
        if options["delimiter"] == CsvDelimiter.custom.value and not options["custom_delimiter"]:
            raise CommandError("--delimiter=custom requires --custom-delimiter.")

        raw_text = self._read_input(path)
        kind = options["kind"] or ("csv" if Path(path).suffix.lower() in _CSV_SUFFIXES else "battle-report")
        resolution = DuplicateResolution.overwrite if options["overwrite"] else DuplicateResolution.skip

        player = Player.objects.filter(name=options["player"]).first()
        if player is None:
            if check:
                raise CommandError(f"Unknown player: {options['player']!r}")
            player = Player.objects.create(name=options["player"])

        if kind == "csv":
            delimiter = (
                get_delimiter_string(options["delimiter"], options["custom_delimiter"])
                if options["delimiter"]
                else None
            )
            result = import_csv_runs(
                raw_text, player=player, delimiter=delimiter, resolution=resolution, check=check
            )
        else:
            result = import_clipboard_run(raw_text, player=player, resolution=resolution, check=check)

        self._report(result)
        mode = "CHECK" if check else "WRITE"
        totals = {
            "added": len(result.added),
            "duplicates": len(result.duplicates),
            "overwritten": len(result.overwritten),
            "failed": result.failed,
        }
        self.stdout.write(f"[{mode}] player={player.name} {totals}")
        return None

    def _read_input(self, path: str) -> str:
        if path == "-":
            return sys.stdin.read()
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise CommandError(f"Cannot read {path!r}: {exc}") from exc

    def _report(self, result: ImportResult) -> None:
        for error in result.errors:
            self.stderr.write(error)

        mismatch = result.format_mismatch
        if mismatch is not None and mismatch.number_mismatch:
            self.stderr.write(
                f"Warning: data looks like it uses {mismatch.detected_decimal_separator!r} as the "
                "decimal separator; check the import format."
            )
        if mismatch is not None and mismatch.date_mismatch:
            self.stderr.write(
                f"Warning: battle date looks like the {mismatch.detected_date_format.value} layout; "
                "check the import format."
            )

        if result.missing_battle_date_column:
            self.stderr.write("Warning: no Battle Date column; timestamps come from _Date/_Time or import time.")
        for warning in result.date_warnings:
            fix = "fixable from _Date/_Time" if warning.is_fixable else "using import time"
            self.stderr.write(f"Row {warning.row_number}: {warning.error.message} ({fix})")

        report = result.field_mapping_report
        if report is not None:
            for similar in report.similar_fields:
                self.stderr.write(
                    f"Field {similar.imported_field!r} looks like existing field {similar.existing_field!r}."
                )
            if report.unsupported_fields:
                self.stdout.write(f"Unrecognized fields kept: {', '.join(report.unsupported_fields)}")
