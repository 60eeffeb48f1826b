"""Service-layer functions for the core app.

Services in `core` coordinate Django persistence concerns (ORM, transactions)
with the pure parsing and duplicate-detection modules. A player's runs live
in one `RunStore` payload; every mutation loads it, applies the change and
writes it back inside a single transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from django.conf import settings
from django.db import transaction

from analysis.discrepancy import Discrepancy, run_breakdown_discrepancy
from analysis.dto import ImportFormatSettings, RunRecord
from analysis.duplicates import (
    DuplicatePair,
    detect_batch_duplicates,
    detect_duplicate,
    generate_composite_keys_set,
)
from analysis.format_detection import FormatMismatchResult, detect_format_mismatch
from analysis.locale import DisplayLocaleContext
from analysis.records import RunRecordError, validate_run_record
from core.parsers.battle_report import BattleReportParseError, extract_raw_field_map, parse_game_run
from core.parsers.csv_export import STORAGE_ID_HEADER, deserialize_run_store, serialize_run_store
from core.parsers.csv_import import (
    DateValidationWarning,
    FieldMappingReport,
    failure_message,
    parse_generic_csv,
)
from gamedata.models import ImportFormatPreference, Player, RunStore

logger = logging.getLogger(__name__)

# Fields whose provenance decides a run's timestamp on reload.
_TIMESTAMP_FIELDS = ("battleDate", "_date", "_time")


class DuplicateResolution(str, Enum):
    """What to do with an incoming run that duplicates a stored one."""

    skip = "skip"
    overwrite = "overwrite"


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of an import.

    Attributes:
        added: Runs stored as new.
        overwritten: Stored runs replaced by incoming duplicates.
        duplicates: Incoming runs matching a stored run.
        failed: Rows/pastes that could not become a run.
        errors: Human-readable failure messages.
        format_mismatch: Advisory clipboard format check, when run.
        field_mapping_report: CSV header classification, for CSV imports.
        date_warnings: CSV rows imported despite an invalid battle date.
        missing_battle_date_column: True when a CSV had no Battle Date column.
    """

    added: tuple[RunRecord, ...] = ()
    overwritten: tuple[RunRecord, ...] = ()
    duplicates: tuple[DuplicatePair, ...] = ()
    failed: int = 0
    errors: tuple[str, ...] = ()
    format_mismatch: FormatMismatchResult | None = None
    field_mapping_report: FieldMappingReport | None = None
    date_warnings: tuple[DateValidationWarning, ...] = ()
    missing_battle_date_column: bool = False


def resolve_import_format(player: Player) -> ImportFormatSettings:
    """Return the player's stored import format, or the settings defaults."""

    preference = ImportFormatPreference.objects.filter(player=player).first()
    if preference is not None:
        return preference.to_settings()
    return ImportFormatSettings(**settings.IMPORT_FORMAT_DEFAULTS)


def save_import_format(player: Player, import_format: ImportFormatSettings) -> ImportFormatPreference:
    """Persist a player's import format preference."""

    preference = ImportFormatPreference.objects.filter(player=player).first() or ImportFormatPreference(
        player=player
    )
    preference.decimal_separator = import_format.decimal_separator
    preference.thousands_separator = import_format.thousands_separator
    preference.date_format = import_format.date_format.value
    preference.save()
    return preference


def display_context(locale: str | None = None) -> DisplayLocaleContext:
    """Return a display context for `locale`, defaulting to settings.DISPLAY_LOCALE."""

    return DisplayLocaleContext(locale or settings.DISPLAY_LOCALE)


def coin_discrepancy(run: RunRecord) -> Discrepancy | None:
    """Check a run's coin breakdown against settings.DISCREPANCY_THRESHOLD."""

    return run_breakdown_discrepancy(run, threshold=Decimal(settings.DISCREPANCY_THRESHOLD))


def load_runs(player: Player) -> list[RunRecord]:
    """Load a player's runs, newest first."""

    store = RunStore.objects.filter(player=player).first()
    if store is None:
        return []
    return deserialize_run_store(store.payload)


def save_runs(player: Player, runs: Iterable[RunRecord]) -> None:
    """Replace a player's stored runs."""

    payload = serialize_run_store(runs)
    RunStore.objects.update_or_create(player=player, defaults={"payload": payload})


def _locked_runs(player: Player, *, create: bool = True) -> list[RunRecord]:
    """Load runs while holding a row lock on the player's store.

    Must be called inside `transaction.atomic()`. With `create=False` a
    missing store reads as empty and no row is inserted.
    """

    if not create:
        store = RunStore.objects.select_for_update().filter(player=player).first()
        return deserialize_run_store(store.payload) if store is not None else []
    store, _ = RunStore.objects.select_for_update().get_or_create(player=player)
    return deserialize_run_store(store.payload)


def add_run(player: Player, run: RunRecord) -> bool:
    """Store one run unless it duplicates a stored run.

    Returns:
        True when stored, False for a duplicate.

    Raises:
        RunRecordError: If the run violates the record invariants.
    """

    validate_run_record(run)
    with transaction.atomic():
        runs = _locked_runs(player)
        detection = detect_duplicate(run, generate_composite_keys_set(runs), runs)
        if detection.is_duplicate:
            logger.info("Skipped duplicate run %s for player %s", detection.composite_key, player.pk)
            return False
        save_runs(player, [run, *runs])
    logger.info("Stored run %s for player %s", run.id, player.pk)
    return True


def add_runs(player: Player, new_runs: Sequence[RunRecord], *, skip_duplicates: bool = True) -> int:
    """Store several runs at once.

    Args:
        player: Owning player.
        new_runs: Runs to store.
        skip_duplicates: Drop runs matching a stored run (or an earlier run of
            the batch); when False every run is stored.

    Returns:
        Number of runs stored.
    """

    for run in new_runs:
        validate_run_record(run)
    with transaction.atomic():
        runs = _locked_runs(player)
        if skip_duplicates:
            batch = detect_batch_duplicates(new_runs, generate_composite_keys_set(runs), runs)
            to_store = list(batch.new_runs)
        else:
            to_store = list(new_runs)
        save_runs(player, [*to_store, *runs])
    logger.info("Stored %s of %s runs for player %s", len(to_store), len(new_runs), player.pk)
    return len(to_store)


def merge_overwrite(existing: RunRecord, incoming: RunRecord, *, keep_timestamp: bool = True) -> RunRecord:
    """Build the replacement for `existing` from an incoming duplicate.

    The replacement keeps the existing id. With `keep_timestamp`, it also
    keeps the existing timestamp and the fields it is derived from
    (`battleDate`, `_date`, `_time`), so the stored timestamp survives reloads.
    """

    if not keep_timestamp:
        return replace(incoming, id=existing.id)

    fields = {name: value for name, value in incoming.fields.items() if name not in _TIMESTAMP_FIELDS}
    for name in _TIMESTAMP_FIELDS:
        if name in existing.fields:
            fields[name] = existing.fields[name]
    return replace(incoming, id=existing.id, timestamp=existing.timestamp, fields=fields)


def overwrite_run(
    player: Player,
    existing_id: str,
    incoming: RunRecord,
    *,
    keep_timestamp: bool = True,
) -> RunRecord:
    """Replace a stored run with an incoming one.

    Raises:
        RunRecordError: If no stored run has `existing_id` or `incoming` is invalid.
    """

    validate_run_record(incoming)
    with transaction.atomic():
        runs = _locked_runs(player)
        existing = next((run for run in runs if run.id == existing_id), None)
        if existing is None:
            raise RunRecordError(f"Run {existing_id} not found.")
        replacement = merge_overwrite(existing, incoming, keep_timestamp=keep_timestamp)
        save_runs(player, [replacement if run.id == existing_id else run for run in runs])
    logger.info("Overwrote run %s for player %s", existing_id, player.pk)
    return replacement


def remove_run(player: Player, run_id: str) -> bool:
    """Delete one stored run.

    Returns:
        True when a run was removed.
    """

    with transaction.atomic():
        runs = _locked_runs(player)
        remaining = [run for run in runs if run.id != run_id]
        if len(remaining) == len(runs):
            return False
        save_runs(player, remaining)
    logger.info("Removed run %s for player %s", run_id, player.pk)
    return True


def clear_all(player: Player) -> int:
    """Delete every stored run.

    Returns:
        Number of runs removed.
    """

    with transaction.atomic():
        runs = _locked_runs(player)
        save_runs(player, [])
    logger.info("Cleared %s runs for player %s", len(runs), player.pk)
    return len(runs)


def _apply_batch(
    player: Player,
    parsed: Sequence[RunRecord],
    *,
    resolution: DuplicateResolution,
    check: bool,
) -> tuple[tuple[RunRecord, ...], tuple[RunRecord, ...], tuple[DuplicatePair, ...]]:
    """Classify parsed runs against the store and persist them unless `check`."""

    with transaction.atomic():
        runs = _locked_runs(player, create=not check)
        batch = detect_batch_duplicates(parsed, generate_composite_keys_set(runs), runs)

        overwritten: list[RunRecord] = []
        if resolution is DuplicateResolution.overwrite:
            replacements = {
                pair.existing_run.id: merge_overwrite(pair.existing_run, pair.new_run)
                for pair in batch.duplicates
            }
            overwritten = list(replacements.values())
            runs = [replacements.get(run.id, run) for run in runs]

        if not check:
            save_runs(player, [*batch.new_runs, *runs])

    return batch.new_runs, tuple(overwritten), batch.duplicates


def _validated(runs: Iterable[RunRecord]) -> tuple[list[RunRecord], list[str]]:
    valid: list[RunRecord] = []
    errors: list[str] = []
    for run in runs:
        try:
            valid.append(validate_run_record(run))
        except RunRecordError as exc:
            errors.append(str(exc))
    return valid, errors


def import_clipboard_run(
    raw_text: str,
    *,
    player: Player,
    custom_timestamp: datetime | None = None,
    import_format: ImportFormatSettings | None = None,
    resolution: DuplicateResolution = DuplicateResolution.skip,
    check: bool = False,
) -> ImportResult:
    """Import one pasted Battle Report.

    Args:
        raw_text: Pasted Battle Report text.
        player: Owning player.
        custom_timestamp: Timestamp for reports without a usable date.
        import_format: Overrides the player's stored format.
        resolution: Duplicate handling.
        check: Dry-run; classify without writing.

    Returns:
        ImportResult carrying the advisory format mismatch check.
    """

    import_format = import_format or resolve_import_format(player)
    mismatch = detect_format_mismatch(extract_raw_field_map(raw_text or ""), import_format)
    if mismatch.has_mismatch:
        logger.warning(
            "Import format mismatch for player %s: decimal=%s date=%s",
            player.pk,
            mismatch.detected_decimal_separator,
            mismatch.detected_date_format,
        )

    try:
        run = parse_game_run(raw_text, custom_timestamp=custom_timestamp, import_format=import_format)
    except BattleReportParseError as exc:
        return ImportResult(failed=1, errors=(failure_message(exc),), format_mismatch=mismatch)
    except Exception as exc:  # noqa: BLE001 - reported through the result
        logger.exception("Unexpected clipboard parse failure for player %s", player.pk)
        return ImportResult(failed=1, errors=(failure_message(exc),), format_mismatch=mismatch)

    valid, errors = _validated([run])
    if not valid:
        return ImportResult(failed=1, errors=tuple(errors), format_mismatch=mismatch)

    added, overwritten, duplicates = _apply_batch(player, valid, resolution=resolution, check=check)
    return ImportResult(
        added=added,
        overwritten=overwritten,
        duplicates=duplicates,
        format_mismatch=mismatch,
    )


def import_csv_runs(
    raw_text: str,
    *,
    player: Player,
    delimiter: str | None = None,
    import_format: ImportFormatSettings | None = None,
    resolution: DuplicateResolution = DuplicateResolution.skip,
    check: bool = False,
) -> ImportResult:
    """Import delimited run data.

    Args:
        raw_text: File contents with a header row.
        player: Owning player.
        delimiter: Separator; detected from the header when omitted.
        import_format: Overrides the player's stored format.
        resolution: Duplicate handling.
        check: Dry-run; classify without writing.

    Returns:
        ImportResult. Rows without a tier count as failed.
    """

    import_format = import_format or resolve_import_format(player)
    known_fields = _stored_headers(player)
    parsed = parse_generic_csv(
        raw_text, delimiter=delimiter, import_format=import_format, known_fields=known_fields
    )
    valid, errors = _validated(parsed.success)

    added: tuple[RunRecord, ...] = ()
    overwritten: tuple[RunRecord, ...] = ()
    duplicates: tuple[DuplicatePair, ...] = ()
    if valid:
        added, overwritten, duplicates = _apply_batch(player, valid, resolution=resolution, check=check)

    logger.info(
        "CSV import for player %s: %s added, %s duplicates, %s failed",
        player.pk,
        len(added),
        len(duplicates),
        parsed.failed + len(errors),
    )
    return ImportResult(
        added=added,
        overwritten=overwritten,
        duplicates=duplicates,
        failed=parsed.failed + len(errors),
        errors=parsed.errors + tuple(errors),
        field_mapping_report=parsed.field_mapping_report,
        date_warnings=parsed.date_warnings,
        missing_battle_date_column=parsed.missing_battle_date_column,
    )


def _stored_headers(player: Player) -> list[str]:
    """Return the header names of the player's stored payload."""

    store = RunStore.objects.filter(player=player).first()
    if store is None or not store.payload:
        return []
    header_line = store.payload.split("\n", 1)[0]
    return [header for header in header_line.split("\t") if header and header != STORAGE_ID_HEADER]
