"""Delimited export of runs and the tab-delimited run-store payload.

Column order: internal fields (`_Date`, `_Time`, `_Notes`, `_Run Type`,
`_Rank`) first, then `Battle Date`, then every other field by its source
header. The run store reuses the same layout with a leading `_Id` column and
canonical number/date text so stored values reload losslessly.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Final

from analysis.dates import (
    format_canonical_battle_date,
    format_filename_datetime,
    format_iso_date,
    format_iso_time,
    parse_timestamp_from_fields,
)
from analysis.dto import CANONICAL_STORAGE_FORMAT, FieldDataType, FieldValue, RunRecord
from analysis.fields import (
    FIELD_DATE,
    FIELD_NOTES,
    FIELD_RUN_TYPE,
    FIELD_TIME,
    INTERNAL_FIELD_HEADERS,
    INTERNAL_FIELD_ORDER,
    create_field,
    normalize_field_name,
)
from analysis.notes_encoding import encode_notes_for_storage
from analysis.quantity import format_canonical_quantity
from analysis.records import build_run_record

from .csv_import import BATTLE_DATE_FIELD, CsvDelimiter, get_delimiter_string, split_rows

STORAGE_ID_HEADER: Final[str] = "_Id"
MAX_CONFLICT_EXAMPLES: Final[int] = 3


class ExportOutputFormat(str, Enum):
    """How game field values are written."""

    raw = "raw"
    canonical = "canonical"


@dataclass(frozen=True, slots=True)
class DelimiterConflict:
    """A field whose values contain the chosen delimiter (they are quoted)."""

    field_name: str
    header: str
    example_values: tuple[str, ...]
    affected_run_count: int


@dataclass(frozen=True, slots=True)
class CsvExportResult:
    """Export output and the delimiter conflicts found while writing it."""

    csv_content: str
    conflicts: tuple[DelimiterConflict, ...]
    field_count: int
    row_count: int


@dataclass(frozen=True, slots=True)
class _Column:
    field_name: str
    header: str


def generate_export_filename(run_count: int, now: datetime | None = None) -> str:
    """Return `tower_tracking_export_<n>_runs_<YYYY-MM-DD_HH-MM-SS>.csv`."""

    stamp = format_filename_datetime(now or datetime.now(tz=timezone.utc))
    return f"tower_tracking_export_{run_count}_runs_{stamp}.csv"


def _select_columns(
    runs: Sequence[RunRecord],
    *,
    include_app_fields: bool,
    required_internal: Iterable[str] = (),
) -> list[_Column]:
    present: dict[str, str] = {}
    for run in runs:
        for field_name, field_value in run.fields.items():
            present.setdefault(field_name, field_value.original_key)

    columns: list[_Column] = []
    if include_app_fields:
        wanted = set(required_internal) | present.keys()
        columns.extend(
            _Column(name, INTERNAL_FIELD_HEADERS[name]) for name in INTERNAL_FIELD_ORDER if name in wanted
        )
    if BATTLE_DATE_FIELD in present:
        columns.append(_Column(BATTLE_DATE_FIELD, present[BATTLE_DATE_FIELD]))

    others = [
        _Column(name, header)
        for name, header in present.items()
        if name not in INTERNAL_FIELD_HEADERS
        and name != BATTLE_DATE_FIELD
        and (include_app_fields or not name.startswith("_"))
    ]
    columns.extend(sorted(others, key=lambda column: column.header))
    return columns


def internal_field_text(run: RunRecord, field_name: str) -> str:
    """Return the export text of an internal field, falling back to run data."""

    found = run.fields.get(field_name)
    if field_name == FIELD_DATE:
        return found.raw_value if found is not None else format_iso_date(run.timestamp)
    if field_name == FIELD_TIME:
        return found.raw_value if found is not None else format_iso_time(run.timestamp)
    if field_name == FIELD_NOTES:
        return encode_notes_for_storage(str(found.value)) if found is not None else ""
    if field_name == FIELD_RUN_TYPE:
        return found.raw_value if found is not None else run.run_type.value
    return found.raw_value if found is not None else ""


def game_field_text(field_value: FieldValue, output_format: ExportOutputFormat) -> str:
    """Return the export text of a game field.

    Notes:
        Canonical output rewrites numbers with a `.` decimal and no grouping
        and parsed dates in the `Oct 14, 2025 13:14` layout; durations and
        strings keep their raw text.
    """

    if output_format is ExportOutputFormat.raw:
        return field_value.raw_value
    if field_value.data_type is FieldDataType.number and isinstance(field_value.value, Decimal):
        return format_canonical_quantity(field_value.value, field_value.raw_value)
    if field_value.data_type is FieldDataType.date and isinstance(field_value.value, datetime):
        return format_canonical_battle_date(field_value.value)
    return field_value.raw_value


def _row_values(run: RunRecord, columns: Sequence[_Column], output_format: ExportOutputFormat) -> list[str]:
    values: list[str] = []
    for column in columns:
        if column.field_name in INTERNAL_FIELD_HEADERS:
            values.append(internal_field_text(run, column.field_name))
            continue
        found = run.fields.get(column.field_name)
        values.append(game_field_text(found, output_format) if found is not None else "")
    return values


def detect_delimiter_conflicts(
    headers: Sequence[str],
    field_names: Sequence[str],
    rows: Sequence[Sequence[str]],
    delimiter: str,
) -> tuple[DelimiterConflict, ...]:
    """Report fields whose values contain the delimiter.

    Returns:
        One DelimiterConflict per affected field, in column order, with up to
        three distinct example values.
    """

    conflicts: list[DelimiterConflict] = []
    for index, field_name in enumerate(field_names):
        examples: list[str] = []
        affected = 0
        for row in rows:
            value = row[index]
            if delimiter not in value:
                continue
            affected += 1
            if value not in examples and len(examples) < MAX_CONFLICT_EXAMPLES:
                examples.append(value)
        if affected:
            conflicts.append(
                DelimiterConflict(
                    field_name=field_name,
                    header=headers[index],
                    example_values=tuple(examples),
                    affected_run_count=affected,
                )
            )
    return tuple(conflicts)


def _quote_cell(value: str, delimiter: str) -> str:
    if delimiter in value or '"' in value or "\n" in value or "\r" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def write_rows(rows: Iterable[Sequence[str]], delimiter: str) -> str:
    """Serialize rows, quoting cells that contain the delimiter, quotes or newlines."""

    if len(delimiter) != 1:
        return "".join(delimiter.join(_quote_cell(cell, delimiter) for cell in row) + "\n" for row in rows)
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def export_to_csv(
    runs: Sequence[RunRecord],
    *,
    delimiter: CsvDelimiter | str = CsvDelimiter.tab,
    custom_delimiter: str | None = None,
    include_app_fields: bool = True,
    output_format: ExportOutputFormat | str = ExportOutputFormat.raw,
) -> CsvExportResult:
    """Export runs as delimited text with a header row.

    Args:
        runs: Runs to export, written in the given order.
        delimiter: Delimiter choice.
        custom_delimiter: Separator used when `delimiter` is `custom`.
        include_app_fields: Whether to write underscore-prefixed fields.
        output_format: `raw` keeps source text; `canonical` normalizes
            numbers and dates.

    Returns:
        CsvExportResult.
    """

    separator = get_delimiter_string(delimiter, custom_delimiter)
    output_format = ExportOutputFormat(output_format)
    columns = _select_columns(runs, include_app_fields=include_app_fields)
    headers = [column.header for column in columns]
    rows = [_row_values(run, columns, output_format) for run in runs]

    return CsvExportResult(
        csv_content=write_rows([headers, *rows], separator),
        conflicts=detect_delimiter_conflicts(
            headers, [column.field_name for column in columns], rows, separator
        ),
        field_count=len(columns),
        row_count=len(rows),
    )


def serialize_run_store(runs: Iterable[RunRecord]) -> str:
    """Serialize runs to the tab-delimited run-store payload, newest first.

    Every run gets `_Id`, `_Date` and `_Time` columns so ids and timestamps
    survive a reload; numbers and dates are written canonically.
    """

    ordered = sorted(runs, key=lambda run: run.timestamp, reverse=True)
    if not ordered:
        return ""
    columns = _select_columns(
        ordered, include_app_fields=True, required_internal=(FIELD_DATE, FIELD_TIME)
    )
    header_row = [STORAGE_ID_HEADER, *(column.header for column in columns)]
    rows = [[run.id, *_row_values(run, columns, ExportOutputFormat.canonical)] for run in ordered]
    return write_rows([header_row, *rows], "\t")


def deserialize_run_store(payload: str) -> list[RunRecord]:
    """Load runs from a run-store payload written by `serialize_run_store`.

    Returns:
        Runs in stored order. A row without an `_Id` value gets a fresh id.
    """

    text = (payload or "").strip("\n")
    if not text.strip():
        return []

    rows = split_rows(text, "\t")
    headers = rows[0]
    id_field = normalize_field_name(STORAGE_ID_HEADER)

    runs: list[RunRecord] = []
    for values in rows[1:]:
        if not any(values):
            continue
        run_id = None
        fields: dict[str, FieldValue] = {}
        for header, raw_value in zip(headers, values):
            field_name = normalize_field_name(header)
            if field_name == id_field:
                run_id = raw_value or None
                continue
            if not raw_value or not field_name:
                continue
            fields[field_name] = create_field(header, raw_value, CANONICAL_STORAGE_FORMAT)
        timestamp = parse_timestamp_from_fields(fields)
        runs.append(build_run_record(fields, timestamp=timestamp, run_id=run_id))
    return runs
