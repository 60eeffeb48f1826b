"""Delimited (CSV/TSV) run import.

Rows share the clipboard parser's field normalization and type inference;
every header becomes a field, whether or not it is a known game metric.
Parsing never raises: total failures and per-row failures are reported in
the returned `CsvParseResult`.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Final

from analysis.dates import (
    BattleDateValidationError,
    construct_date,
    derive_date_time_from_battle_date,
    parse_timestamp_from_fields,
    validate_battle_date,
)
from analysis.dto import CANONICAL_STORAGE_FORMAT, FieldValue, ImportFormatSettings, RunRecord
from analysis.field_registry import SUPPORTED_FIELDS
from analysis.field_similarity import FieldStatus, SimilarityType, classify_fields
from analysis.fields import FIELD_DATE, FIELD_TIME, create_field, create_internal_field, normalize_field_name
from analysis.records import build_run_record

BATTLE_DATE_FIELD: Final[str] = "battleDate"


class CsvDelimiter(str, Enum):
    """Delimiter choices offered for import and export."""

    tab = "tab"
    comma = "comma"
    semicolon = "semicolon"
    custom = "custom"


DELIMITER_MAP: Final[dict[CsvDelimiter, str]] = {
    CsvDelimiter.tab: "\t",
    CsvDelimiter.comma: ",",
    CsvDelimiter.semicolon: ";",
    CsvDelimiter.custom: ",",
}


def get_delimiter_string(delimiter: CsvDelimiter | str, custom_delimiter: str | None = None) -> str:
    """Resolve a delimiter choice to the separator string."""

    delimiter = CsvDelimiter(delimiter)
    if delimiter is CsvDelimiter.custom and custom_delimiter:
        return custom_delimiter
    return DELIMITER_MAP[delimiter]


def detect_delimiter(header_line: str) -> str:
    """Guess the delimiter from the header line: tab, then semicolon, then comma."""

    if "\t" in header_line:
        return "\t"
    if header_line.count(";") > header_line.count(","):
        return ";"
    return ","


@dataclass(frozen=True, slots=True)
class FieldMapping:
    """How one CSV header maps onto known fields."""

    csv_header: str
    field_name: str
    supported: bool
    status: FieldStatus
    similar_to: str | None = None
    similarity_type: SimilarityType | None = None


@dataclass(frozen=True, slots=True)
class SimilarFieldWarning:
    """An imported header that looks like a field the player already has."""

    imported_field: str
    existing_field: str
    similarity_type: SimilarityType


@dataclass(frozen=True, slots=True)
class FieldMappingReport:
    """Header classification for an import.

    Attributes:
        mapped_fields: Every header with its classification.
        new_fields: Headers neither known to the player nor registered.
        similar_fields: Headers resembling an existing field.
        unsupported_fields: Headers outside the field registry (still imported).
    """

    mapped_fields: tuple[FieldMapping, ...] = ()
    new_fields: tuple[str, ...] = ()
    similar_fields: tuple[SimilarFieldWarning, ...] = ()
    unsupported_fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DateWarningContext:
    """Identifying details of a row with a date problem."""

    tier: int | None = None
    wave: int | None = None
    duration: str | None = None


@dataclass(frozen=True, slots=True)
class DateValidationWarning:
    """A row that imported although its battle date failed validation.

    Attributes:
        row_number: 1-indexed data row (header excluded).
        raw_value: The rejected battle date text.
        error: Validation details.
        context: Tier/wave/duration to help identify the run.
        fallback_used: `internal-fields` when `_date`/`_time` supplied the
            timestamp, otherwise `import-time`.
        is_fixable: True when `_date`/`_time` yield a valid datetime.
        date_field_value: Raw `_date` value, if any.
        time_field_value: Raw `_time` value, if any.
        derived_battle_date: Datetime built from `_date`/`_time` when fixable.
    """

    row_number: int
    raw_value: str
    error: BattleDateValidationError
    context: DateWarningContext
    fallback_used: str
    is_fixable: bool
    date_field_value: str | None = None
    time_field_value: str | None = None
    derived_battle_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class CsvParseResult:
    """Outcome of a delimited import."""

    success: tuple[RunRecord, ...] = ()
    failed: int = 0
    errors: tuple[str, ...] = ()
    field_mapping_report: FieldMappingReport = field(default_factory=FieldMappingReport)
    date_warnings: tuple[DateValidationWarning, ...] = ()
    missing_battle_date_column: bool = False


def failure_message(exc: BaseException) -> str:
    """Format an unexpected exception as a user-facing parse failure."""

    reason = str(exc).strip()
    return f"Failed to parse data: {reason}" if reason else "Unknown error"


def create_field_mapping_report(
    headers: Sequence[str],
    known_fields: Sequence[str] = (),
    supported_fields: Iterable[str] = SUPPORTED_FIELDS,
) -> FieldMappingReport:
    """Classify headers against the player's known headers and the registry.

    Args:
        headers: CSV headers as written in the file.
        known_fields: Header names the player already has stored.
        supported_fields: Registered camelCase field names.

    Returns:
        FieldMappingReport. A registered header is never reported as new.
    """

    supported = frozenset(supported_fields)
    classifications = classify_fields(headers, known_fields)

    mapped: list[FieldMapping] = []
    for header, classification in zip(headers, classifications):
        field_name = normalize_field_name(header)
        is_supported = field_name in supported
        status = classification.status
        if is_supported and status is FieldStatus.new_field:
            status = FieldStatus.exact_match
        mapped.append(
            FieldMapping(
                csv_header=header,
                field_name=field_name,
                supported=is_supported,
                status=status,
                similar_to=classification.similar_to,
                similarity_type=classification.similarity_type,
            )
        )

    return FieldMappingReport(
        mapped_fields=tuple(mapped),
        new_fields=tuple(m.csv_header for m in mapped if m.status is FieldStatus.new_field),
        similar_fields=tuple(
            SimilarFieldWarning(
                imported_field=c.field_name,
                existing_field=c.similar_to,
                similarity_type=c.similarity_type,
            )
            for c in classifications
            if c.status is FieldStatus.similar_field and c.similar_to and c.similarity_type
        ),
        unsupported_fields=tuple(m.csv_header for m in mapped if not m.supported),
    )


def split_rows(text: str, delimiter: str) -> list[list[str]]:
    """Split delimited text into trimmed cell lists, honoring `"` quoting.

    Multi-character custom delimiters fall back to a plain split.
    """

    if len(delimiter) != 1:
        return [[cell.strip() for cell in line.split(delimiter)] for line in text.split("\n")]
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, quotechar='"')
    return [[cell.strip() for cell in row] for row in reader]


def parse_generic_csv(
    raw_input: str,
    *,
    delimiter: str | None = None,
    import_format: ImportFormatSettings | None = None,
    known_fields: Sequence[str] = (),
    supported_fields: Iterable[str] = SUPPORTED_FIELDS,
) -> CsvParseResult:
    """Parse delimited run data with a header row.

    Args:
        raw_input: File contents.
        delimiter: Separator; detected from the header line when omitted.
        import_format: Separators and date layout of the data.
        known_fields: Header names already stored, for the mapping report.
        supported_fields: Registered field names, for the mapping report.

    Returns:
        CsvParseResult. Rows with more cells than headers fail individually;
        rows with an invalid battle date import with a DateValidationWarning.
    """

    try:
        return _parse_generic_csv(
            raw_input,
            delimiter=delimiter,
            import_format=import_format or CANONICAL_STORAGE_FORMAT,
            known_fields=known_fields,
            supported_fields=supported_fields,
        )
    except Exception as exc:  # noqa: BLE001 - converted into the result shape
        return CsvParseResult(errors=(failure_message(exc),))


def _parse_generic_csv(
    raw_input: str,
    *,
    delimiter: str | None,
    import_format: ImportFormatSettings,
    known_fields: Sequence[str],
    supported_fields: Iterable[str],
) -> CsvParseResult:
    text = (raw_input or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return CsvParseResult(errors=("Failed to parse data: No data provided",))

    header_line = text.split("\n", 1)[0]
    delimiter = delimiter or detect_delimiter(header_line)
    rows = split_rows(text, delimiter)
    headers = [header.strip().strip('"') for header in rows[0]]
    field_names = [normalize_field_name(header) for header in headers]
    battle_date_index = max(
        (column for column, name in enumerate(field_names) if name == BATTLE_DATE_FIELD), default=None
    )

    report = create_field_mapping_report(headers, known_fields, supported_fields)

    success: list[RunRecord] = []
    errors: list[str] = []
    warnings: list[DateValidationWarning] = []
    failed = 0
    data_rows = 0

    for index, values in enumerate(rows[1:], start=1):
        if not any(values):
            continue
        data_rows += 1
        if len(values) > len(headers):
            errors.append(
                f"Row {index + 1}: Too many columns (expected max {len(headers)}, got {len(values)})"
            )
            failed += 1
            continue
        try:
            run, warning = _parse_row(
                values,
                headers=headers,
                field_names=field_names,
                battle_date_index=battle_date_index,
                import_format=import_format,
                row_number=index,
            )
        except Exception as exc:  # noqa: BLE001 - one bad row must not abort the import
            errors.append(f"Row {index + 1}: {str(exc) or 'Unknown error'}")
            failed += 1
            continue
        success.append(run)
        if warning is not None:
            warnings.append(warning)

    if data_rows == 0:
        errors.append("Failed to parse data: No data rows found")

    return CsvParseResult(
        success=tuple(success),
        failed=failed,
        errors=tuple(errors),
        field_mapping_report=report,
        date_warnings=tuple(warnings),
        missing_battle_date_column=battle_date_index is None,
    )


def _parse_row(
    values: Sequence[str],
    *,
    headers: Sequence[str],
    field_names: Sequence[str],
    battle_date_index: int | None,
    import_format: ImportFormatSettings,
    row_number: int,
) -> tuple[RunRecord, DateValidationWarning | None]:
    fields: dict[str, FieldValue] = {}
    for column, raw_value in enumerate(values):
        field_name = field_names[column]
        if not raw_value or not field_name:
            continue
        fields[field_name] = create_field(headers[column], raw_value, import_format)

    warning = None
    if battle_date_index is not None:
        warning = _process_battle_date(
            fields,
            values[battle_date_index] if battle_date_index < len(values) else "",
            import_format=import_format,
            row_number=row_number,
        )

    timestamp = parse_timestamp_from_fields(fields, date_format=import_format.date_format)
    return build_run_record(fields, timestamp=timestamp), warning


def _process_battle_date(
    fields: dict[str, FieldValue],
    raw_value: str,
    *,
    import_format: ImportFormatSettings,
    row_number: int,
) -> DateValidationWarning | None:
    """Derive `_date`/`_time` from a valid battle date or describe why it failed."""

    result = validate_battle_date(
        raw_value, date_format=import_format.date_format, warn_future_dates=False
    )
    if result.date is not None:
        if FIELD_DATE not in fields or FIELD_TIME not in fields:
            derived_date, derived_time = derive_date_time_from_battle_date(result.date)
            fields[FIELD_DATE] = create_internal_field("Date", derived_date)
            fields[FIELD_TIME] = create_internal_field("Time", derived_time)
        return None

    date_field = fields.get(FIELD_DATE)
    time_field = fields.get(FIELD_TIME)
    date_value = date_field.raw_value if date_field is not None else None
    time_value = time_field.raw_value if time_field is not None else None
    derived = construct_date(date_value, time_value) if date_value and time_value else None

    tier_field = fields.get("tier")
    wave_field = fields.get("wave")
    real_time_field = fields.get("realTime")
    return DateValidationWarning(
        row_number=row_number,
        raw_value=raw_value,
        error=result.error,
        context=DateWarningContext(
            tier=_context_int(tier_field),
            wave=_context_int(wave_field),
            duration=real_time_field.raw_value if real_time_field is not None else None,
        ),
        fallback_used="internal-fields" if derived is not None else "import-time",
        is_fixable=derived is not None,
        date_field_value=date_value,
        time_field_value=time_value,
        derived_battle_date=derived,
    )


def _context_int(found: FieldValue | None) -> int | None:
    if found is None or isinstance(found.value, (str, datetime)):
        return None
    return int(found.value)
