"""Best-effort Battle Report (clipboard paste) parsing.

The game copies a Battle Report as one `Label<TAB>Value` line per metric,
interleaved with section headers (`Battle Report`, `Combat`, `Utility`).
Some tools prefix each line with a line number and an arrow
(`     1→Game Time\t1d 13h 24m 51s`). Guiding rules:

- Unknown labels are non-fatal and kept as open-ended fields.
- Section headers and lines without a value are skipped.
- The last occurrence of a label wins.
"""

from __future__ import annotations

import re
from datetime import datetime

from analysis.dates import derive_date_time_from_battle_date, parse_battle_date, parse_timestamp_from_fields
from analysis.dto import CANONICAL_STORAGE_FORMAT, ImportFormatSettings, RunRecord
from analysis.fields import FIELD_DATE, FIELD_TIME, build_fields, create_internal_field
from analysis.records import build_run_record

_LABEL_SEPARATOR = r"(?:\t+[ \t]*|[ \t]{2,})"
_LABEL_VALUE_RE = re.compile(rf"^[ \t]*(?P<label>.+?){_LABEL_SEPARATOR}(?P<value>.*?)[ \t]*$")
_ARROW_PREFIX_RE = re.compile(r"^\s*\d*\s*→")


class BattleReportParseError(ValueError):
    """Raised when pasted text contains no label/value lines at all."""


def extract_raw_field_map(raw_text: str) -> dict[str, str]:
    """Extract `label -> raw value` pairs from pasted Battle Report text.

    Args:
        raw_text: Raw Battle Report text.

    Returns:
        Ordered mapping of source labels to trimmed raw values. Labels keep
        their original spelling so they can be re-exported; a repeated label
        keeps its last value.
    """

    return dict(_iter_label_value_lines(raw_text))


def _iter_label_value_lines(raw_text: str) -> list[tuple[str, str]]:
    """Return (label, value) pairs for lines that look like `Label<sep>Value`.

    Notes:
        Arrow-numbered lines without a tab are section headers and are
        skipped. Plain lines are split on a tab or on two or more spaces.
    """

    pairs: list[tuple[str, str]] = []
    for line in raw_text.strip().splitlines():
        if not line.strip():
            continue

        arrow = _ARROW_PREFIX_RE.match(line)
        if arrow is not None:
            line = line[arrow.end():]
            if "\t" not in line:
                continue

        match = _LABEL_VALUE_RE.match(line)
        if match is None:
            continue
        label = match.group("label").strip()
        value = match.group("value").strip()
        if label and value:
            pairs.append((label, value))
    return pairs


def parse_game_run(
    raw_input: str,
    *,
    custom_timestamp: datetime | None = None,
    import_format: ImportFormatSettings | None = None,
) -> RunRecord:
    """Parse a pasted Battle Report into a RunRecord.

    Args:
        raw_input: Raw Battle Report text.
        custom_timestamp: Timestamp to use when the report has no usable
            battle date or `_date`/`_time` fields.
        import_format: Separators and date layout of the pasted text.
            Defaults to the canonical format.

    Returns:
        RunRecord with a fresh id.

    Raises:
        BattleReportParseError: If no label/value lines were found.

    Notes:
        When `Battle Date` parses, `_date` (`YYYY-MM-DD`) and `_time`
        (`HH:MM:SS`) are derived from it unless both are already present.
        Legacy `date`/`time`/`notes`/`run_type`/`rank` labels are migrated to
        their underscore-prefixed names.
    """

    import_format = import_format or CANONICAL_STORAGE_FORMAT
    raw_field_map = extract_raw_field_map(raw_input)
    if not raw_field_map:
        raise BattleReportParseError("No Battle Report fields found")

    fields = build_fields(raw_field_map, import_format)

    battle_date_field = fields.get("battleDate")
    battle_date = (
        parse_battle_date(battle_date_field.raw_value, import_format.date_format)
        if battle_date_field is not None
        else None
    )
    if battle_date is not None:
        if FIELD_DATE not in fields or FIELD_TIME not in fields:
            derived_date, derived_time = derive_date_time_from_battle_date(battle_date)
            fields[FIELD_DATE] = create_internal_field("Date", derived_date)
            fields[FIELD_TIME] = create_internal_field("Time", derived_time)
        timestamp = battle_date
    else:
        timestamp = parse_timestamp_from_fields(
            fields, custom_timestamp, date_format=import_format.date_format
        )

    return build_run_record(fields, timestamp=timestamp)
