"""Pure analysis package for towerTracker.

This package contains deterministic, testable parsing, detection and
aggregation code that operates on in-memory inputs and returns DTOs. It must
not import Django or perform any database I/O.
"""

from .duplicates import detect_batch_duplicates, detect_duplicate, generate_composite_key
from .dto import FieldValue, ImportFormatSettings, RunRecord, RunType
from .format_detection import detect_format_mismatch

__all__ = [
    "FieldValue",
    "ImportFormatSettings",
    "RunRecord",
    "RunType",
    "detect_batch_duplicates",
    "detect_duplicate",
    "detect_format_mismatch",
    "generate_composite_key",
]
