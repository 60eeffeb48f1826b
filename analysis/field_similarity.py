"""Similar-field detection for import mapping reports.

Imported headers are compared against field names the player already has so
typos and casing variants (`Coins Earned` vs `coins_earned`) can be surfaced
before they create a second column for the same metric.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final

DEFAULT_LEVENSHTEIN_THRESHOLD: Final[int] = 3
MIN_SIMILARITY_SCORE: Final[float] = 0.85

_SEPARATORS_RE = re.compile(r"[\s_-]")


class SimilarityType(str, Enum):
    """How two field names were found to match."""

    exact = "exact"
    case_variation = "case-variation"
    levenshtein = "levenshtein"


class FieldStatus(str, Enum):
    """Classification of an imported header."""

    exact_match = "exact-match"
    similar_field = "similar-field"
    new_field = "new-field"


@dataclass(frozen=True, slots=True)
class FieldSimilarityResult:
    """Best match of an imported name against known names."""

    similar: bool
    suggestion: str | None = None
    type: SimilarityType | None = None
    score: float | None = None


@dataclass(frozen=True, slots=True)
class FieldClassification:
    """Status of one imported header."""

    field_name: str
    status: FieldStatus
    is_internal: bool
    similar_to: str | None = None
    similarity_type: SimilarityType | None = None


def normalize_for_comparison(field_name: str) -> str:
    """Lowercase and drop spaces, underscores and hyphens (`Coins Earned` -> `coinsearned`)."""

    return _SEPARATORS_RE.sub("", field_name.lower()).strip()


def levenshtein_distance(first: str, second: str) -> int:
    """Return the single-character edit distance between two strings."""

    if first == second:
        return 0
    if not first:
        return len(second)
    if not second:
        return len(first)

    previous = list(range(len(second) + 1))
    for i, first_char in enumerate(first, start=1):
        current = [i]
        for j, second_char in enumerate(second, start=1):
            cost = 0 if first_char == second_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def are_case_variations(first: str, second: str) -> bool:
    """Return True when two names differ only in casing or separators."""

    return normalize_for_comparison(first) == normalize_for_comparison(second)


def check_field_similarity(
    imported_field: str,
    existing_fields: Iterable[str],
    levenshtein_threshold: int = DEFAULT_LEVENSHTEIN_THRESHOLD,
) -> FieldSimilarityResult:
    """Find the first known field that matches an imported name.

    Args:
        imported_field: Header from the import.
        existing_fields: Field names already known.
        levenshtein_threshold: Maximum edit distance to consider.

    Returns:
        FieldSimilarityResult. A case-insensitive exact match is reported with
        `similar=False` and type `exact`.

    Notes:
        Checks run per candidate in order: case-insensitive equality, equality
        after normalization, then edit distance with a score above 0.85.
    """

    imported_lower = imported_field.lower()
    imported_normalized = normalize_for_comparison(imported_field)

    for existing in existing_fields:
        if imported_lower == existing.lower():
            return FieldSimilarityResult(
                similar=False, suggestion=existing, type=SimilarityType.exact, score=1.0
            )

        existing_normalized = normalize_for_comparison(existing)
        if imported_normalized == existing_normalized:
            return FieldSimilarityResult(
                similar=True,
                suggestion=existing,
                type=SimilarityType.case_variation,
                score=0.95,
            )

        distance = levenshtein_distance(imported_normalized, existing_normalized)
        if 0 < distance <= levenshtein_threshold:
            longest = max(len(imported_normalized), len(existing_normalized))
            score = 1 - distance / longest
            if score > MIN_SIMILARITY_SCORE:
                return FieldSimilarityResult(
                    similar=True,
                    suggestion=existing,
                    type=SimilarityType.levenshtein,
                    score=score,
                )

    return FieldSimilarityResult(similar=False)


def classify_fields(
    imported_fields: Sequence[str],
    existing_fields: Sequence[str],
    levenshtein_threshold: int = DEFAULT_LEVENSHTEIN_THRESHOLD,
) -> list[FieldClassification]:
    """Classify each imported header as exact-match, similar-field or new-field."""

    classifications: list[FieldClassification] = []
    for field_name in imported_fields:
        is_internal = field_name.startswith("_")
        result = check_field_similarity(field_name, existing_fields, levenshtein_threshold)
        if result.type is SimilarityType.exact:
            classifications.append(
                FieldClassification(
                    field_name=field_name, status=FieldStatus.exact_match, is_internal=is_internal
                )
            )
        elif result.similar and result.suggestion:
            classifications.append(
                FieldClassification(
                    field_name=field_name,
                    status=FieldStatus.similar_field,
                    is_internal=is_internal,
                    similar_to=result.suggestion,
                    similarity_type=result.type,
                )
            )
        else:
            classifications.append(
                FieldClassification(
                    field_name=field_name, status=FieldStatus.new_field, is_internal=is_internal
                )
            )
    return classifications
