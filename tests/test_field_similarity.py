"""Tests for field similarity classification and the field registry."""

from __future__ import annotations

import pytest

from analysis.field_registry import (
    SUPPORTED_FIELDS,
    field_label,
    get_field_spec,
    is_supported_field,
    resolve_field_alias,
)
from analysis.field_similarity import (
    FieldStatus,
    SimilarityType,
    are_case_variations,
    check_field_similarity,
    classify_fields,
    levenshtein_distance,
    normalize_for_comparison,
)
from analysis.quantity import UnitType

pytestmark = pytest.mark.unit


def test_normalize_and_levenshtein() -> None:
    """Comparison ignores case, spaces, underscores and hyphens."""

    assert normalize_for_comparison("Coins_Earned") == "coinsearned"
    assert are_case_variations("Coins Earned", "coins-earned")
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3


def test_check_field_similarity_kinds() -> None:
    """Exact, case-variation and typo matches are told apart."""

    existing = ["Coins earned", "Cells Earned"]

    exact = check_field_similarity("coins EARNED", existing)
    assert exact.type is SimilarityType.exact
    assert exact.similar is False

    variation = check_field_similarity("coins_earned", existing)
    assert variation.type is SimilarityType.case_variation
    assert variation.suggestion == "Coins earned"

    typo = check_field_similarity("Coins earnd", existing)
    assert typo.type is SimilarityType.levenshtein
    assert typo.score is not None and typo.score > 0.85

    assert not check_field_similarity("Wave", existing).similar


def test_short_names_need_a_high_score() -> None:
    """Short names one edit apart stay distinct when the score is too low."""

    assert not check_field_similarity("Tier", ["Time"]).similar


def test_classify_fields() -> None:
    """Each header gets a status; internal headers are flagged."""

    classifications = classify_fields(["Coins earned", "Cels Earned", "Brand New", "_Notes"], ["Coins earned", "Cells Earned"])

    assert [c.status for c in classifications] == [
        FieldStatus.exact_match,
        FieldStatus.similar_field,
        FieldStatus.new_field,
        FieldStatus.new_field,
    ]
    assert classifications[1].similar_to == "Cells Earned"
    assert classifications[3].is_internal


def test_field_registry_lookup() -> None:
    """Registered and internal fields are supported; aliases resolve."""

    spec = get_field_spec("coinsEarned")
    assert spec is not None
    assert spec.label == "Coins earned"
    assert spec.unit_type is UnitType.coins

    assert resolve_field_alias("coins") == "coinsEarned"
    assert is_supported_field("coins")
    assert "_notes" in SUPPORTED_FIELDS
    assert not is_supported_field("somethingElse")

    assert field_label("_runType") == "_Run Type"
    assert field_label("realTime") == "Real Time"
    assert field_label("customMetric", "Custom Metric") == "Custom Metric"
