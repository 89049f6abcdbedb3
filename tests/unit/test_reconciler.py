# ============================================================================
# FILE: tests/unit/test_reconciler.py
# ============================================================================
"""
Unit tests for confidence-based reconciliation
"""

from biomarker_ingestion.core.context import ExtractionMethod
from biomarker_ingestion.validators import Reconciler, reconcile

REGEX = ExtractionMethod.REGEX
LLM = ExtractionMethod.LLM
PATTERN = ExtractionMethod.PATTERN


def test_disjoint_sources_are_unioned(make_candidate):
    merged = reconcile(
        regex=[make_candidate("glucose", method=REGEX)],
        llm=[make_candidate("ferritin", 85.0, "ng/mL", method=LLM, confidence=0.95)],
        pattern=[make_candidate("hdl", 45.0, method=PATTERN, confidence=0.85)],
    )
    # Insertion order: pattern, regex, llm
    assert [c.name for c in merged] == ["hdl", "glucose", "ferritin"]


def test_higher_confidence_replaces(make_candidate):
    merged = reconcile(
        regex=[make_candidate("hdl", 45.0, method=REGEX, confidence=0.9)],
        pattern=[make_candidate("hdl", 44.0, method=PATTERN, confidence=0.85)],
    )
    [hdl] = merged
    assert hdl.extraction_method == REGEX
    assert hdl.value == 45.0


def test_lower_confidence_never_overwrites(make_candidate):
    merged = reconcile(
        regex=[make_candidate("glucose", 95.0, method=REGEX, confidence=0.9)],
        pattern=[make_candidate("glucose", 95.0, method=PATTERN, confidence=0.95)],
        llm=[make_candidate("glucose", 96.0, method=LLM, confidence=0.5)],
    )
    [glucose] = merged
    assert glucose.extraction_method == PATTERN


def test_tie_keeps_earlier_insertion(make_candidate):
    merged = reconcile(
        regex=[make_candidate("tsh", 2.1, "mIU/L", method=REGEX, confidence=0.95)],
        pattern=[make_candidate("tsh", 2.1, "mIU/L", method=PATTERN, confidence=0.95)],
        llm=[make_candidate("tsh", 2.2, "mIU/L", method=LLM, confidence=0.95)],
    )
    [tsh] = merged
    assert tsh.extraction_method == PATTERN


def test_names_compare_case_insensitively(make_candidate):
    merged = Reconciler().reconcile(
        regex=[make_candidate("Glucose", method=REGEX, confidence=0.9)],
        llm=[make_candidate("glucose", 96.0, method=LLM, confidence=0.95)],
    )
    [glucose] = merged
    assert glucose.extraction_method == LLM


def test_replacement_keeps_first_position(make_candidate):
    merged = reconcile(
        regex=[
            make_candidate("glucose", method=REGEX),
            make_candidate("tsh", 2.1, "mIU/L", method=REGEX),
        ],
        llm=[make_candidate("glucose", 96.0, method=LLM, confidence=0.99)],
    )
    assert [(c.name, c.extraction_method) for c in merged] == [("glucose", LLM), ("tsh", REGEX)]


def test_blank_names_skipped(make_candidate):
    assert reconcile(regex=[make_candidate("  ")]) == []


def test_empty_inputs():
    assert reconcile() == []


def test_model_value_wins_over_regex(make_candidate):
    merged = reconcile(
        regex=[make_candidate("tsh", 2.1, "mIU/L", method=REGEX, confidence=0.9)],
        llm=[make_candidate("tsh", 2.3, "mIU/L", method=LLM, confidence=0.95)],
    )
    [tsh] = merged
    assert tsh.value == 2.3
    assert tsh.extraction_method == LLM
