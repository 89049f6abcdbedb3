# ============================================================================
# FILE: tests/unit/test_reference_range.py
# ============================================================================
"""
Unit tests for the reference-range detector
"""

import pytest

from biomarker_ingestion.extractors import ReferenceRangeDetector


def _span(text, token):
    start = text.index(token)
    return start, start + len(token)


@pytest.fixture
def detector():
    return ReferenceRangeDetector()


class TestContext:

    def test_context_stays_on_line(self, detector):
        text = "Normal reference range 70-99\nGlucose: 95 mg/dL\nTypical limits"
        start, end = _span(text, "95")
        assert detector.context(text, start, end) == "Glucose: 95 mg/dL"

    def test_context_window_clips_long_lines(self):
        detector = ReferenceRangeDetector(window=5)
        text = "x" * 50 + " 95 " + "y" * 50
        start, end = _span(text, "95")
        assert detector.context(text, start, end) == "xxxx 95 yyyy"


class TestRanges:

    def test_find_ranges(self, detector):
        ranges = detector.find_ranges("Normal range: 70-99, or 3.5 to 5.0, between 1 and 2")
        assert (70.0, 99.0) in ranges
        assert (3.5, 5.0) in ranges
        assert (1.0, 2.0) in ranges

    def test_en_and_em_dash(self, detector):
        assert (70.0, 99.0) in detector.find_ranges("Ref range 70–99")
        assert (0.4, 4.0) in detector.find_ranges("Ref range 0.4—4.0")

    def test_indicator_and_generic_words(self, detector):
        assert detector.has_indicator("Reference Range: 70-99")
        assert not detector.has_indicator("Glucose 95 mg/dL")
        assert detector.generic_word_count("typical normal target normal") == 3


class TestRejection:

    def test_range_endpoint_with_indicator_rejected(self, detector):
        text = "Reference range: Glucose 70-99 mg/dL"
        start, end = _span(text, "70")
        reason = detector.rejection_reason("glucose", 70.0, text, start, end)
        assert reason is not None
        assert "endpoint" in reason

    def test_value_inside_range_kept(self, detector):
        text = "Glucose: 95 mg/dL (Normal range: 70-99 mg/dL)"
        start, end = _span(text, "95")
        assert detector.rejection_reason("glucose", 95.0, text, start, end) is None

    def test_boundary_with_generic_words_rejected(self, detector):
        text = "Glucose: 100 mg/dL (typical normal target)"
        start, end = _span(text, "100")
        reason = detector.rejection_reason("glucose", 100.0, text, start, end)
        assert "common reference boundary" in reason

    def test_boundary_without_context_kept(self, detector):
        text = "Glucose: 100 mg/dL"
        start, end = _span(text, "100")
        assert not detector.is_reference_value("glucose", 100.0, text, start, end)

    def test_single_generic_word_is_not_enough(self, detector):
        text = "Glucose: 100 mg/dL target"
        start, end = _span(text, "100")
        assert not detector.is_reference_value("glucose", 100.0, text, start, end)

    def test_reference_words_on_other_line_ignored(self, detector):
        text = "Glucose: 100 mg/dL\nTypical normal reference limits apply"
        start, end = _span(text, "100")
        assert not detector.is_reference_value("glucose", 100.0, text, start, end)

    def test_custom_boundaries(self):
        detector = ReferenceRangeDetector(boundaries={"glucose": frozenset({95.0})})
        text = "Glucose: 95 mg/dL normal reference"
        start, end = _span(text, "95")
        assert detector.is_reference_value("glucose", 95.0, text, start, end)
