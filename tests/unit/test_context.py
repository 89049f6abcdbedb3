# ============================================================================
# FILE: tests/unit/test_context.py
# ============================================================================
"""
Unit tests for the biomarker candidate and its normalization helpers
"""

import math
from datetime import datetime

import pytest

from biomarker_ingestion.core.context import (
    BiomarkerCategory,
    BiomarkerStatus,
    coerce_value,
    normalize_category,
    normalize_status,
    parse_test_date,
)


class TestCandidate:

    def test_key_is_case_insensitive(self, make_candidate):
        assert make_candidate(" Glucose ").key == "glucose"

    def test_is_storable(self, make_candidate):
        assert make_candidate().is_storable()
        assert not make_candidate("").is_storable()
        assert not make_candidate(value=float("nan")).is_storable()
        assert not make_candidate(value="95").is_storable()
        assert not make_candidate(unit=" ").is_storable()

    def test_to_summary(self, make_candidate):
        candidate = make_candidate(test_date=datetime(2024, 3, 15), reference_range="70-99 mg/dL")
        assert candidate.to_summary() == {
            "name": "glucose",
            "value": 95.0,
            "unit": "mg/dL",
            "referenceRange": "70-99 mg/dL",
            "testDate": "2024-03-15T00:00:00",
            "category": "metabolic",
        }

    def test_to_dict(self, make_candidate):
        data = make_candidate(status=BiomarkerStatus.LOW).to_dict()
        assert data["extraction_method"] == "regex"
        assert data["status"] == "Low"
        assert data["test_date"] is None


@pytest.mark.parametrize("raw,expected", [
    ("lipid", BiomarkerCategory.LIPID),
    (BiomarkerCategory.THYROID, BiomarkerCategory.THYROID),
    ("Lipids", BiomarkerCategory.OTHER),
    ("LIPID", BiomarkerCategory.OTHER),
    (None, BiomarkerCategory.OTHER),
])
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("High", BiomarkerStatus.HIGH),
    ("h", BiomarkerStatus.HIGH),
    (" LOW ", BiomarkerStatus.LOW),
    ("N", BiomarkerStatus.NORMAL),
    ("critical", None),
    (None, None),
])
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    (95, 95.0),
    ("5.6", 5.6),
    ("1,250", 1250.0),
    ("", None),
    ("n/a", None),
    (True, None),
    (float("inf"), None),
    ([95], None),
])
def test_coerce_value(raw, expected):
    assert coerce_value(raw) == expected


def test_coerce_value_rejects_nan():
    assert coerce_value("nan") is None
    assert coerce_value(math.nan) is None


class TestParseTestDate:

    def test_iso_date(self):
        assert parse_test_date("2024-03-15") == datetime(2024, 3, 15)

    def test_zulu_suffix(self):
        parsed = parse_test_date("2024-03-15T08:30:00Z")
        assert (parsed.year, parsed.hour) == (2024, 8)
        assert parsed.utcoffset().total_seconds() == 0

    def test_unparseable_defaults_to_now(self):
        before = datetime.now()
        assert parse_test_date("last Tuesday") >= before
