# ============================================================================
# FILE: tests/unit/test_standardizer.py
# ============================================================================
"""
Unit tests for validation & standardization
"""

from biomarker_ingestion.core.context import BiomarkerCategory, BiomarkerStatus
from biomarker_ingestion.validators import NO_BIOMARKERS_MESSAGE, Standardizer, standardize


def test_valid_candidates_pass_through(make_candidate):
    result = standardize([make_candidate("glucose", 95.0), make_candidate("tsh", 2.1, "mIU/L")])
    assert [c.name for c in result.parsed_biomarkers] == ["glucose", "tsh"]
    assert result.parsing_errors == []


def test_string_value_coerced(make_candidate):
    result = standardize([make_candidate("glucose", " 1,095 ")])
    assert result.parsed_biomarkers[0].value == 1095.0


def test_non_numeric_value_becomes_parsing_error(make_candidate):
    result = standardize([make_candidate("glucose", "pending"), make_candidate("tsh", 2.1, "mIU/L")])
    assert [c.name for c in result.parsed_biomarkers] == ["tsh"]
    assert len(result.parsing_errors) == 1
    assert "glucose" in result.parsing_errors[0]


def test_blank_unit_filled_from_library(make_candidate):
    result = standardize([make_candidate("ldl", 130.0, unit=" ")])
    assert result.parsed_biomarkers[0].unit == "mg/dL"


def test_blank_unit_unknown_name_rejected(make_candidate):
    result = standardize([make_candidate("zinc", 90.0, unit="")])
    assert result.parsed_biomarkers == []
    assert "no unit" in result.parsing_errors[0]
    assert result.parsing_errors[-1] == NO_BIOMARKERS_MESSAGE


def test_category_and_status_normalized(make_candidate):
    result = standardize([make_candidate("glucose", category="Lipids", status="h")])
    [candidate] = result.parsed_biomarkers
    assert candidate.category == BiomarkerCategory.OTHER
    assert candidate.status == BiomarkerStatus.HIGH


def test_unknown_status_is_undetermined(make_candidate):
    result = standardize([make_candidate("glucose", status="borderline")])
    assert result.parsed_biomarkers[0].status is None


def test_empty_name_rejected(make_candidate):
    result = Standardizer().standardize([make_candidate("   ")])
    assert result.parsing_errors[0] == "Biomarker with empty name skipped"


def test_empty_input_reports_no_biomarkers():
    result = standardize([])
    assert result.parsed_biomarkers == []
    assert result.parsing_errors == [NO_BIOMARKERS_MESSAGE]


def test_result_to_dict(make_candidate):
    result = standardize([make_candidate("glucose", 95.0, reference_range="70-99")])
    data = result.to_dict()
    assert data["parsingErrors"] == []
    assert data["parsedBiomarkers"][0] == {
        "name": "glucose",
        "value": 95.0,
        "unit": "mg/dL",
        "referenceRange": "70-99",
        "testDate": None,
        "category": "metabolic",
    }
