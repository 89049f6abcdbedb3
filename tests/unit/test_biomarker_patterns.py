# ============================================================================
# FILE: tests/unit/test_biomarker_patterns.py
# ============================================================================
"""
Unit tests for the biomarker pattern library and knowledge tables
"""

import pytest

from biomarker_ingestion.constants import (
    BIOMARKER_LIBRARY,
    PLAUSIBILITY_RANGES,
    REFERENCE_BOUNDARIES,
    TIERED_PATTERNS,
    get_default_unit,
    get_pattern,
)
from biomarker_ingestion.core.context import BiomarkerCategory


def test_library_covers_all_categories_except_other():
    """Every clinical category has at least one library entry"""
    categories = {entry.category for entry in BIOMARKER_LIBRARY.values()}
    expected = set(BiomarkerCategory) - {BiomarkerCategory.OTHER}
    assert categories == expected


def test_knowledge_tables_cover_library():
    """Boundaries and plausibility bands exist for every library key"""
    for key in BIOMARKER_LIBRARY:
        assert key in REFERENCE_BOUNDARIES, key
        assert key in PLAUSIBILITY_RANGES, key
        low, high = PLAUSIBILITY_RANGES[key]
        assert low < high


def test_tiered_patterns_are_library_keys():
    """Secondary patterns use the same biomarker keys"""
    assert set(TIERED_PATTERNS) <= set(BIOMARKER_LIBRARY)


@pytest.mark.parametrize("name,key", [
    ("glucose", "glucose"),
    ("GLUCOSE", "glucose"),
    ("Total Cholesterol", "cholesterol"),
    ("hemoglobina1c", "hemoglobinA1c"),
    ("Vitamin D", "vitaminD"),
])
def test_get_pattern_by_key_or_display_name(name, key):
    assert get_pattern(name).key == key


def test_get_pattern_unknown():
    assert get_pattern("zinc") is None
    assert get_pattern("") is None


def test_default_units():
    assert get_default_unit("tsh") == "mIU/L"
    assert get_default_unit("hemoglobinA1c") == "%"
    assert get_default_unit("Ferritin") == "ng/mL"
    assert get_default_unit("zinc") is None


class TestPatternMatching:
    """Compiled matcher behavior"""

    def test_value_and_unit_groups(self):
        match = BIOMARKER_LIBRARY["hemoglobin"].pattern.search("Hgb 13.2 g/dL")
        assert match is not None
        assert match.group("value") == "13.2"
        assert match.group("unit") == "g/dL"

    def test_status_group(self):
        match = BIOMARKER_LIBRARY["cholesterol"].pattern.search("Cholesterol 220 High")
        assert match.group("value") == "220"
        assert match.group("unit") is None
        assert match.group("status") == "High"

    def test_parenthetical_status(self):
        match = BIOMARKER_LIBRARY["hdl"].pattern.search("HDL-C Level = 45 mg/dL (Normal)")
        assert match.group("value") == "45"
        assert match.group("status") == "Normal"

    def test_status_word_starting_reference_phrase_is_not_status(self):
        match = BIOMARKER_LIBRARY["glucose"].pattern.search("Glucose: 95 mg/dL Normal range: 70-99")
        assert match.group("status") is None

    def test_label_inside_longer_word_does_not_match(self):
        assert BIOMARKER_LIBRARY["ldl"].pattern.search("VLDL 25 mg/dL") is None

    def test_hdl_cholesterol_is_not_total_cholesterol(self):
        assert BIOMARKER_LIBRARY["cholesterol"].pattern.search("HDL Cholesterol: 45 mg/dL") is None

    def test_non_hdl_is_not_hdl_or_total(self):
        text = "Non-HDL Cholesterol: 130 mg/dL"
        assert BIOMARKER_LIBRARY["hdl"].pattern.search(text) is None
        assert BIOMARKER_LIBRARY["cholesterol"].pattern.search(text) is None
        assert BIOMARKER_LIBRARY["ldl"].pattern.search("Non-LDL 90 mg/dL") is None

    def test_corpuscular_hemoglobin_label_excluded(self):
        hemoglobin = BIOMARKER_LIBRARY["hemoglobin"].pattern
        assert hemoglobin.search("Mean Corpuscular Hemoglobin 30.5 pg") is None
        assert hemoglobin.search("Hemoglobin 14.2 g/dL").group("value") == "14.2"

    @pytest.mark.parametrize("key,text", [
        ("glucose", "Glucose Fasting 95 mg/dL"),
        ("ldl", "LDL Cholesterol Calc 120 mg/dL"),
        ("ldl", "LDL Cholesterol, Calculated: 120 mg/dL"),
        ("vitaminD", "Vitamin D, 25-Hydroxy 32 ng/mL"),
    ])
    def test_trailing_qualifier_word(self, key, text):
        match = BIOMARKER_LIBRARY[key].pattern.search(text)
        assert match is not None
        assert match.group("unit") is not None

    def test_case_sensitive_abbreviations(self):
        magnesium = BIOMARKER_LIBRARY["magnesium"].pattern
        assert magnesium.search("Mg 2.0 mg/dL").group("value") == "2.0"
        assert magnesium.search("mg 2.0") is None

    def test_micro_sign_variants(self):
        tsh = BIOMARKER_LIBRARY["tsh"]
        for unit in ("µIU/mL", "μIU/mL", "uIU/mL"):
            match = tsh.pattern.search(f"TSH 2.1 {unit}")
            assert match.group("unit") == unit

    def test_canonical_unit(self):
        glucose = BIOMARKER_LIBRARY["glucose"]
        assert glucose.canonical_unit("MG/DL") == "mg/dL"
        assert glucose.canonical_unit(None) == "mg/dL"
        assert glucose.canonical_unit("mmol/l") == "mmol/L"
