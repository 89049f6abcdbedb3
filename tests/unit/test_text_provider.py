# ============================================================================
# FILE: tests/unit/test_text_provider.py
# ============================================================================
"""
Unit tests for document text lookup
"""

from biomarker_ingestion.core.text_provider import LabDocumentTextProvider, text_from_metadata


def test_prefers_normalized_text():
    metadata = {
        "preprocessedText": {"normalizedText": "normalized", "rawText": "raw"},
        "ocr": {"text": "legacy"},
    }
    assert text_from_metadata(metadata) == "normalized"


def test_falls_through_blank_sources():
    metadata = {
        "preprocessedText": {"normalizedText": "  ", "rawText": None},
        "ocr": {"text": ""},
        "parsedText": "parsed",
        "summary": "summary",
    }
    assert text_from_metadata(metadata) == "parsed"


def test_summary_is_last_resort():
    assert text_from_metadata({"summary": "Glucose 95"}) == "Glucose 95"


def test_non_dict_nodes_ignored():
    assert text_from_metadata({"preprocessedText": "flat string", "ocr": ["text"]}) is None


def test_store_provider(lab_store):
    lab_id = lab_store.add_lab_result("scan.pdf", metadata={"ocr": {"text": "TSH: 2.1 mIU/L"}})
    provider = LabDocumentTextProvider(lab_store)

    assert provider.get_text(lab_id) == "TSH: 2.1 mIU/L"
    assert provider.get_text(999) is None
