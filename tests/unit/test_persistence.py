# ============================================================================
# FILE: tests/unit/test_persistence.py
# ============================================================================
"""
Unit tests for the atomic persistence coordinator
"""

from datetime import datetime

import pytest

from biomarker_ingestion.core.context import BiomarkerCategory, ExtractionMethod
from biomarker_ingestion.core.persistence import (
    PersistenceCoordinator,
    format_value,
    method_mix,
)
from biomarker_ingestion.utils.exceptions import (
    BiomarkerInvariantError,
    PersistenceError,
    PersistenceVerificationError,
)
from biomarker_ingestion.validators.standardizer import ExtractionResult

UPLOADED = datetime(2024, 3, 16, 9, 30)


@pytest.fixture
def lab_id(lab_store):
    return lab_store.add_lab_result("panel.pdf", metadata={"source": "upload"}, uploaded_at=UPLOADED)


@pytest.fixture
def three_candidates(make_candidate):
    return [
        make_candidate("glucose", 95.0, test_date=datetime(2024, 3, 15)),
        make_candidate("hdl", 45.0, category=BiomarkerCategory.LIPID, method=ExtractionMethod.PATTERN, confidence=0.85),
        make_candidate("ferritin", 85.5, "ng/mL", category=BiomarkerCategory.MINERAL, method=ExtractionMethod.LLM),
    ]


def _result(candidates, errors=None):
    return ExtractionResult(parsed_biomarkers=list(candidates), parsing_errors=list(errors or []))


class TestPersist:

    def test_stores_records_and_status(self, lab_store, lab_id, three_candidates):
        stats = {"regexMatches": 1, "llmExtractions": 1, "patternMatches": 1, "processingTime": 12}

        count = PersistenceCoordinator(lab_store).persist(lab_id, _result(three_candidates), stats)

        assert count == 3
        records = lab_store.get_biomarkers(lab_id)
        assert [r["name"] for r in records] == ["glucose", "hdl", "ferritin"]
        assert [r["value"] for r in records] == ["95", "45", "85.5"]
        # Missing test date falls back to the upload time
        assert records[0]["test_date"] == datetime(2024, 3, 15).isoformat()
        assert records[1]["test_date"] == UPLOADED.isoformat()
        assert records[0]["metadata"]["validationStatus"] == "valid"

        status = lab_store.get_status(lab_id)
        assert status["status"] == "completed"
        assert status["biomarker_count"] == 3
        assert status["extraction_method"] == "hybrid"
        assert status["error_message"] is None
        assert status["metadata"]["regexMatches"] == 1
        assert status["metadata"]["candidateCount"] == 3
        assert status["metadata"]["transactionId"]

        metadata = lab_store.get_lab_result(lab_id)["metadata"]
        assert metadata["source"] == "upload"
        summary = metadata["biomarkers"]
        assert [b["name"] for b in summary["parsedBiomarkers"]] == ["glucose", "hdl", "ferritin"]
        assert summary["parsedBiomarkers"][1]["testDate"] == UPLOADED.isoformat()
        assert summary["parsingErrors"] == []

    def test_replaces_previous_records(self, lab_store, lab_id, make_candidate):
        coordinator = PersistenceCoordinator(lab_store)
        coordinator.persist(lab_id, _result([make_candidate("glucose"), make_candidate("tsh", 2.1, "mIU/L")]))
        coordinator.persist(lab_id, _result([make_candidate("glucose", 101.0)]))

        records = lab_store.get_biomarkers(lab_id)
        assert [(r["name"], r["value"]) for r in records] == [("glucose", "101")]
        assert lab_store.get_status(lab_id)["extraction_method"] == "regex"

    def test_empty_result(self, lab_store, lab_id):
        count = PersistenceCoordinator(lab_store).persist(lab_id, _result([], ["No biomarkers found in document"]))

        assert count == 0
        status = lab_store.get_status(lab_id)
        assert status["status"] == "completed"
        assert status["extraction_method"] is None
        assert lab_store.get_lab_result(lab_id)["metadata"]["biomarkers"]["parsingErrors"] == [
            "No biomarkers found in document"
        ]


class TestAtomicity:

    def test_failed_batch_keeps_previous_records(self, lab_store, lab_id, make_candidate, three_candidates, monkeypatch):
        coordinator = PersistenceCoordinator(lab_store, batch_size=2)
        coordinator.persist(lab_id, _result([make_candidate("tsh", 2.1, "mIU/L")]))

        original = lab_store._insert_batch
        calls = []

        def flaky(conn, batch):
            calls.append(len(batch))
            if len(calls) == 2:
                raise RuntimeError("disk I/O error")
            original(conn, batch)

        monkeypatch.setattr(lab_store, "_insert_batch", flaky)

        with pytest.raises(PersistenceError) as exc_info:
            coordinator.persist(lab_id, _result(three_candidates))

        assert calls == [2, 1]
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert [r["name"] for r in lab_store.get_biomarkers(lab_id)] == ["tsh"]

        status = lab_store.get_status(lab_id)
        assert status["status"] == "error"
        assert "disk I/O error" in status["error_message"]
        summary = lab_store.get_lab_result(lab_id)["metadata"]["biomarkers"]
        assert [b["name"] for b in summary["parsedBiomarkers"]] == ["tsh"]

    def test_non_finite_value_aborts_everything(self, lab_store, lab_id, make_candidate):
        candidates = [make_candidate("glucose"), make_candidate("tsh", float("nan"), "mIU/L")]

        with pytest.raises(PersistenceError) as exc_info:
            PersistenceCoordinator(lab_store).persist(lab_id, _result(candidates))

        assert isinstance(exc_info.value.__cause__, BiomarkerInvariantError)
        assert lab_store.count_biomarkers(lab_id) == 0
        assert lab_store.get_status(lab_id)["status"] == "error"

    def test_verification_mismatch(self, lab_store, lab_id, make_candidate, monkeypatch):
        monkeypatch.setattr(lab_store, "count_biomarkers", lambda lab_result_id, conn=None: 0)

        with pytest.raises(PersistenceVerificationError) as exc_info:
            PersistenceCoordinator(lab_store).persist(lab_id, _result([make_candidate("glucose")]))

        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 0
        assert lab_store.get_biomarkers(lab_id) == []
        assert lab_store.get_status(lab_id)["status"] == "error"

    def test_error_status_failure_does_not_mask_original(self, lab_store, lab_id, make_candidate, monkeypatch):
        def broken_status(lab_result_id, message):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(lab_store, "set_error_status", broken_status)
        candidates = [make_candidate("glucose", float("inf"))]

        with pytest.raises(PersistenceError) as exc_info:
            PersistenceCoordinator(lab_store).persist(lab_id, _result(candidates))

        assert isinstance(exc_info.value.__cause__, BiomarkerInvariantError)
        assert lab_store.get_status(lab_id) is None

    def test_missing_document(self, lab_store, make_candidate):
        with pytest.raises(PersistenceError):
            PersistenceCoordinator(lab_store).persist(999, _result([make_candidate("glucose")]))


class TestToRow:

    def test_blank_name_rejected(self, make_candidate):
        with pytest.raises(BiomarkerInvariantError):
            PersistenceCoordinator.to_row(1, make_candidate("  "), UPLOADED, UPLOADED)

    def test_string_value_rejected(self, make_candidate):
        with pytest.raises(BiomarkerInvariantError):
            PersistenceCoordinator.to_row(1, make_candidate("glucose", "95"), UPLOADED, UPLOADED)

    def test_warnings_mark_validation_status(self, make_candidate):
        candidate = make_candidate("glucose", 2000.0, warnings=["above expected maximum"])
        row = PersistenceCoordinator.to_row(1, candidate, UPLOADED, UPLOADED)
        assert row["metadata"]["validationStatus"] == "warning"
        assert row["value"] == "2000"
        assert row["status"] is None


def test_format_value():
    assert format_value(220.0) == "220"
    assert format_value(5.6) == "5.6"
    assert format_value(0.95) == "0.95"


def test_method_mix(make_candidate):
    assert method_mix([]) is None
    assert method_mix([make_candidate(method=ExtractionMethod.LLM)]) == "llm"
    assert method_mix([
        make_candidate(method=ExtractionMethod.REGEX),
        make_candidate("tsh", method=ExtractionMethod.PATTERN),
    ]) == "hybrid"
