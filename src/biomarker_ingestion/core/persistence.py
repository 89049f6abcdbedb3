# ============================================================================
# src/biomarker_ingestion/core/persistence.py
# ============================================================================
"""
Persistence Coordinator

Replaces a document's biomarker records in one transaction:

1. status -> processing (candidate count, transaction id)
2. delete existing records for the document
3. map candidates to rows (hard invariant check on name and value)
4. insert in fixed-size batches
5. merge the denormalized `biomarkers` summary into document metadata
6. status -> completed (count, method mix, observability counters)
7. verify the stored count

Any failure rolls the whole unit back. The error status is then written
as a second, independent step on its own connection; if that write
fails too it is logged and the original error still propagates.
"""

import logging
import math
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..config import storage_settings
from .context import (
    BiomarkerCandidate,
    HYBRID_METHOD,
    ProcessingState,
    ValidationStatus,
)
from ..storage.lab_store import LabStore
from ..utils.exceptions import (
    BiomarkerInvariantError,
    DocumentNotFoundError,
    PersistenceError,
    PersistenceVerificationError,
)
from ..utils.logging import with_correlation
from ..validators.standardizer import ExtractionResult

logger = logging.getLogger(__name__)


def format_value(value: float) -> str:
    """Stringify a numeric value for storage ("220", "5.6")."""
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def method_mix(candidates: Iterable[BiomarkerCandidate]) -> Optional[str]:
    """Single method when uniform, "hybrid" when mixed, None when empty."""
    methods = {c.extraction_method.value for c in candidates}
    if not methods:
        return None
    if len(methods) == 1:
        return methods.pop()
    return HYBRID_METHOD


class PersistenceCoordinator:
    """Atomic replace of one document's biomarker records."""

    def __init__(self, store: LabStore, batch_size: Optional[int] = None):
        self.store = store
        self.batch_size = batch_size or storage_settings.STORAGE_BATCH_SIZE

    def persist(
        self,
        lab_result_id: int,
        result: ExtractionResult,
        stats: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ) -> int:
        """
        Store `result` for the document and return the record count.

        Raises:
            PersistenceError: nothing was written; status is `error`
                (best effort). The underlying exception is chained.
        """
        log = with_correlation(logger, correlation_id)
        candidates = list(result.parsed_biomarkers)
        transaction_id = str(uuid.uuid4())

        try:
            count = self._replace(lab_result_id, candidates, result, stats or {}, transaction_id, log)
        except Exception as e:
            log.error(f"Persistence failed for lab result {lab_result_id} (transaction {transaction_id}): {e}")
            self.record_failure(lab_result_id, str(e), log)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(
                f"Failed to store biomarkers for lab result {lab_result_id}: {e}",
                lab_result_id,
            ) from e

        log.info(f"Stored {count} biomarkers for lab result {lab_result_id} (transaction {transaction_id})")
        return count

    def _replace(
        self,
        lab_result_id: int,
        candidates: List[BiomarkerCandidate],
        result: ExtractionResult,
        stats: Dict[str, Any],
        transaction_id: str,
        log,
    ) -> int:
        now = datetime.now()

        with self.store.transaction() as conn:
            # 1. Claim bookkeeping for this transaction
            self.store.write_status(
                conn,
                lab_result_id,
                ProcessingState.PROCESSING,
                metadata_updates={
                    "candidateCount": len(candidates),
                    "transactionId": transaction_id,
                },
            )

            # 2. Full replace, never patch
            deleted = self.store.delete_biomarkers(conn, lab_result_id)
            if deleted:
                log.debug(f"Deleted {deleted} existing biomarkers for lab result {lab_result_id}")

            # 3. Map with hard invariant checks
            document = self.store.get_lab_result(lab_result_id, conn=conn)
            if document is None:
                raise DocumentNotFoundError(lab_result_id)
            fallback_date = document.get("uploaded_at") or now
            rows = [self.to_row(lab_result_id, c, fallback_date, now) for c in candidates]

            # 4. Batched insert
            inserted = self.store.insert_biomarkers(conn, rows, self.batch_size)

            # 5. Denormalized summary on the document
            document = self.store.get_lab_result(lab_result_id, conn=conn)
            metadata = dict(document["metadata"])
            metadata["biomarkers"] = {
                "parsedBiomarkers": [self._summary(c, fallback_date) for c in candidates],
                "parsingErrors": list(result.parsing_errors),
                "extractedAt": now.isoformat(),
            }
            self.store.update_lab_metadata(conn, lab_result_id, metadata)

            # 6. Completed
            self.store.write_status(
                conn,
                lab_result_id,
                ProcessingState.COMPLETED,
                metadata_updates={
                    "regexMatches": stats.get("regexMatches", 0),
                    "llmExtractions": stats.get("llmExtractions", 0),
                    "patternMatches": stats.get("patternMatches", 0),
                    "processingTime": stats.get("processingTime", 0),
                    "transactionId": transaction_id,
                },
                extraction_method=method_mix(candidates),
                biomarker_count=inserted,
                error_message=None,
                completed_at=datetime.now().isoformat(),
            )

            # 7. Verify
            actual = self.store.count_biomarkers(lab_result_id, conn=conn)
            if actual != inserted:
                raise PersistenceVerificationError(lab_result_id, inserted, actual)

        return inserted

    @staticmethod
    def to_row(
        lab_result_id: int,
        candidate: BiomarkerCandidate,
        fallback_date: datetime,
        now: datetime,
    ) -> Dict[str, Any]:
        name = (candidate.name or "").strip()
        value = candidate.value
        if not name:
            raise BiomarkerInvariantError("Biomarker name is empty", name=name, value=value)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise BiomarkerInvariantError(
                f"Biomarker {name} has non-finite value {value!r}", name=name, value=value
            )
        if not candidate.unit or not candidate.unit.strip():
            raise BiomarkerInvariantError(f"Biomarker {name} has no unit", name=name, value=value)

        test_date = candidate.test_date or fallback_date
        return {
            "lab_result_id": lab_result_id,
            "name": name,
            "value": format_value(value),
            "unit": candidate.unit.strip(),
            "category": candidate.category.value,
            "reference_range": candidate.reference_range,
            "test_date": test_date.isoformat(),
            "status": candidate.status.value if candidate.status else None,
            "extraction_method": candidate.extraction_method.value,
            "confidence": candidate.confidence,
            "metadata": {
                "sourceText": candidate.source_text,
                "extractionTimestamp": now.isoformat(),
                "validationStatus": (
                    ValidationStatus.WARNING.value if candidate.warnings
                    else ValidationStatus.VALID.value
                ),
            },
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }

    @staticmethod
    def _summary(candidate: BiomarkerCandidate, fallback_date: datetime) -> Dict[str, Any]:
        summary = candidate.to_summary()
        if summary["testDate"] is None:
            summary["testDate"] = fallback_date.isoformat()
        return summary

    def record_failure(self, lab_result_id: int, message: str, log=None) -> bool:
        """Best-effort `error` status. Returns False (and logs) if it could not be written."""
        log = log or logger
        try:
            self.store.set_error_status(lab_result_id, message)
            return True
        except Exception as e:
            log.error(f"Could not record error status for lab result {lab_result_id}: {e}")
            return False
