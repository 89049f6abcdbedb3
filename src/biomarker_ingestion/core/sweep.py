# ============================================================================
# src/biomarker_ingestion/core/sweep.py
# ============================================================================
"""
Backfill sweep for documents that never got biomarkers (no status row)
or whose last run failed. One document's failure never stops the sweep.
"""

import logging
from typing import Any, Dict, List, Optional

from ..storage.lab_store import LabStore
from ..utils.exceptions import ProcessingConflictError

logger = logging.getLogger(__name__)


def find_documents_needing_processing(store: LabStore, limit: Optional[int] = None) -> List[int]:
    return store.find_unprocessed_lab_results(limit)


async def reprocess_missing_biomarkers(service, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Run process_lab_result() for every document needing processing.

    Returns:
        {"found", "processed", "skipped", "failed": [{"labResultId", "error"}]}
    """
    pending = find_documents_needing_processing(service.store, limit)
    logger.info(f"Found {len(pending)} lab results needing biomarker processing")

    summary: Dict[str, Any] = {"found": len(pending), "processed": 0, "skipped": 0, "failed": []}

    for lab_result_id in pending:
        try:
            result = await service.process_lab_result(lab_result_id)
        except ProcessingConflictError as e:
            logger.info(f"Skipping lab result {lab_result_id}: {e}")
            summary["skipped"] += 1
        except Exception as e:
            logger.error(f"Reprocessing failed for lab result {lab_result_id}: {e}")
            summary["failed"].append({"labResultId": lab_result_id, "error": str(e)})
        else:
            logger.info(
                f"Reprocessed lab result {lab_result_id}: "
                f"{len(result.parsed_biomarkers)} biomarkers"
            )
            summary["processed"] += 1

    logger.info(
        f"Sweep complete: {summary['processed']} processed, {summary['skipped']} skipped, "
        f"{len(summary['failed'])} failed"
    )
    return summary
