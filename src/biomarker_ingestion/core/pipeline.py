# ============================================================================
# src/biomarker_ingestion/core/pipeline.py
# ============================================================================
"""
Biomarker Extraction Pipeline

Stages:
    1. Regex extraction (primary pattern library)
    2. Model-assisted extraction, seeded with what regex found
    3. Secondary tiered pattern extraction
    4. Reconciliation by confidence
    5. Validation & standardization
    6. Atomic persistence (process_lab_result only)

extract_biomarkers() never raises: extraction failures degrade to fewer
results plus parsing errors. process_lab_result() raises typed errors
for missing documents, missing text, conflicting runs and storage
failures.
"""

import asyncio
import functools
import logging
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from ..config import extraction_settings
from ..extractors.llm_extractor import LLMExtractor
from ..extractors.pattern_extractor import PatternExtractor
from ..extractors.regex_extractor import RegexExtractor
from ..llm.base import BaseLLMClient
from ..llm.client import create_client
from ..storage.lab_store import LabStore
from ..utils.exceptions import (
    BiomarkerIngestionError,
    DocumentNotFoundError,
    DocumentProcessingError,
    NoTextContentError,
)
from ..utils.logging import log_performance, with_correlation
from ..validators.reconciler import Reconciler
from ..validators.standardizer import ExtractionResult, Standardizer
from .persistence import PersistenceCoordinator
from .text_provider import DocumentTextProvider, LabDocumentTextProvider

logger = logging.getLogger(__name__)


class BiomarkerExtractor:
    """
    Text-in, result-out extraction. Holds no storage.

    Args:
        llm_client: Backend for the model-assisted stage; None disables it
        enable_pattern: Run the secondary tiered pattern stage
    """

    def __init__(
        self,
        llm_client: Optional[BaseLLMClient] = None,
        enable_pattern: Optional[bool] = None,
        regex_extractor: Optional[RegexExtractor] = None,
        llm_extractor: Optional[LLMExtractor] = None,
        pattern_extractor: Optional[PatternExtractor] = None,
        reconciler: Optional[Reconciler] = None,
        standardizer: Optional[Standardizer] = None,
    ):
        self.enable_pattern = (
            enable_pattern if enable_pattern is not None
            else extraction_settings.ENABLE_PATTERN_EXTRACTION
        )
        self.regex_extractor = regex_extractor or RegexExtractor()
        self.llm_extractor = llm_extractor or LLMExtractor(llm_client)
        self.pattern_extractor = pattern_extractor or PatternExtractor()
        self.reconciler = reconciler or Reconciler()
        self.standardizer = standardizer or Standardizer()

    async def extract_biomarkers(
        self,
        text: str,
        correlation_id: Optional[str] = None,
    ) -> ExtractionResult:
        """
        Extract, reconcile and standardize biomarkers from lab text.

        Never raises. Empty or unusable input yields an empty list with
        a single "No biomarkers found in text" parsing error.
        """
        result, _ = await self.run(text, correlation_id)
        return result

    async def run(
        self,
        text: str,
        correlation_id: Optional[str] = None,
    ) -> Tuple[ExtractionResult, Dict[str, Any]]:
        """Like extract_biomarkers() but also returns per-stage counts."""
        log = with_correlation(logger, correlation_id)
        stats = {"regexMatches": 0, "llmExtractions": 0, "patternMatches": 0}

        if not text or not text.strip():
            log.info("No text supplied - skipping extraction")
            return self.standardizer.standardize([]), stats

        try:
            regex_found = self.regex_extractor.extract(text, correlation_id)
            stats["regexMatches"] = len(regex_found)

            llm_found = await self.llm_extractor.extract(text, regex_found, correlation_id)
            stats["llmExtractions"] = len(llm_found)

            pattern_found = []
            if self.enable_pattern:
                pattern_found = self.pattern_extractor.extract(text, correlation_id)
            stats["patternMatches"] = len(pattern_found)

            merged = self.reconciler.reconcile(regex=regex_found, llm=llm_found, pattern=pattern_found)
            result = self.standardizer.standardize(merged)
        except Exception as e:
            log.error(f"Biomarker extraction failed: {e}", exc_info=True)
            result = self.standardizer.standardize([])
            result.parsing_errors.insert(0, f"Extraction failed: {e}")

        log.info(
            f"Extracted {len(result.parsed_biomarkers)} biomarkers "
            f"(regex={stats['regexMatches']}, llm={stats['llmExtractions']}, "
            f"pattern={stats['patternMatches']}, errors={len(result.parsing_errors)})"
        )
        return result, stats


class BiomarkerExtractionService:
    """
    Processes stored lab documents end to end.

    With no llm_client and model-assisted extraction enabled in
    settings, a client is built from the environment via create_client().
    """

    def __init__(
        self,
        store: Optional[LabStore] = None,
        llm_client: Optional[BaseLLMClient] = None,
        text_provider: Optional[DocumentTextProvider] = None,
        enable_llm: Optional[bool] = None,
        enable_pattern: Optional[bool] = None,
        extractor: Optional[BiomarkerExtractor] = None,
        persistence: Optional[PersistenceCoordinator] = None,
    ):
        self.store = store or LabStore()

        enable_llm = enable_llm if enable_llm is not None else extraction_settings.ENABLE_LLM_EXTRACTION
        if llm_client is None and enable_llm:
            llm_client = create_client()
        self.llm_client = llm_client if enable_llm else None

        self.text_provider = text_provider or LabDocumentTextProvider(self.store)
        self.extractor = extractor or BiomarkerExtractor(self.llm_client, enable_pattern=enable_pattern)
        self.persistence = persistence or PersistenceCoordinator(self.store)

    async def close(self):
        if self.llm_client is not None:
            await self.llm_client.close()

    async def extract_biomarkers(
        self,
        text: str,
        correlation_id: Optional[str] = None,
    ) -> ExtractionResult:
        return await self.extractor.extract_biomarkers(text, correlation_id)

    @log_performance(logger, "process_lab_result")
    async def process_lab_result(self, lab_result_id: int) -> ExtractionResult:
        """
        Extract biomarkers for a stored lab document and replace its
        biomarker records atomically.

        Raises:
            DocumentNotFoundError: no such document (status untouched)
            ProcessingConflictError: a fresh run already holds the claim
            NoTextContentError: no usable text; status set to error
            PersistenceError: storage failed; status set to error
        """
        correlation_id = f"lab-{lab_result_id}-{uuid.uuid4().hex[:8]}"
        log = with_correlation(logger, correlation_id)
        loop = asyncio.get_running_loop()
        start = time.monotonic()

        document = await loop.run_in_executor(None, self.store.get_lab_result, lab_result_id)
        if document is None:
            log.error(f"Lab result {lab_result_id} not found")
            raise DocumentNotFoundError(lab_result_id)

        retry_count = await loop.run_in_executor(None, self.store.claim_processing, lab_result_id)
        log.info(f"Processing lab result {lab_result_id} (retry {retry_count})")

        try:
            text = await loop.run_in_executor(None, self.text_provider.get_text, lab_result_id)
            if not text or not text.strip():
                raise NoTextContentError(lab_result_id)
        except BiomarkerIngestionError as e:
            log.error(str(e))
            await loop.run_in_executor(None, self.persistence.record_failure, lab_result_id, str(e))
            raise
        except Exception as e:
            message = f"Could not read text for lab result {lab_result_id}: {e}"
            log.error(message)
            await loop.run_in_executor(None, self.persistence.record_failure, lab_result_id, message)
            raise DocumentProcessingError(message) from e

        result, stats = await self.extractor.run(text, correlation_id)
        stats["processingTime"] = int((time.monotonic() - start) * 1000)

        await loop.run_in_executor(
            None,
            functools.partial(
                self.persistence.persist,
                lab_result_id,
                result,
                stats,
                correlation_id,
            ),
        )
        return result


async def extract_biomarkers(
    text: str,
    llm_client: Optional[BaseLLMClient] = None,
    correlation_id: Optional[str] = None,
) -> ExtractionResult:
    """Stateless extraction; the model-assisted stage runs only when a client is supplied."""
    return await BiomarkerExtractor(llm_client).extract_biomarkers(text, correlation_id)
