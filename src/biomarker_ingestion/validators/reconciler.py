# ============================================================================
# src/biomarker_ingestion/validators/reconciler.py
# ============================================================================
"""
Reconciliation Engine

Merges candidates from the three extractors into one per biomarker name.

Order of insertion: pattern, then regex, then llm. A later candidate
replaces an existing one only when its confidence is strictly greater,
so ties keep the earlier insertion and a lower-confidence item never
overwrites a higher one.
"""

from typing import Dict, Iterable, List
import logging

from ..core.context import BiomarkerCandidate


logger = logging.getLogger(__name__)


class Reconciler:
    """Confidence-based merge keyed by lower-cased biomarker name."""

    def reconcile(
        self,
        regex: Iterable[BiomarkerCandidate] = (),
        llm: Iterable[BiomarkerCandidate] = (),
        pattern: Iterable[BiomarkerCandidate] = (),
    ) -> List[BiomarkerCandidate]:
        merged: Dict[str, BiomarkerCandidate] = {}
        replaced = 0

        for source in (pattern, regex, llm):
            for candidate in source:
                key = candidate.key
                if not key:
                    continue
                existing = merged.get(key)
                if existing is None:
                    merged[key] = candidate
                elif candidate.confidence > existing.confidence:
                    logger.debug(
                        f"{key}: {candidate.extraction_method.value} "
                        f"({candidate.confidence:.2f}) replaces "
                        f"{existing.extraction_method.value} ({existing.confidence:.2f})"
                    )
                    merged[key] = candidate
                    replaced += 1

        logger.info(f"Reconciled {len(merged)} biomarkers ({replaced} replacements)")
        # dict preserves first-insertion order even when a value is replaced
        return list(merged.values())


def reconcile(
    regex: Iterable[BiomarkerCandidate] = (),
    llm: Iterable[BiomarkerCandidate] = (),
    pattern: Iterable[BiomarkerCandidate] = (),
) -> List[BiomarkerCandidate]:
    """Convenience wrapper around Reconciler().reconcile()."""
    return Reconciler().reconcile(regex=regex, llm=llm, pattern=pattern)
