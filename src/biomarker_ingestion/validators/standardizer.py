# ============================================================================
# src/biomarker_ingestion/validators/standardizer.py
# ============================================================================
"""
Validation & Standardization

Final pass over reconciled candidates:
- coerce string values to finite floats
- re-normalize category and status
- substitute the library default unit where blank

Candidates that cannot be repaired become entries in parsing_errors.
Never raises.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List
import logging

from ..constants.biomarker_patterns import get_default_unit
from ..core.context import (
    BiomarkerCandidate,
    coerce_value,
    normalize_category,
    normalize_status,
)


logger = logging.getLogger(__name__)

NO_BIOMARKERS_MESSAGE = "No biomarkers found in text"


@dataclass
class ExtractionResult:
    """Public result of extract_biomarkers()."""
    parsed_biomarkers: List[BiomarkerCandidate] = field(default_factory=list)
    parsing_errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parsedBiomarkers": [b.to_summary() for b in self.parsed_biomarkers],
            "parsingErrors": list(self.parsing_errors),
        }


class Standardizer:
    """Schema enforcement for merged candidates."""

    def standardize(self, candidates: Iterable[BiomarkerCandidate]) -> ExtractionResult:
        result = ExtractionResult()

        for candidate in candidates:
            try:
                error = self._standardize_one(candidate)
            except Exception as e:
                error = f"{getattr(candidate, 'name', '?')}: unexpected error during validation: {e}"

            if error:
                logger.warning(error)
                result.parsing_errors.append(error)
            else:
                result.parsed_biomarkers.append(candidate)

        if not result.parsed_biomarkers:
            result.parsing_errors.append(NO_BIOMARKERS_MESSAGE)

        return result

    def _standardize_one(self, candidate: BiomarkerCandidate) -> str:
        """Normalize in place; return an error description or '' when storable."""
        name = (candidate.name or "").strip()
        if not name:
            return "Biomarker with empty name skipped"
        candidate.name = name

        value = coerce_value(candidate.value)
        if value is None:
            return f"{name}: value {candidate.value!r} is not a finite number"
        candidate.value = value

        candidate.category = normalize_category(candidate.category, name)
        candidate.status = normalize_status(candidate.status)

        if not candidate.unit or not str(candidate.unit).strip():
            default = get_default_unit(name)
            if not default:
                return f"{name}: no unit and no default unit known"
            candidate.unit = default
        else:
            candidate.unit = str(candidate.unit).strip()

        return ""


def standardize(candidates: Iterable[BiomarkerCandidate]) -> ExtractionResult:
    """Convenience wrapper around Standardizer().standardize()."""
    return Standardizer().standardize(candidates)
