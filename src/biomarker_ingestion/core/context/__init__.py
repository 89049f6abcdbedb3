# src/biomarker_ingestion/core/context/__init__.py

from .enums import (
    BiomarkerCategory,
    BiomarkerStatus,
    ExtractionMethod,
    ValidationStatus,
    ProcessingState,
    HYBRID_METHOD,
)
from .candidate import (
    BiomarkerCandidate,
    VALID_CATEGORIES,
    normalize_category,
    normalize_status,
    coerce_value,
    parse_test_date,
)

__all__ = [
    "BiomarkerCategory",
    "BiomarkerStatus",
    "ExtractionMethod",
    "ValidationStatus",
    "ProcessingState",
    "HYBRID_METHOD",
    "BiomarkerCandidate",
    "VALID_CATEGORIES",
    "normalize_category",
    "normalize_status",
    "coerce_value",
    "parse_test_date",
]
