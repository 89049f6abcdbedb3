# ============================================================================
# src/biomarker_ingestion/core/context/enums.py
# ============================================================================
"""
Extraction Enums
- Biomarker categories (closed set)
- Result status
- Extraction method
- Processing lifecycle state
"""

from enum import Enum


class BiomarkerCategory(str, Enum):
    LIPID = "lipid"
    METABOLIC = "metabolic"
    THYROID = "thyroid"
    VITAMIN = "vitamin"
    MINERAL = "mineral"
    BLOOD = "blood"
    LIVER = "liver"
    KIDNEY = "kidney"
    HORMONE = "hormone"
    OTHER = "other"


class BiomarkerStatus(str, Enum):
    HIGH = "High"
    LOW = "Low"
    NORMAL = "Normal"


class ExtractionMethod(str, Enum):
    REGEX = "regex"      # Primary pattern library
    LLM = "llm"          # Model-assisted
    PATTERN = "pattern"  # Secondary tiered patterns


class ValidationStatus(str, Enum):
    """Secondary pattern extractor tri-state"""
    VALID = "valid"
    WARNING = "warning"
    INVALID = "invalid"


class ProcessingState(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# Method mix recorded on a completed status row when more than one
# extraction method contributed
HYBRID_METHOD = "hybrid"
