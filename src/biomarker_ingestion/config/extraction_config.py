# ============================================================================
# src/biomarker_ingestion/config/extraction_config.py
# ============================================================================
"""
Extraction Settings
- Fixed confidences per extractor
- Model-assisted extraction bounds and timeout
- Reference-range detection tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ExtractionSettings(BaseSettings):
    REGEX_CONFIDENCE: float = Field(
        default=0.9,
        ge=0.0, le=1.0,
        description="Confidence assigned to every primary regex match"
    )
    LLM_DEFAULT_CONFIDENCE: float = Field(
        default=0.95,
        ge=0.0, le=1.0,
        description="Confidence for model-assisted items that do not report one"
    )
    LLM_MIN_VALUE: float = Field(
        default=0.0,
        description="Gross lower bound for model-assisted values; below is dropped"
    )
    LLM_MAX_VALUE: float = Field(
        default=10000.0,
        description="Gross upper bound for model-assisted values; above is dropped"
    )
    LLM_EXTRACTION_TIMEOUT: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds before the model-assisted call is abandoned (returns no candidates)"
    )
    LLM_MAX_TOKENS: int = Field(
        default=2000,
        description="Generation budget for the extraction prompt"
    )
    LLM_MAX_TEXT_LENGTH: int = Field(
        default=12000,
        description="Document text beyond this many characters is truncated in the prompt"
    )
    ENABLE_LLM_EXTRACTION: bool = Field(
        default=True,
        description="Run the model-assisted pass"
    )
    ENABLE_PATTERN_EXTRACTION: bool = Field(
        default=True,
        description="Run the secondary tiered pattern pass"
    )
    REFERENCE_CONTEXT_WINDOW: int = Field(
        default=80,
        ge=0,
        description="Characters inspected on each side of a match for reference-range context"
    )
    REFERENCE_BOUNDARY_TOLERANCE: float = Field(
        default=1e-6,
        ge=0.0,
        description="Relative tolerance when comparing a value to a nearby range endpoint"
    )
    MIN_REFERENCE_CONTEXT_WORDS: int = Field(
        default=2,
        ge=1,
        description="Generic reference words required before a textbook cutoff is treated as a boundary"
    )


extraction_settings = ExtractionSettings()
