# ============================================================================
# src/biomarker_ingestion/extractors/__init__.py
# ============================================================================
"""
Extractors Package

Three independent strategies produce biomarker candidates:
- RegexExtractor: primary pattern library with reference-range rejection
- LLMExtractor: model-assisted pass focused on gaps
- PatternExtractor: secondary tiered patterns
"""

from .text_preprocessor import preprocess_lab_text
from .reference_range import ReferenceRangeDetector
from .regex_extractor import RegexExtractor, detect_test_date
from .llm_extractor import LLMExtractor, LLMBiomarkerItem
from .pattern_extractor import PatternExtractor

__all__ = [
    'preprocess_lab_text',
    'ReferenceRangeDetector',
    'RegexExtractor',
    'detect_test_date',
    'LLMExtractor',
    'LLMBiomarkerItem',
    'PatternExtractor',
]
