# ============================================================================
# src/biomarker_ingestion/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .biomarker_patterns import BIOMARKER_LIBRARY, BiomarkerPattern, get_pattern, get_default_unit
from .reference_boundaries import (
    REFERENCE_BOUNDARIES,
    PLAUSIBILITY_RANGES,
    RANGE_INDICATOR_PHRASES,
    GENERIC_REFERENCE_WORDS,
)
from .tiered_patterns import TIERED_PATTERNS, TieredPattern, PatternTier, TIER_CONFIDENCE
