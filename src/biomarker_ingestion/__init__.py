# ============================================================================
# src/biomarker_ingestion/__init__.py
# ============================================================================
"""
Biomarker Ingestion Engine

Extracts structured biomarker results from lab-report text using a
pattern library, an optional local LLM and a secondary tiered pattern
pass, then stores them atomically per document.
"""

__version__ = "0.1.0"

from .core.pipeline import (
    BiomarkerExtractor,
    BiomarkerExtractionService,
    extract_biomarkers,
)
from .core.sweep import reprocess_missing_biomarkers
from .storage.lab_store import LabStore
from .validators.standardizer import ExtractionResult

__all__ = [
    '__version__',
    'BiomarkerExtractor',
    'BiomarkerExtractionService',
    'extract_biomarkers',
    'reprocess_missing_biomarkers',
    'LabStore',
    'ExtractionResult',
]
