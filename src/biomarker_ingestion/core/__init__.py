# ============================================================================
# src/biomarker_ingestion/core/__init__.py
# ============================================================================
"""
Core components for the biomarker ingestion engine.

The pipeline, persistence and sweep modules are imported from their own
modules (or the package root) since they depend on storage, which itself
depends on core.context.
"""

from .context import (
    BiomarkerCandidate,
    BiomarkerCategory,
    BiomarkerStatus,
    ExtractionMethod,
    ProcessingState,
)
from .config import get_config, reload_config

__all__ = [
    'BiomarkerCandidate',
    'BiomarkerCategory',
    'BiomarkerStatus',
    'ExtractionMethod',
    'ProcessingState',
    'get_config',
    'reload_config',
]
