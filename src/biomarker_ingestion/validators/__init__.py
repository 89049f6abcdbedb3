# ============================================================================
# src/biomarker_ingestion/validators/__init__.py
# ============================================================================
"""
Validators Package

- Plausibility checks (accept-but-log)
- Reconciliation of candidates across extractors
- Final validation & standardization
"""

from .plausibility import PlausibilityChecker, check_plausibility
from .reconciler import Reconciler, reconcile
from .standardizer import ExtractionResult, Standardizer, standardize, NO_BIOMARKERS_MESSAGE

__all__ = [
    'PlausibilityChecker',
    'check_plausibility',
    'Reconciler',
    'reconcile',
    'ExtractionResult',
    'Standardizer',
    'standardize',
    'NO_BIOMARKERS_MESSAGE',
]
