# ============================================================================
# src/biomarker_ingestion/utils/__init__.py
# ============================================================================
"""
Utility modules for the biomarker ingestion engine.
"""

from .exceptions import (
    BiomarkerIngestionError,
    DocumentProcessingError,
    DocumentNotFoundError,
    NoTextContentError,
    ProcessingConflictError,
    ValidationError,
    BiomarkerInvariantError,
    PersistenceError,
    PersistenceVerificationError,
    ConfigurationError,
    ModelError,
    InferenceError,
)

from .logging import (
    setup_logging,
    JsonFormatter,
    LogAdapter,
    with_correlation,
    log_performance,
)

__all__ = [
    'BiomarkerIngestionError',
    'DocumentProcessingError',
    'DocumentNotFoundError',
    'NoTextContentError',
    'ProcessingConflictError',
    'ValidationError',
    'BiomarkerInvariantError',
    'PersistenceError',
    'PersistenceVerificationError',
    'ConfigurationError',
    'ModelError',
    'InferenceError',
    'setup_logging',
    'JsonFormatter',
    'LogAdapter',
    'with_correlation',
    'log_performance',
]
