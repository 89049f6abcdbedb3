# ============================================================================
# src/biomarker_ingestion/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the biomarker ingestion engine.
"""


class BiomarkerIngestionError(Exception):
    """Base exception for all biomarker ingestion errors."""
    pass


class DocumentProcessingError(BiomarkerIngestionError):
    """Error during document processing."""
    pass


class DocumentNotFoundError(DocumentProcessingError):
    """Lab document does not exist."""
    def __init__(self, document_id: int):
        super().__init__(f"Lab result {document_id} not found")
        self.document_id = document_id


class NoTextContentError(DocumentProcessingError):
    """No extracted text is available for the document."""
    def __init__(self, document_id: int):
        super().__init__(f"No text content found for lab result {document_id}")
        self.document_id = document_id


class ProcessingConflictError(DocumentProcessingError):
    """Document is already being processed; retry later."""
    def __init__(self, document_id: int):
        super().__init__(f"Lab result {document_id} is already processing")
        self.document_id = document_id


class ValidationError(BiomarkerIngestionError):
    """Error during data validation."""
    pass


class BiomarkerInvariantError(ValidationError):
    """A candidate reached storage with an empty name or non-finite value."""
    def __init__(self, message: str, name: str = "", value=None):
        super().__init__(message)
        self.name = name
        self.value = value


class PersistenceError(BiomarkerIngestionError):
    """Storage transaction failed; nothing was written."""
    def __init__(self, message: str, document_id: int):
        super().__init__(message)
        self.document_id = document_id


class PersistenceVerificationError(PersistenceError):
    """Stored record count differs from the number inserted."""
    def __init__(self, document_id: int, expected: int, actual: int):
        super().__init__(
            f"Verification failed for lab result {document_id}: "
            f"expected {expected} records, found {actual}",
            document_id,
        )
        self.expected = expected
        self.actual = actual


class ConfigurationError(BiomarkerIngestionError):
    """Invalid configuration."""
    pass


class ModelError(BiomarkerIngestionError):
    """Error with the language model backend."""
    pass


class InferenceError(ModelError):
    """Error during model inference."""
    pass
