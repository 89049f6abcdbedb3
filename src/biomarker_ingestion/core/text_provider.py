# ============================================================================
# src/biomarker_ingestion/core/text_provider.py
# ============================================================================
"""
Document text providers.

The pipeline never performs OCR. It asks a provider for the best text
already extracted for a document and treats it as an opaque string.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from ..storage.lab_store import LabStore

logger = logging.getLogger(__name__)


class DocumentTextProvider(Protocol):
    def get_text(self, document_id: int) -> Optional[str]:
        ...


# Metadata paths tried in order of preference
TEXT_SOURCES = (
    ("preprocessedText", "normalizedText"),
    ("preprocessedText", "rawText"),
    ("ocr", "text"),
    ("parsedText",),
    ("summary",),
)


def _lookup(metadata: Dict[str, Any], path) -> Optional[str]:
    node: Any = metadata
    for part in path:
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    if isinstance(node, str) and node.strip():
        return node
    return None


class LabDocumentTextProvider:
    """
    Reads text from the lab document's metadata blob.

    Preference: normalized OCR text, raw OCR text, legacy OCR/parsed
    text, then a prior free-text summary.
    """

    def __init__(self, store: LabStore):
        self.store = store

    def get_text(self, document_id: int) -> Optional[str]:
        document = self.store.get_lab_result(document_id)
        if document is None:
            return None
        return text_from_metadata(document["metadata"], document_id)


def text_from_metadata(metadata: Dict[str, Any], document_id: Optional[int] = None) -> Optional[str]:
    for path in TEXT_SOURCES:
        text = _lookup(metadata, path)
        if text is not None:
            logger.debug(f"Using {'.'.join(path)} as text for lab result {document_id}")
            return text
    return None
