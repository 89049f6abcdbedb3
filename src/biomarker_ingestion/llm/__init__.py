# ============================================================================
# src/biomarker_ingestion/llm/__init__.py
# ============================================================================
"""
LLM backend layer used by the model-assisted extractor.
"""

from .base import BaseLLMClient, BackendType
from .cache import PromptCache
from .ollama_client import OllamaLLMClient, DEFAULT_OLLAMA_MODEL
from .client import create_client
from .prompts import build_extraction_prompt

__all__ = [
    'BaseLLMClient',
    'BackendType',
    'PromptCache',
    'OllamaLLMClient',
    'DEFAULT_OLLAMA_MODEL',
    'create_client',
    'build_extraction_prompt',
]
