# ============================================================================
# src/biomarker_ingestion/llm/client.py
# ============================================================================
"""
LLM Client Factory

Usage:
    from biomarker_ingestion.llm.client import create_client

    client = create_client({'backend': 'ollama'})
    result = await client.generate("...", json_mode=True)
"""

from typing import Dict, Any, Optional
import logging

from .base import BaseLLMClient
from .cache import PromptCache
from .ollama_client import OllamaLLMClient
from ..core.config import get_config
from ..utils.exceptions import ConfigurationError


DEFAULT_BACKEND = "ollama"

logger = logging.getLogger(__name__)


def create_client(
    config: Optional[Dict[str, Any]] = None,
    cache: Optional[PromptCache] = None,
) -> BaseLLMClient:
    """
    Create an LLM client.

    Configuration is loaded from the environment (.env) and merged with any
    passed config; passed values take precedence.

    Args:
        config: Configuration dict, at minimum:
            - backend: "ollama" (default)
            - ollama_host / ollama_model
            - max_tokens / temperature / timeout
            - use_cache / cache_max_size / cache_ttl
        cache: Optional response cache to share between clients

    Raises:
        ConfigurationError: If backend type is not supported
    """
    env_config = get_config()
    config = {**env_config, **(config or {})}
    backend = str(config.get('backend', DEFAULT_BACKEND)).lower()

    if backend == "ollama":
        logger.debug(f"Creating Ollama client: {config.get('ollama_host')} / {config.get('ollama_model')}")
        return OllamaLLMClient(config, cache=cache)

    raise ConfigurationError(
        f"Unknown backend: {backend}. Supported backends: ollama"
    )
