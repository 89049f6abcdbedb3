# ============================================================================
# src/biomarker_ingestion/core/config.py
# ============================================================================
"""
Centralized LLM Backend Configuration

Loads configuration from environment variables (.env file) with sensible defaults.
Passed to the LLM client factory as a plain dict.

Usage:
    from biomarker_ingestion.core.config import get_config, Config

    config = get_config()

    cfg = Config()
    print(cfg.ollama_host)
"""

import os
from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv


def _load_dotenv() -> bool:
    """Load .env file if it exists."""
    # Project root, then current working directory
    env_path = Path(__file__).parent.parent.parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
        return True

    cwd_env = Path.cwd() / '.env'
    if cwd_env.exists():
        load_dotenv(cwd_env)
        return True

    return False


def _get_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes', 'on')


def _get_int(key: str, default: int = 0) -> int:
    """Get integer from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float = 0.0) -> float:
    """Get float from environment variable."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Config:
    """
    Configuration container with attribute access.

    All values are loaded from environment variables with defaults.
    """

    # LLM Backend
    backend: str = field(default_factory=lambda: os.getenv('BACKEND', 'ollama'))

    # Ollama
    ollama_host: str = field(default_factory=lambda: os.getenv('OLLAMA_HOST', 'http://localhost:11434'))
    ollama_model: str = field(default_factory=lambda: os.getenv('OLLAMA_MODEL', 'llama3.1:8b-instruct-q4_K_M'))

    # Generation
    max_tokens: int = field(default_factory=lambda: _get_int('MAX_TOKENS', 2000))
    temperature: float = field(default_factory=lambda: _get_float('TEMPERATURE', 0.0))
    timeout: int = field(default_factory=lambda: _get_int('TIMEOUT', 120))

    # Caching
    use_cache: bool = field(default_factory=lambda: _get_bool('USE_CACHE', True))
    cache_max_size: int = field(default_factory=lambda: _get_int('CACHE_MAX_SIZE', 256))
    cache_ttl: int = field(default_factory=lambda: _get_int('CACHE_TTL', 3600))

    def __post_init__(self):
        _load_dotenv()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for passing to components."""
        return {
            'backend': self.backend,
            'ollama_host': self.ollama_host,
            'ollama_model': self.ollama_model,

            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
            'timeout': self.timeout,

            'use_cache': self.use_cache,
            'cache_max_size': self.cache_max_size,
            'cache_ttl': self.cache_ttl,
        }


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """
    Get configuration dictionary.

    Cached - call once and pass to components.
    """
    _load_dotenv()
    return Config().to_dict()


def reload_config() -> Dict[str, Any]:
    """Reload configuration from environment."""
    get_config.cache_clear()
    return get_config()
