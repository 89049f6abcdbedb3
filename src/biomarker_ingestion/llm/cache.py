# ============================================================================
# src/biomarker_ingestion/llm/cache.py
# ============================================================================
"""
Prompt Response Cache

Bounded in-memory cache for LLM responses:
- LRU eviction when max_size is reached
- TTL-based expiration
- Thread-safe operations
- Hit/miss statistics

One instance is created per client (or passed in), never shared through
module state, so tests can build an isolated cache.
"""

import hashlib
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging


@dataclass
class CacheEntry:
    """Single cache entry with expiry metadata."""
    value: Any
    created_at: float
    ttl_seconds: Optional[int] = None
    access_count: int = 0

    def is_expired(self, now: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return now - self.created_at > self.ttl_seconds


class PromptCache:
    """
    LRU + TTL cache keyed by prompt and generation parameters.

    Example:
        cache = PromptCache(max_size=256, default_ttl=3600)
        cache.set_response(prompt, 2000, 0.0, {"text": "..."})
        cache.get_response(prompt, 2000, 0.0)
    """

    def __init__(
        self,
        max_size: int = 256,
        default_ttl: Optional[int] = 3600,
        clock=time.monotonic,
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock

        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0

        self.logger = logging.getLogger(__name__)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self.misses += 1
                return default

            if entry.is_expired(self._clock()):
                self.logger.debug(f"Cache entry expired: {key[:12]}")
                del self._cache[key]
                self.misses += 1
                self.expirations += 1
                return default

            entry.access_count += 1
            self._cache.move_to_end(key)
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
            while len(self._cache) >= self.max_size:
                evicted, _ = self._cache.popitem(last=False)
                self.evictions += 1
                self.logger.debug(f"Evicted LRU entry: {evicted[:12]}")

            self._cache[key] = CacheEntry(
                value=value,
                created_at=self._clock(),
                ttl_seconds=ttl if ttl is not None else self.default_ttl,
            )

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_response(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> Optional[Dict[str, Any]]:
        """Cached response for prompt + parameters, or None."""
        cached = self.get(self._make_prompt_key(prompt, max_tokens, temperature))
        return dict(cached) if cached is not None else None

    def set_response(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        response: Dict[str, Any],
        ttl: Optional[int] = None,
    ) -> None:
        self.set(self._make_prompt_key(prompt, max_tokens, temperature), dict(response), ttl=ttl)

    @staticmethod
    def _make_prompt_key(prompt: str, max_tokens: int, temperature: float) -> str:
        """Fixed-length key from prompt + parameters."""
        raw = f"{prompt}|{max_tokens}|{temperature:.3f}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "expirations": self.expirations,
                "hit_rate": self.hits / total if total > 0 else 0.0,
                "entry_count": len(self._cache),
            }
