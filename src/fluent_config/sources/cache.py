"""TTL caching for expensive sources.

``SecretCache`` is safe to share between threads. Expired entries are
dropped when read, and a sweep removes the rest at most once per interval.
The sweep only runs when its lock is free, so no caller ever waits on it.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from fluent_config.core.result import Result
from fluent_config.logging import get_logger
from fluent_config.sources.base import ConfigurationSource

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with its absolute expiry time."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SecretCache:
    """Thread-safe in-memory cache with per-entry expiry."""

    def __init__(
        self,
        default_ttl_seconds: float = 300.0,
        sweep_interval_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._sweep_lock = threading.Lock()
        self._last_sweep = clock()
        self._hits = 0
        self._misses = 0
        self._sweeps = 0

    def get(self, key: str) -> Optional[Any]:
        self._maybe_sweep()
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        self._maybe_sweep()

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def sweep(self) -> int:
        """Remove expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        self._last_sweep = now
        self._sweeps += 1
        if expired:
            logger.debug("Swept expired cache entries", removed=len(expired))
        return len(expired)

    def _maybe_sweep(self) -> None:
        if self._clock() - self._last_sweep < self.sweep_interval_seconds:
            return
        if not self._sweep_lock.acquire(blocking=False):
            return
        try:
            if self._clock() - self._last_sweep >= self.sweep_interval_seconds:
                self.sweep()
        finally:
            self._sweep_lock.release()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            size = len(self._entries)
        total = self._hits + self._misses
        return {
            "size": size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
            "sweeps": self._sweeps,
        }


class CachedSource(ConfigurationSource):
    """Serves a delegate source's successful loads from a ``SecretCache``."""

    def __init__(
        self,
        delegate: ConfigurationSource,
        ttl_seconds: float = 300.0,
        cache: Optional[SecretCache] = None,
    ):
        super().__init__(delegate.name, delegate.priority)
        self.delegate = delegate
        self.ttl_seconds = ttl_seconds
        self.cache = cache if cache is not None else SecretCache(default_ttl_seconds=ttl_seconds)
        self.supports_hot_reload = delegate.supports_hot_reload

    @property
    def _cache_key(self) -> str:
        return f"source:{self.delegate.name}"

    async def load(self) -> Result[Mapping[str, str]]:
        cached = self.cache.get(self._cache_key)
        if cached is not None:
            logger.debug("Serving cached source load", source=self.name)
            self._values = dict(cached)
            return Result.success(dict(cached))

        result = await self.delegate.load()
        if result.is_success:
            self._values = dict(result.value)
            self.cache.set(self._cache_key, dict(result.value), self.ttl_seconds)
        return result

    async def reload(self) -> Result[Mapping[str, str]]:
        self.invalidate()
        return await super().reload()

    def invalidate(self) -> None:
        self.cache.delete(self._cache_key)
