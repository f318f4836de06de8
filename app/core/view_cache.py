"""In-memory TTL cache for rendered list/detail views."""

import threading
from dataclasses import dataclass
from typing import Any, Optional

from cachetools import TTLCache


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int
    misses: int
    size: int
    maxsize: int


class ViewCache:
    """
    Thread-safe TTL cache of per-user views, keyed by view path.

    Reads fill it; every successful mutation invalidates the paths it
    affects so the next read observes the change.

    Each user has a generation counter that ``invalidate`` bumps. A reader
    captures the generation before loading a view and stores it with
    ``set_if_current``; if a mutation invalidated in between, the stale view
    is dropped instead of cached.
    """

    def __init__(self, maxsize: int = 1024, ttl: int = 60) -> None:
        """
        Initialize cache.

        Args:
            maxsize: Maximum number of entries.
            ttl: Time-to-live in seconds.
        """
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._generations: dict[str, int] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def _key(user_id: str, path: str) -> str:
        return f"{user_id}:{path.rstrip('/') or '/'}"

    def get(self, user_id: str, path: str) -> Optional[Any]:
        with self._lock:
            value = self._cache.get(self._key(user_id, path))
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def generation(self, user_id: str) -> int:
        """Current invalidation generation for a user."""
        with self._lock:
            return self._generations.get(user_id, 0)

    def set_if_current(self, user_id: str, path: str, value: Any, generation: int) -> bool:
        """
        Store a view unless the user's views were invalidated since ``generation``.

        Returns:
            Whether the view was stored
        """
        with self._lock:
            if self._generations.get(user_id, 0) != generation:
                return False
            self._cache[self._key(user_id, path)] = value
            return True

    def invalidate(self, user_id: str, *paths: str) -> None:
        """Drop the given views for a user."""
        with self._lock:
            self._generations[user_id] = self._generations.get(user_id, 0) + 1
            for path in paths:
                self._cache.pop(self._key(user_id, path), None)

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                maxsize=int(self._cache.maxsize),
            )
