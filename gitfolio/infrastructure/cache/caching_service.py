"""In-memory TTL cache for GitHub API responses.

Entries expire lazily: an expired entry is evicted the next time it is looked
up. There is no size bound or LRU policy; the key space (one key per distinct
endpoint + query) is small and entries are short-lived.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

# Domain Layer Imports
from gitfolio.domain.interfaces.cache import CacheService
from gitfolio.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60

@dataclass
class CacheEntry:
    """Internal representation of a cache entry."""
    data: Any
    timestamp: float  # When the entry was stored
    ttl: float        # Seconds the entry stays fresh

    def is_expired(self, now: float) -> bool:
        return now >= self.timestamp + self.ttl


def build_cache_key(prefix: str, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> CacheKey:
    """Builds a deterministic key from an endpoint and its query parameters.

    Parameters are serialized with sorted keys so that call-site ordering does
    not matter.
    """
    if not params:
        return CacheKey(f"{prefix}:{endpoint}")
    serialized = json.dumps({k: params[k] for k in sorted(params)}, separators=(",", ":"), default=str)
    return CacheKey(f"{prefix}:{endpoint}?{serialized}")


class InMemoryCacheService(CacheService):
    """Keyed TTL store safe for concurrent use from many in-flight requests."""

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initializes the caching service.

        Args:
            default_ttl: TTL in seconds applied when `set` gets none.
            clock: Source of the current time in seconds (injectable for tests).
        """
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = asyncio.Lock()
        logger.info(f"CachingService initialized. default_ttl={default_ttl}s")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get(self, key: CacheKey) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss for key: {key}")
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Cache entry expired for key: {key}. Evicted.")
                return None
            logger.debug(f"Cache hit for key: {key}")
            return entry.data

    async def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> None:
        effective_ttl = self.default_ttl if ttl is None else ttl
        async with self._lock:
            self._entries[key] = CacheEntry(data=value, timestamp=self._clock(), ttl=effective_ttl)
        logger.debug(f"Stored item in cache: key={key}, ttl={effective_ttl}s")

    async def delete(self, key: CacheKey) -> None:
        async with self._lock:
            if self._entries.pop(key, None) is not None:
                logger.debug(f"Deleted item from cache: key={key}")

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared in-memory cache ({count} entries).")
