"""
Thread-safe caching with TTL for market metadata.

Tick sizes and neg-risk flags change rarely, so orders for the same token
reuse them instead of querying the CLOB before every signature.
"""

import time
import threading
from typing import Optional, Any, Callable
from dataclasses import dataclass
from collections import OrderedDict
from decimal import Decimal
import logging

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with expiry."""
    value: Any
    expires_at: float


class TTLCache:
    """
    Thread-safe cache with time-to-live and LRU eviction.

    MEMORY SAFETY: Evicts the least recently used entry once max_size is reached.
    """

    def __init__(self, default_ttl: float = 300.0, max_size: int = 10000):
        """
        Initialize cache.

        Args:
            default_ttl: Default TTL in seconds (5 minutes)
            max_size: Maximum cache size before LRU eviction (default: 10,000)
        """
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if expired/missing
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if time.time() > entry.expires_at:
                del self._cache[key]
                logger.debug(f"Cache expired: {key}")
                return None

            self._cache.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: TTL in seconds (uses default if None)
        """
        ttl = ttl if ttl is not None else self.default_ttl

        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            elif len(self._cache) >= self.max_size:
                lru_key, _ = self._cache.popitem(last=False)
                logger.debug(f"Cache LRU eviction: {lru_key}")

            self._cache[key] = CacheEntry(value=value, expires_at=time.time() + ttl)

    def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Any],
        ttl: Optional[float] = None
    ) -> Any:
        """
        Get from cache or fetch if missing/expired.

        Only one thread fetches a given miss; the rest wait for its value.
        """
        value = self.get(key)
        if value is not None:
            return value

        with self._lock:
            # Double-check after acquiring lock
            value = self.get(key)
            if value is not None:
                return value

            logger.debug(f"Cache miss, fetching: {key}")
            value = fetch_fn()
            self.set(key, value, ttl)
            return value


class MarketMetadataCache:
    """Tick size and neg-risk flag per token."""

    def __init__(self, ttl: float = 300.0):
        """
        Initialize market metadata cache.

        Args:
            ttl: Cache TTL in seconds (5 minutes default)
        """
        self.cache = TTLCache(default_ttl=ttl)

    def tick_size(self, token_id: str, fetch_fn: Callable[[str], Decimal]) -> Decimal:
        """Cached tick size for token, fetched on a miss."""
        return self.cache.get_or_fetch(f"tick_size:{token_id}", lambda: fetch_fn(token_id))

    def neg_risk(self, token_id: str, fetch_fn: Callable[[str], bool]) -> bool:
        """Cached negative risk flag for token, fetched on a miss."""
        return self.cache.get_or_fetch(f"neg_risk:{token_id}", lambda: fetch_fn(token_id))
