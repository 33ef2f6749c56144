"""Tests for cache module."""

import threading
import time
from decimal import Decimal

from clob_signer.utils.cache import TTLCache, MarketMetadataCache


def test_ttl_cache_basic():
    """Test basic cache operations."""
    cache = TTLCache(default_ttl=1.0)

    cache.set("key1", "value1")
    assert cache.get("key1") == "value1"

    assert cache.get("missing") is None

    cache.set("key2", "value2", ttl=0.1)
    time.sleep(0.2)
    assert cache.get("key2") is None


def test_ttl_cache_lru_eviction():
    """Least recently used entry is evicted first."""
    cache = TTLCache(max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("b") is None
    assert cache.get("c") == 3


def test_ttl_cache_get_or_fetch_single_fetch():
    """Concurrent misses trigger a single fetch."""
    cache = TTLCache()
    fetch_count = 0
    count_lock = threading.Lock()

    def fetch():
        nonlocal fetch_count
        with count_lock:
            fetch_count += 1
        time.sleep(0.05)
        return "value"

    results = []
    threads = [
        threading.Thread(target=lambda: results.append(cache.get_or_fetch("key", fetch)))
        for _ in range(10)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == ["value"] * 10
    assert fetch_count == 1


def test_market_metadata_cache():
    """Tick size and neg-risk are fetched once per token."""
    cache = MarketMetadataCache()
    fetched = []

    def fetch_tick_size(token_id):
        fetched.append(("tick_size", token_id))
        return Decimal("0.01")

    def fetch_neg_risk(token_id):
        fetched.append(("neg_risk", token_id))
        return False

    assert cache.tick_size("123", fetch_tick_size) == Decimal("0.01")
    assert cache.tick_size("123", fetch_tick_size) == Decimal("0.01")
    assert cache.neg_risk("123", fetch_neg_risk) is False
    assert cache.neg_risk("123", fetch_neg_risk) is False
    cache.tick_size("456", fetch_tick_size)

    assert fetched == [("tick_size", "123"), ("neg_risk", "123"), ("tick_size", "456")]


def test_market_metadata_cache_expiry():
    """An expired entry is fetched again."""
    cache = MarketMetadataCache(ttl=0.1)
    values = iter([Decimal("0.01"), Decimal("0.001")])

    assert cache.tick_size("123", lambda token_id: next(values)) == Decimal("0.01")
    time.sleep(0.2)
    assert cache.tick_size("123", lambda token_id: next(values)) == Decimal("0.001")
