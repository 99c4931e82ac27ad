"""Tests for the TTL + FIFO state cache."""

import pytest

from world_state.cache import StateCache


def test_hit_after_put(clock):
    cache = StateCache(ttl=60, clock=clock)
    cache.put("character", "a", {"x": 1})
    assert cache.get("character", "a") == {"x": 1}
    assert cache.stats()["hits"] == 1


def test_miss_is_not_cached(clock):
    cache = StateCache(clock=clock)
    assert cache.get("character", "a") is None
    assert len(cache) == 0
    assert cache.stats()["misses"] == 1


def test_entry_expires_at_ttl(clock):
    cache = StateCache(ttl=60, clock=clock)
    cache.put("location", "l", "tavern")
    clock.advance(59)
    assert cache.get("location", "l") == "tavern"
    clock.advance(1)
    assert cache.get("location", "l") is None
    # expired entry is dropped, not just hidden
    assert cache.stats()["location"] == 0


def test_reads_do_not_extend_lifetime(clock):
    cache = StateCache(ttl=10, clock=clock)
    cache.put("character", "a", 1)
    for _ in range(3):
        clock.advance(3)
        assert cache.get("character", "a") == 1
    clock.advance(1)
    assert cache.get("character", "a") is None


def test_fifo_eviction_ignores_reads(clock):
    cache = StateCache(max_size=2, clock=clock)
    cache.put("character", "a", 1)
    cache.put("character", "b", 2)
    # reading "a" would save it under LRU; FIFO still evicts it first
    assert cache.get("character", "a") == 1
    cache.put("character", "c", 3)
    assert cache.get("character", "a") is None
    assert cache.get("character", "b") == 2
    assert cache.get("character", "c") == 3


def test_reput_counts_as_fresh_insertion(clock):
    cache = StateCache(max_size=2, clock=clock)
    cache.put("character", "a", 1)
    cache.put("character", "b", 2)
    cache.put("character", "a", 10)
    cache.put("character", "c", 3)
    assert cache.get("character", "b") is None
    assert cache.get("character", "a") == 10


def test_buckets_are_independent(clock):
    cache = StateCache(max_size=1, clock=clock)
    cache.put("character", "x", "char")
    cache.put("inventory", "x", ["sword"])
    assert cache.get("character", "x") == "char"
    assert cache.get("inventory", "x") == ["sword"]


def test_invalidate_and_clear(clock):
    cache = StateCache(clock=clock)
    cache.put("character", "a", 1)
    cache.put("location", "l", 2)
    cache.invalidate("character", "a")
    assert cache.get("character", "a") is None
    cache.invalidate("character", "never-there")
    cache.clear()
    assert len(cache) == 0


def test_disabled_cache_always_misses(clock):
    cache = StateCache(enabled=False, clock=clock)
    cache.put("character", "a", 1)
    assert cache.get("character", "a") is None
    assert len(cache) == 0


def test_unknown_bucket(clock):
    cache = StateCache(clock=clock)
    with pytest.raises(ValueError):
        cache.put("weather", "today", "rain")
