"""Tests for the TTL cache."""
from __future__ import annotations

import pytest

from resonance.cache import TTLCache


def test_get_miss() -> None:
    cache = TTLCache(ttl_seconds=10)
    assert cache.get("absent") is None


def test_set_and_get_within_ttl(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("songs:list", ["a", "b"])
    clock.advance(9.9)
    assert cache.get("songs:list") == ["a", "b"]


def test_expired_entry_is_a_miss_before_any_sweep(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("key", "value")
    clock.advance(10.5)
    assert cache.get("key") is None
    # still physically present until swept
    assert len(cache) == 1


def test_set_overwrites_and_restarts_ttl(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("key", "old")
    clock.advance(8)
    cache.set("key", "new")
    clock.advance(8)
    assert cache.get("key") == "new"


def test_invalidate(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("songs:list", [1])
    cache.set("artists:list", [2])
    cache.invalidate("songs:list")
    assert cache.get("songs:list") is None
    assert cache.get("artists:list") == [2]


def test_invalidate_missing_key_is_noop() -> None:
    cache = TTLCache(ttl_seconds=10)
    cache.invalidate("nope")
    assert len(cache) == 0


def test_sweep_removes_only_expired(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("old", 1)
    clock.advance(6)
    cache.set("fresh", 2)
    clock.advance(5)
    assert cache.sweep() == 1
    assert len(cache) == 1
    assert cache.get("fresh") == 2


def test_empty_list_is_cacheable(clock) -> None:  # type: ignore[no-untyped-def]
    cache = TTLCache(ttl_seconds=10, clock=clock)
    cache.set("songs:list", [])
    assert cache.get("songs:list") == []


def test_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError):
        TTLCache(ttl_seconds=0)
