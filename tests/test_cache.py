from __future__ import annotations

from src.school_portal.school_portal.common.cache import MISSING, TTLCache

from conftest import FakeClock


def test_entry_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v", ttl_seconds=30)

    clock.advance(29.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is MISSING
    assert len(cache) == 0


def test_none_is_a_real_value():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", None, ttl_seconds=10)

    assert cache.get("k") is None
    assert cache.get("other") is MISSING


def test_non_positive_ttl_drops_the_entry():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", 1, ttl_seconds=10)
    cache.set("k", 2, ttl_seconds=0)

    assert cache.get("k") is MISSING


def test_delete_and_clear():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1, ttl_seconds=10)
    cache.set("b", 2, ttl_seconds=10)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is MISSING
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0
