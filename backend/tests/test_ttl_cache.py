"""
Unit tests for the in-process TTL cache.

A fake clock drives expiry so no test sleeps.
"""
import threading

from marketai.services.ai.cache import TTLCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def test_get_returns_value_before_expiry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)

    cache.set("k", {"a": 1}, ttl_ms=1000)
    clock.advance_ms(999)

    assert cache.get("k") == {"a": 1}


def test_get_returns_none_at_expiry_and_removes_entry():
    clock = FakeClock()
    cache = TTLCache(clock=clock)

    cache.set("k", "v", ttl_ms=1000)
    clock.advance_ms(1000)

    assert cache.get("k") is None
    assert len(cache) == 0


def test_missing_key_returns_none():
    assert TTLCache().get("absent") is None


def test_set_overwrites_value_and_ttl():
    clock = FakeClock()
    cache = TTLCache(clock=clock)

    cache.set("k", "old", ttl_ms=100)
    cache.set("k", "new", ttl_ms=5000)
    clock.advance_ms(200)

    assert cache.get("k") == "new"


def test_zero_ttl_is_immediately_expired():
    cache = TTLCache(clock=FakeClock())
    cache.set("k", "v", ttl_ms=0)
    assert cache.get("k") is None


def test_delete_and_clear():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1, ttl_ms=1000)
    cache.set("b", 2, ttl_ms=1000)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.get("a") is None

    cache.clear()
    assert len(cache) == 0


def test_concurrent_writers_do_not_lose_entries():
    cache = TTLCache()

    def writer(offset: int) -> None:
        for i in range(200):
            cache.set(f"{offset}:{i}", i, ttl_ms=60_000)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 800
