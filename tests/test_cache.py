import threading

import pytest

from semaphore_sms import InMemoryCache, ResponseCache, make_cache_key, shared_cache
from semaphore_sms.cache import CACHE_KEY_PREFIX


def test_cache_key_ignores_parameter_order():
    first = make_cache_key("messages", {"limit": 10, "page": 2, "apikey": "k"})
    second = make_cache_key("messages", {"apikey": "k", "page": 2, "limit": 10})

    assert first == second
    assert first.startswith(CACHE_KEY_PREFIX)


def test_cache_key_depends_on_path_and_values():
    base = make_cache_key("messages", {"limit": 10})

    assert make_cache_key("account/users", {"limit": 10}) != base
    assert make_cache_key("messages", {"limit": 11}) != base
    assert make_cache_key("messages") == make_cache_key("messages", {})


def test_get_set_and_expiry(clock):
    cache = InMemoryCache(clock=clock)

    assert cache.get("a") is None
    cache.set("a", {"balance": 1}, 30)
    assert cache.get("a") == {"balance": 1}

    clock.advance(30)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_remember_calls_producer_once_while_live(clock):
    cache = InMemoryCache(clock=clock)
    calls = []

    def producer():
        calls.append(1)
        return {"n": len(calls)}

    assert cache.remember("k", 30, producer) == {"n": 1}
    assert cache.remember("k", 30, producer) == {"n": 1}
    assert len(calls) == 1

    clock.advance(31)
    assert cache.remember("k", 30, producer) == {"n": 2}
    assert len(calls) == 2


def test_delete_and_clear():
    cache = InMemoryCache()
    cache.set("a", {}, 30)
    cache.set("b", {}, 30)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_shared_cache_is_a_single_instance():
    assert shared_cache() is shared_cache()


def test_concurrent_writes_last_write_wins():
    cache = InMemoryCache()

    def writer(n):
        for _ in range(200):
            cache.set("key", {"writer": n}, 30)
            cache.get("key")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.get("key")["writer"] in range(4)
    assert len(cache) == 1


def test_cached_values_are_independent_copies():
    cache = InMemoryCache()
    value = {"balance": 100, "users": [{"name": "a"}]}
    cache.set("k", value, 30)

    value["balance"] = 1
    hit = cache.get("k")
    hit["users"].append({"name": "b"})

    assert cache.get("k") == {"balance": 100, "users": [{"name": "a"}]}


def test_expired_entries_are_swept_on_write(clock):
    cache = InMemoryCache(clock=clock, sweep_threshold=100)
    for n in range(1000):
        cache.set(f"message-{n}", {"id": n}, 30)

    clock.advance(3600)
    cache.set("account", {"balance": 1}, 30)

    assert len(cache) == 1
    assert cache.get("account") == {"balance": 1}


def test_sweep_keeps_live_entries(clock):
    cache = InMemoryCache(clock=clock, sweep_threshold=2)
    cache.set("old", {}, 10)
    clock.advance(5)
    cache.set("new", {}, 30)
    clock.advance(6)
    cache.set("newest", {}, 30)

    assert len(cache) == 2
    assert cache.get("new") == {}


def test_incomplete_backend_cannot_be_constructed():
    class GetOnly(ResponseCache):
        def get(self, key):
            return None

    with pytest.raises(TypeError):
        GetOnly()
