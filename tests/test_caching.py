import asyncio
import contextlib

from catalog.utils.caching import TTLCache, run_periodic_sweep


def test_get_returns_none_on_miss(cache):
    assert cache.get("klara:articles") is None


def test_set_then_get(cache):
    cache.set("klara:categories", ["cat-rotwein"])
    assert cache.get("klara:categories") == ["cat-rotwein"]


def test_empty_list_is_a_hit_not_a_miss(cache):
    cache.set("klara:articles:search:nothing", [])
    assert cache.get("klara:articles:search:nothing") == []


def test_entry_served_until_ttl_then_dropped(cache, clock):
    cache.set("key", "value", ttl=10)

    clock.advance(9.99)
    assert cache.get("key") == "value"

    clock.advance(0.01)
    assert cache.get("key") is None
    # Lazy deletion on access
    assert len(cache) == 0


def test_default_ttl_applies_when_none_given(clock):
    store = TTLCache(default_ttl=60, clock=clock)
    store.set("key", 1)

    clock.advance(59)
    assert store.get("key") == 1
    clock.advance(1)
    assert store.get("key") is None


def test_set_overwrites_and_restarts_ttl(cache, clock):
    cache.set("key", "old", ttl=10)
    clock.advance(8)
    cache.set("key", "new", ttl=10)
    clock.advance(8)
    assert cache.get("key") == "new"


def test_invalidate(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_clear_reports_removed_entries(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.clear() == 2
    assert len(cache) == 0


def test_stats(cache, clock):
    cache.set("fresh", 1, ttl=100)
    cache.set("stale", 2, ttl=5)
    clock.advance(10)

    stats = cache.stats()
    assert stats["total_entries"] == 2
    by_key = {entry["key"]: entry for entry in stats["entries"]}
    assert by_key["fresh"] == {"key": "fresh", "age": 10, "expires_in": 90, "expired": False}
    assert by_key["stale"]["expired"] is True
    assert by_key["stale"]["expires_in"] == -5


def test_sweep_removes_only_expired_entries(cache, clock):
    for i in range(25):
        cache.set(f"short-{i}", i, ttl=1)
    cache.set("long", "kept", ttl=1000)

    clock.advance(2)
    assert cache.sweep() == 25
    assert len(cache) == 1
    assert cache.get("long") == "kept"


def test_sweep_empties_store_once_everything_expired(cache, clock):
    for i in range(10):
        cache.set(f"k{i}", i, ttl=1)
    clock.advance(1)
    cache.sweep()
    assert len(cache) == 0


async def test_periodic_sweep_runs_in_background(cache, clock):
    cache.set("a", 1, ttl=1)
    clock.advance(5)

    task = asyncio.create_task(run_periodic_sweep(cache, interval=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task

    assert len(cache) == 0
