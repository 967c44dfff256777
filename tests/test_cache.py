import pytest

from lavatools.youtube.cache import HOUR, MINUTE, SolverCaches, TTLCache


def test_set_and_get(clock):
    cache = TTLCache(3, 60, clock=clock)
    cache.set("a", 1)
    assert cache.get("a") == 1
    assert cache.get("missing") is None
    assert "a" in cache and len(cache) == 1


def test_entries_expire(clock):
    cache = TTLCache(3, 60, clock=clock)
    cache.set("a", 1)
    clock.advance(59)
    assert cache.get("a") == 1
    clock.advance(1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_capacity_evicts_least_recently_used(clock):
    cache = TTLCache(3, 60, clock=clock)
    for key in "abc":
        cache.set(key, key)
    cache.get("a")
    cache.set("d", "d")
    assert "b" not in cache
    assert all(k in cache for k in "acd")


def test_peek_does_not_touch_recency(clock):
    cache = TTLCache(2, 60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.peek("a")
    cache.set("c", 3)
    assert "a" not in cache


def test_delete_and_clear(clock):
    cache = TTLCache(2, 60, clock=clock)
    cache.set("a", 1)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        TTLCache(0, 60)


def test_solver_tier_evicts_lru_at_capacity(clock):
    caches = SolverCaches.create(clock=clock)
    urls = [f"https://example.com/{i}/base.js" for i in range(caches.solvers.capacity + 1)]
    for url in urls:
        caches.solvers.set(url, object())
    assert urls[0] not in caches.solvers
    assert len(caches.solvers) == caches.solvers.capacity


def test_solver_tier_read_refreshes_ttl(clock):
    caches = SolverCaches.create(clock=clock)
    caches.solvers.set("u", "pair")
    clock.advance(23 * HOUR)
    assert caches.solvers.get("u") == "pair"
    clock.advance(23 * HOUR)
    assert caches.solvers.get("u") == "pair"
    clock.advance(24 * HOUR)
    assert caches.solvers.get("u") is None


@pytest.mark.parametrize("tier", ["player", "preprocessed"])
def test_lower_tiers_do_not_refresh_on_read(clock, tier):
    cache = getattr(SolverCaches.create(clock=clock), tier)
    cache.set("u", "text")
    clock.advance(59 * MINUTE)
    assert cache.get("u") == "text"
    clock.advance(2 * MINUTE)
    assert cache.get("u") is None


def test_tiers_expire_independently(clock):
    caches = SolverCaches.create(clock=clock)
    caches.player.set("u", "raw")
    caches.solvers.set("u", "pair")
    clock.advance(2 * HOUR)
    assert caches.player.get("u") is None
    assert caches.solvers.get("u") == "pair"


def test_stats_and_clear(clock):
    caches = SolverCaches.create(clock=clock)
    caches.player.set("u", "raw")
    stats = caches.stats()
    assert stats["player"] == {"size": 1, "max": 300}
    assert stats["solvers"]["max"] == 150
    assert stats["in_flight"]["max"] == 500
    caches.clear()
    assert caches.stats()["player"]["size"] == 0
