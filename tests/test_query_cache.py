"""Tests for the TTL query cache and its in-flight de-duplication."""

import threading

import pytest

from commission_engine.cache import QueryCache, make_key
from conftest import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> QueryCache:
    return QueryCache(default_ttl=60.0, clock=clock)


def test_key_is_table_plus_sorted_options() -> None:
    assert make_key("proposals", {"order": "created_at", "desc": True}) == make_key(
        "proposals", {"desc": True, "order": "created_at"}
    )
    assert make_key("proposals").startswith("proposals-")


def test_entries_expire_after_ttl(cache: QueryCache, clock: FakeClock) -> None:
    cache.set("k", [1, 2])
    clock.advance(59.9)
    assert cache.get("k") == [1, 2]
    clock.advance(0.2)
    assert cache.get("k") is None


def test_custom_ttl(cache: QueryCache, clock: FakeClock) -> None:
    cache.set("k", "v", ttl=5)
    clock.advance(5)
    assert cache.get("k") is None


def test_invalidate_by_pattern_and_all(cache: QueryCache) -> None:
    cache.set(make_key("proposals"), 1)
    cache.set(make_key("proposals", {"eq": {"status": "Fechado"}}), 2)
    cache.set(make_key("employees"), 3)

    assert cache.invalidate("proposals-") == 2
    assert cache.get(make_key("employees")) == 3
    assert cache.invalidate() == 1
    assert cache.get(make_key("employees")) is None


def test_get_or_load_caches_the_result(cache: QueryCache) -> None:
    calls: list[int] = []

    def loader() -> list[str]:
        calls.append(1)
        return ["row"]

    assert cache.get_or_load("k", loader) == ["row"]
    assert cache.get_or_load("k", loader) == ["row"]
    assert len(calls) == 1


def test_failed_load_is_not_cached(cache: QueryCache) -> None:
    def broken() -> list[str]:
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        cache.get_or_load("k", broken)
    assert cache.get_or_load("k", lambda: ["ok"]) == ["ok"]


def test_concurrent_loads_share_one_request(cache: QueryCache) -> None:
    started = threading.Event()
    release = threading.Event()
    calls: list[int] = []
    results: list[object] = []

    def slow_loader() -> list[str]:
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return ["row"]

    first = threading.Thread(target=lambda: results.append(cache.get_or_load("k", slow_loader)))
    first.start()
    assert started.wait(timeout=5)

    second = threading.Thread(target=lambda: results.append(cache.get_or_load("k", slow_loader)))
    second.start()
    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert len(calls) == 1
    assert results == [["row"], ["row"]]
