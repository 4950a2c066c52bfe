"""Unit tests for QueryCache: staleness, prefix invalidation, listeners, fan-out."""

import json
from unittest.mock import AsyncMock

from src.au_common.query_cache import MISS, QueryCache, QueryKeys


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestGetSet:
    def test_miss_then_hit(self) -> None:
        cache = QueryCache()
        assert cache.get(QueryKeys.METAL_PRICES) is MISS
        cache.set(QueryKeys.METAL_PRICES, {"gold": 1}, stale_seconds=120)
        entry = cache.get(QueryKeys.METAL_PRICES)
        assert entry is not MISS
        assert entry.value == {"gold": 1}

    def test_entry_older_than_stale_time_is_a_miss(self) -> None:
        clock = FakeClock()
        cache = QueryCache(clock=clock)
        cache.set(QueryKeys.METAL_PRICES, "v", stale_seconds=120)
        clock.now += 119
        assert cache.get(QueryKeys.METAL_PRICES) is not MISS
        clock.now += 1
        assert cache.get(QueryKeys.METAL_PRICES) is MISS

    def test_stale_entry_is_evicted_on_read(self) -> None:
        clock = FakeClock()
        cache = QueryCache(clock=clock)
        cache.set(QueryKeys.portfolio_summary("u1"), 1, stale_seconds=60)
        cache.set(QueryKeys.portfolio_summary("u2"), 2, stale_seconds=600)
        clock.now += 60

        assert cache.get(QueryKeys.portfolio_summary("u1")) is MISS
        assert len(cache) == 1
        assert cache.get(QueryKeys.portfolio_summary("u2")).value == 2


class TestInvalidate:
    async def test_prefix_clears_every_user(self) -> None:
        cache = QueryCache()
        cache.set(QueryKeys.deposits("u1"), [], 30)
        cache.set(QueryKeys.deposits("u2"), [], 30)
        cache.set(QueryKeys.withdrawals("u1"), [], 30)

        dropped = await cache.invalidate(("deposits",))

        assert dropped == 2
        assert cache.get(QueryKeys.deposits("u1")) is MISS
        assert cache.get(QueryKeys.deposits("u2")) is MISS
        assert cache.get(QueryKeys.withdrawals("u1")) is not MISS

    async def test_exact_key_leaves_siblings(self) -> None:
        cache = QueryCache()
        cache.set(QueryKeys.portfolio_summary("u1"), 1, 60)
        cache.set(QueryKeys.portfolio_summary("u2"), 2, 60)
        await cache.invalidate(QueryKeys.portfolio_summary("u1"))
        assert cache.get(QueryKeys.portfolio_summary("u2")) is not MISS

    async def test_publishes_to_other_workers(self) -> None:
        publisher = AsyncMock()
        cache = QueryCache(publisher=publisher)
        await cache.invalidate(QueryKeys.METAL_PRICES)
        publisher.publish.assert_awaited_once_with(("metal-prices",))

    def test_remote_message_drops_local_entries(self) -> None:
        cache = QueryCache()
        cache.set(QueryKeys.deposits("u1"), [], 30)
        cache.handle_remote_message(json.dumps(["deposits"]))
        assert cache.get(QueryKeys.deposits("u1")) is MISS

    def test_malformed_remote_message_is_ignored(self) -> None:
        cache = QueryCache()
        cache.set(QueryKeys.METAL_PRICES, 1, 30)
        cache.handle_remote_message("{not json")
        assert cache.get(QueryKeys.METAL_PRICES) is not MISS


class TestGetOrLoad:
    async def test_loads_once_while_fresh(self) -> None:
        cache = QueryCache()
        loader = AsyncMock(return_value=[1, 2])
        assert await cache.get_or_load(("k",), loader, 60) == [1, 2]
        assert await cache.get_or_load(("k",), loader, 60) == [1, 2]
        loader.assert_awaited_once()

    async def test_reloads_after_invalidate(self) -> None:
        cache = QueryCache()
        loader = AsyncMock(side_effect=["old", "new"])
        await cache.get_or_load(("k",), loader, 60)
        await cache.invalidate(("k",))
        assert await cache.get_or_load(("k",), loader, 60) == "new"


class TestSubscribe:
    async def test_listener_sees_set_and_invalidate(self) -> None:
        cache = QueryCache()
        events: list[tuple] = []
        cache.subscribe(("deposits",), lambda key, entry: events.append((key, entry)))

        cache.set(QueryKeys.deposits("u1"), ["d"], 30)
        await cache.invalidate(("deposits",))

        assert events[0][0] == ("deposits", "u1")
        assert events[0][1].value == ["d"]
        assert events[1] == (("deposits",), None)

    def test_unrelated_keys_do_not_notify(self) -> None:
        cache = QueryCache()
        events: list = []
        cache.subscribe(("deposits",), lambda key, entry: events.append(key))
        cache.set(QueryKeys.METAL_PRICES, 1, 30)
        assert events == []

    def test_unsubscribe_stops_notifications(self) -> None:
        cache = QueryCache()
        events: list = []
        unsubscribe = cache.subscribe(("k",), lambda key, entry: events.append(key))
        unsubscribe()
        cache.set(("k",), 1, 30)
        assert events == []

    def test_failing_listener_does_not_break_set(self) -> None:
        cache = QueryCache()

        def boom(key, entry) -> None:  # type: ignore[no-untyped-def]
            raise RuntimeError("listener bug")

        cache.subscribe(("k",), boom)
        cache.set(("k",), 1, 30)
        assert cache.get(("k",)) is not MISS
