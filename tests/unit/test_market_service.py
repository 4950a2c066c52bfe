"""Unit tests for MarketApplicationService using mock repositories."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.au_common.errors import InvalidPriceError, PricesUnavailableError
from src.au_common.query_cache import MISS, QueryCache, QueryKeys
from src.au_market.application.service import (
    BUY_SNAPSHOT_SOURCE,
    SELL_SNAPSHOT_SOURCE,
    MarketApplicationService,
    validate_price_pair,
)
from src.au_market.domain.models import LatestPrices, MetalPrice, PriceSnapshot

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _price(metal_type: str, buy: int, sell: int) -> MetalPrice:
    return MetalPrice(
        id="7",
        metal_type=metal_type,
        buy_price_per_gram=buy,
        sell_price_per_gram=sell,
        buy_price_per_ounce=0,
        sell_price_per_ounce=0,
        source="manual",
        created_at=NOW,
    )


def _service(cache: QueryCache) -> tuple[MarketApplicationService, AsyncMock, AsyncMock]:
    repo = AsyncMock()
    activity = AsyncMock()
    return MarketApplicationService(repo=repo, activity=activity, cache=cache), repo, activity


class TestValidatePricePair:
    def test_sell_must_be_below_buy(self) -> None:
        with pytest.raises(InvalidPriceError):
            validate_price_pair("gold", 400_000, 400_000)

    def test_non_positive_rejected(self) -> None:
        with pytest.raises(InvalidPriceError):
            validate_price_pair("silver", 0, -1)

    def test_valid_pair(self) -> None:
        validate_price_pair("gold", 400_000, 380_000)


class TestGetLatestPrices:
    async def test_cached_between_reads(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        repo.get_latest.return_value = LatestPrices(gold=_price("gold", 400_000, 380_000))

        await svc.get_latest_prices(db)
        await svc.get_latest_prices(db)

        repo.get_latest.assert_awaited_once()

    async def test_require_price_without_row_raises(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        repo.get_latest.return_value = LatestPrices(gold=_price("gold", 400_000, 380_000))

        assert (await svc.require_price(db, "gold")).buy_price_per_gram == 400_000
        with pytest.raises(PricesUnavailableError):
            await svc.require_price(db, "silver")


class TestUpdatePrices:
    async def test_inserts_both_metals_with_ounce_prices(self, cache, db) -> None:
        svc, repo, activity = _service(cache)
        repo.insert_price.side_effect = [
            _price("gold", 400_000, 380_000),
            _price("silver", 5_000, 4_500),
        ]

        latest = await svc.update_prices(db, "admin-1", 400_000, 380_000, 5_000, 4_500)

        assert latest.gold.metal_type == "gold"
        assert latest.silver.metal_type == "silver"
        gold_call, silver_call = repo.insert_price.await_args_list
        assert gold_call.args[1:] == ("gold", 400_000, 380_000, 12_441_400, 11_819_330, "manual")
        assert silver_call.args[1:] == ("silver", 5_000, 4_500, 155_518, 139_966, "manual")
        activity.record.assert_awaited_once()
        assert activity.record.await_args.args[2] == "prices_updated"
        db.commit.assert_awaited_once()

    async def test_invalid_pair_writes_nothing(self, cache, db) -> None:
        svc, repo, activity = _service(cache)
        with pytest.raises(InvalidPriceError):
            await svc.update_prices(db, "admin-1", 400_000, 380_000, 4_500, 5_000)
        repo.insert_price.assert_not_awaited()
        activity.record.assert_not_awaited()

    async def test_invalidates_price_cache(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        cache.set(QueryKeys.METAL_PRICES, LatestPrices(), 120)
        cache.set((*QueryKeys.ACTIVITY_LOG, "100"), [], 30)
        repo.insert_price.return_value = _price("gold", 400_000, 380_000)

        await svc.update_prices(db, "admin-1", 400_000, 380_000, 5_000, 4_500)

        assert cache.get(QueryKeys.METAL_PRICES) is MISS
        assert cache.get((*QueryKeys.ACTIVITY_LOG, "100")) is MISS

    async def test_failed_insert_rolls_back_and_keeps_cache(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        cache.set(QueryKeys.METAL_PRICES, LatestPrices(), 120)
        repo.insert_price.side_effect = RuntimeError("constraint")

        with pytest.raises(RuntimeError):
            await svc.update_prices(db, "admin-1", 400_000, 380_000, 5_000, 4_500)

        db.rollback.assert_awaited_once()
        assert cache.get(QueryKeys.METAL_PRICES) is not MISS


class TestPriceSnapshot:
    async def test_sell_snapshot_copies_the_published_pair(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        repo.get_latest.return_value = LatestPrices(gold=_price("gold", 400_000, 380_000))
        repo.create_snapshot.return_value = PriceSnapshot(
            id="snap-1",
            metal_type="gold",
            buy_price_gram=400_000,
            sell_price_gram=380_000,
            valid_until=NOW,
        )

        snapshot = await svc.create_price_snapshot(db, "u1", "gold", SELL_SNAPSHOT_SOURCE)

        assert snapshot.id == "snap-1"
        kwargs = repo.create_snapshot.await_args.kwargs
        assert kwargs["buy_price_gram"] == 400_000
        assert kwargs["sell_price_gram"] == 380_000
        assert kwargs["source"] == "user_sell_action"
        lifetime = kwargs["valid_until"] - datetime.now(UTC)
        assert timedelta(minutes=4) < lifetime <= timedelta(minutes=5)
        db.commit.assert_not_awaited()

    async def test_buy_snapshot_uses_the_same_columns(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        repo.get_latest.return_value = LatestPrices(silver=_price("silver", 5_000, 4_500))

        await svc.create_price_snapshot(db, "u1", "silver", BUY_SNAPSHOT_SOURCE)

        args = repo.create_snapshot.await_args
        assert args.args[1:] == ("u1", "silver")
        assert args.kwargs["buy_price_gram"] == 5_000
        assert args.kwargs["sell_price_gram"] == 4_500
        assert args.kwargs["source"] == "user_buy_action"

    async def test_no_price_means_no_snapshot(self, cache, db) -> None:
        svc, repo, _ = _service(cache)
        repo.get_latest.return_value = LatestPrices(gold=_price("gold", 400_000, 380_000))

        with pytest.raises(PricesUnavailableError):
            await svc.create_price_snapshot(db, "u1", "silver", BUY_SNAPSHOT_SOURCE)
        repo.create_snapshot.assert_not_awaited()
