"""MarketApplicationService — metal price reads, admin price updates, trade snapshots.

Reads go through the query cache under QueryKeys.METAL_PRICES; an update
invalidates that key after commit so every worker reloads.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.au_admin.domain.repository import ActivityLogRepositoryProtocol
from src.au_admin.infrastructure.persistence import ActivityLogRepository
from src.au_common.datetime_utils import expires_in
from src.au_common.enums import ActivityType, MetalType
from src.au_common.errors import InvalidPriceError, PricesUnavailableError
from src.au_common.money import per_gram_to_per_ounce, piastres_to_display
from src.au_common.query_cache import QueryCache, QueryKeys, query_cache
from src.au_market.domain.models import LatestPrices, MetalPrice, PriceSnapshot
from src.au_market.domain.repository import MetalPriceRepositoryProtocol
from src.au_market.infrastructure.persistence import MetalPriceRepository

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "manual"
SELL_SNAPSHOT_SOURCE = "user_sell_action"
BUY_SNAPSHOT_SOURCE = "user_buy_action"


def validate_price_pair(metal_type: str, buy: int, sell: int) -> None:
    if buy <= 0 or sell <= 0:
        raise InvalidPriceError(f"{metal_type} prices must be positive")
    if sell >= buy:
        raise InvalidPriceError(f"{metal_type} sell price must be below buy price")


class MarketApplicationService:
    def __init__(
        self,
        repo: MetalPriceRepositoryProtocol | None = None,
        activity: ActivityLogRepositoryProtocol | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self._repo: MetalPriceRepositoryProtocol = repo or MetalPriceRepository()
        self._activity: ActivityLogRepositoryProtocol = activity or ActivityLogRepository()
        self._cache = cache or query_cache

    async def get_latest_prices(self, db: AsyncSession) -> LatestPrices:
        return await self._cache.get_or_load(
            QueryKeys.METAL_PRICES,
            lambda: self._repo.get_latest(db),
            settings.PRICE_CACHE_SECONDS,
        )

    async def require_price(self, db: AsyncSession, metal_type: str) -> MetalPrice:
        price = (await self.get_latest_prices(db)).for_metal(metal_type)
        if price is None:
            raise PricesUnavailableError(metal_type)
        return price

    async def update_prices(
        self,
        db: AsyncSession,
        admin_id: str,
        gold_buy: int,
        gold_sell: int,
        silver_buy: int,
        silver_sell: int,
    ) -> LatestPrices:
        validate_price_pair(MetalType.GOLD.value, gold_buy, gold_sell)
        validate_price_pair(MetalType.SILVER.value, silver_buy, silver_sell)

        try:
            gold = await self._insert(db, MetalType.GOLD.value, gold_buy, gold_sell)
            silver = await self._insert(db, MetalType.SILVER.value, silver_buy, silver_sell)
            await self._activity.record(
                db,
                admin_id,
                ActivityType.PRICES_UPDATED.value,
                "metal_prices",
                None,
                f"Gold {piastres_to_display(gold_buy)} / {piastres_to_display(gold_sell)}, "
                f"silver {piastres_to_display(silver_buy)} / {piastres_to_display(silver_sell)}",
                {
                    "gold_buy": gold_buy,
                    "gold_sell": gold_sell,
                    "silver_buy": silver_buy,
                    "silver_sell": silver_sell,
                },
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._cache.invalidate(QueryKeys.METAL_PRICES)
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
        logger.info("Prices updated by admin %s", admin_id)
        return LatestPrices(gold=gold, silver=silver)

    async def _insert(self, db: AsyncSession, metal_type: str, buy: int, sell: int) -> MetalPrice:
        return await self._repo.insert_price(
            db,
            metal_type,
            buy,
            sell,
            per_gram_to_per_ounce(buy),
            per_gram_to_per_ounce(sell),
            MANUAL_SOURCE,
        )

    async def create_price_snapshot(
        self, db: AsyncSession, user_id: str, metal_type: str, source: str
    ) -> PriceSnapshot:
        """Freeze the latest price pair for one buy or sell request. Caller commits.

        Both columns are copied as published; the trade procedure picks the
        side it settles at.
        """
        price = await self.require_price(db, metal_type)
        return await self._repo.create_snapshot(
            db,
            user_id,
            metal_type,
            buy_price_gram=price.buy_price_per_gram,
            sell_price_gram=price.sell_price_per_gram,
            valid_until=expires_in(settings.PRICE_SNAPSHOT_SECONDS),
            source=source,
        )
