"""MetalPriceRepository: raw SQL over metal_prices and gold_price_snapshots.

Prices are append-only; "current" is the newest row per metal_type,
picked with DISTINCT ON so one round-trip returns both metals.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.errors import InternalError
from src.au_market.domain.models import LatestPrices, MetalPrice, PriceSnapshot

_LATEST_PRICES_SQL = text("""
    SELECT DISTINCT ON (metal_type)
        id, metal_type, buy_price_per_gram, sell_price_per_gram,
        buy_price_per_ounce, sell_price_per_ounce, source, created_at
    FROM metal_prices
    WHERE metal_type IN ('gold', 'silver')
    ORDER BY metal_type, created_at DESC
""")

_INSERT_PRICE_SQL = text("""
    INSERT INTO metal_prices
        (metal_type, buy_price_per_gram, sell_price_per_gram,
         buy_price_per_ounce, sell_price_per_ounce, source)
    VALUES
        (:metal_type, :buy_per_gram, :sell_per_gram,
         :buy_per_ounce, :sell_per_ounce, :source)
    RETURNING id, metal_type, buy_price_per_gram, sell_price_per_gram,
              buy_price_per_ounce, sell_price_per_ounce, source, created_at
""")

_INSERT_SNAPSHOT_SQL = text("""
    INSERT INTO gold_price_snapshots
        (user_id, metal_type, buy_price_gram, sell_price_gram, currency,
         source, valid_until)
    VALUES
        (:user_id, :metal_type, :buy_price_gram, :sell_price_gram, 'EGP',
         :source, :valid_until)
    RETURNING id, metal_type, buy_price_gram, sell_price_gram, valid_until
""")


def _row_to_price(row: object) -> MetalPrice:
    return MetalPrice(
        id=str(row.id),  # type: ignore[attr-defined]
        metal_type=row.metal_type,  # type: ignore[attr-defined]
        buy_price_per_gram=row.buy_price_per_gram,  # type: ignore[attr-defined]
        sell_price_per_gram=row.sell_price_per_gram,  # type: ignore[attr-defined]
        buy_price_per_ounce=row.buy_price_per_ounce,  # type: ignore[attr-defined]
        sell_price_per_ounce=row.sell_price_per_ounce,  # type: ignore[attr-defined]
        source=row.source,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class MetalPriceRepository:
    async def get_latest(self, db: AsyncSession) -> LatestPrices:
        result = await db.execute(_LATEST_PRICES_SQL)
        latest = LatestPrices()
        for row in result.fetchall():
            price = _row_to_price(row)
            if price.metal_type == "gold":
                latest.gold = price
            else:
                latest.silver = price
        return latest

    async def insert_price(
        self,
        db: AsyncSession,
        metal_type: str,
        buy_per_gram: int,
        sell_per_gram: int,
        buy_per_ounce: int,
        sell_per_ounce: int,
        source: str,
    ) -> MetalPrice:
        result = await db.execute(
            _INSERT_PRICE_SQL,
            {
                "metal_type": metal_type,
                "buy_per_gram": buy_per_gram,
                "sell_per_gram": sell_per_gram,
                "buy_per_ounce": buy_per_ounce,
                "sell_per_ounce": sell_per_ounce,
                "source": source,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Price insert returned no rows")
        return _row_to_price(row)

    async def create_snapshot(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        buy_price_gram: int,
        sell_price_gram: int,
        valid_until: datetime,
        source: str,
    ) -> PriceSnapshot:
        result = await db.execute(
            _INSERT_SNAPSHOT_SQL,
            {
                "user_id": user_id,
                "metal_type": metal_type,
                "buy_price_gram": buy_price_gram,
                "sell_price_gram": sell_price_gram,
                "source": source,
                "valid_until": valid_until,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Snapshot insert returned no rows")
        return PriceSnapshot(
            id=str(row.id),
            metal_type=row.metal_type,
            buy_price_gram=row.buy_price_gram,
            sell_price_gram=row.sell_price_gram,
            valid_until=row.valid_until,
        )
