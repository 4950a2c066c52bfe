"""Repository Protocol for au_market."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_market.domain.models import LatestPrices, MetalPrice, PriceSnapshot


class MetalPriceRepositoryProtocol(Protocol):
    async def get_latest(self, db: AsyncSession) -> LatestPrices: ...

    async def insert_price(
        self,
        db: AsyncSession,
        metal_type: str,
        buy_per_gram: int,
        sell_per_gram: int,
        buy_per_ounce: int,
        sell_per_ounce: int,
        source: str,
    ) -> MetalPrice: ...

    async def create_snapshot(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        buy_price_gram: int,
        sell_price_gram: int,
        valid_until: datetime,
        source: str,
    ) -> PriceSnapshot: ...
