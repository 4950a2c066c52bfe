"""Pydantic schemas for au_market API."""

from pydantic import BaseModel, Field

from src.au_common.money import piastres_to_display
from src.au_market.domain.models import LatestPrices, MetalPrice


class UpdatePricesRequest(BaseModel):
    """Per-gram prices in piastres. sell (what customers receive) must be below buy."""

    gold_buy: int = Field(..., gt=0)
    gold_sell: int = Field(..., gt=0)
    silver_buy: int = Field(..., gt=0)
    silver_sell: int = Field(..., gt=0)


class PriceOut(BaseModel):
    metal_type: str
    buy_price_per_gram: int
    buy_price_per_gram_display: str
    sell_price_per_gram: int
    sell_price_per_gram_display: str
    buy_price_per_ounce: int
    sell_price_per_ounce: int
    spread: int
    source: str
    updated_at: str

    @classmethod
    def from_domain(cls, p: MetalPrice) -> "PriceOut":
        return cls(
            metal_type=p.metal_type,
            buy_price_per_gram=p.buy_price_per_gram,
            buy_price_per_gram_display=piastres_to_display(p.buy_price_per_gram),
            sell_price_per_gram=p.sell_price_per_gram,
            sell_price_per_gram_display=piastres_to_display(p.sell_price_per_gram),
            buy_price_per_ounce=p.buy_price_per_ounce,
            sell_price_per_ounce=p.sell_price_per_ounce,
            spread=p.buy_price_per_gram - p.sell_price_per_gram,
            source=p.source,
            updated_at=p.created_at.isoformat(),
        )


class LatestPricesResponse(BaseModel):
    gold: PriceOut | None
    silver: PriceOut | None

    @classmethod
    def from_domain(cls, latest: LatestPrices) -> "LatestPricesResponse":
        return cls(
            gold=PriceOut.from_domain(latest.gold) if latest.gold else None,
            silver=PriceOut.from_domain(latest.silver) if latest.silver else None,
        )
