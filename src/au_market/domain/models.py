"""Domain models for au_market — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class MetalPrice:
    """One append-only price row; per-gram and per-ounce prices in piastres."""

    id: str
    metal_type: str
    buy_price_per_gram: int          # piastres
    sell_price_per_gram: int
    buy_price_per_ounce: int
    sell_price_per_ounce: int
    source: str
    created_at: datetime


@dataclass
class LatestPrices:
    gold: MetalPrice | None = None
    silver: MetalPrice | None = None

    def for_metal(self, metal_type: str) -> MetalPrice | None:
        return self.gold if metal_type == "gold" else self.silver


@dataclass
class PriceSnapshot:
    """Price pair frozen for one buy or sell request; trade procedures reject expired snapshots."""

    id: str
    metal_type: str
    buy_price_gram: int              # copied from buy_price_per_gram
    sell_price_gram: int
    valid_until: datetime
