"""Domain models for au_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Deposit:
    id: str
    user_id: str
    amount: int                      # piastres
    status: str                      # DepositStatus
    created_at: datetime
    payment_method: str | None = None
    provider: str | None = None
    payment_proof_url: str | None = None
    notes: str | None = None
    approved_at: datetime | None = None
    user_name: str | None = None     # filled by admin listings only


@dataclass
class Withdrawal:
    id: str
    user_id: str
    amount: int                      # piastres, gross
    status: str                      # WithdrawalStatus
    created_at: datetime
    withdrawal_type: str = "gold"    # MetalType
    grams_mg: int = 0
    net_amount: int | None = None    # piastres after fee, set by the approval procedure
    fee_percentage_bps: int | None = None
    fee_amount: int | None = None
    notes: str | None = None
    proof_image_url: str | None = None
    processed_at: datetime | None = None
    user_name: str | None = None
    user_phone: str | None = None


@dataclass
class PortfolioSummary:
    total_invested: int = 0          # piastres
    total_gold_mg: int = 0
    pending_deposits: int = 0
    approved_deposits: int = 0
    pending_withdrawals: int = 0
    completed_withdrawals: int = 0


@dataclass
class AvailableGrams:
    gold_mg: int = 0
    silver_mg: int = 0

    def for_metal(self, metal_type: str) -> int:
        return self.gold_mg if metal_type == "gold" else self.silver_mg


@dataclass
class Position:
    """A metal holding bought through buy_asset; pending until an admin approves it."""

    id: str
    user_id: str
    metal_type: str                  # MetalType
    grams_mg: int
    buy_amount: int                  # piastres paid
    buy_price_ask: int               # piastres per gram at purchase
    status: str                      # PositionStatus
    created_at: datetime
    duration_days: int | None = None
    lock_until: datetime | None = None
    user_name: str | None = None     # filled by admin listings only
    user_email: str | None = None


@dataclass
class WalletBalance:
    available: int = 0               # piastres
    locked: int = 0

    @property
    def total(self) -> int:
        return self.available + self.locked


@dataclass
class TradeResult:
    """Row returned by buy_asset / sell_asset once it reported success."""

    success: bool
    message: str | None = None
    net_amount: int | None = None    # piastres expected after review
    extra: dict[str, object] = field(default_factory=dict)
