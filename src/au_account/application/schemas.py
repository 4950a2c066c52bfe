"""Pydantic schemas for au_account API.

Money fields are int piastres with a `_display` twin; weights are int mg.
"""

from pydantic import BaseModel, Field

from config.settings import settings
from src.au_account.domain.models import (
    Deposit,
    PortfolioSummary,
    Position,
    TradeResult,
    WalletBalance,
    Withdrawal,
)
from src.au_common.enums import MetalType
from src.au_common.money import mg_to_display, piastres_to_display

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in piastres")
    payment_method: str = Field(..., min_length=1, max_length=64)
    payment_proof_url: str | None = Field(None, max_length=1024)


class WithdrawalRequest(BaseModel):
    metal_type: MetalType
    grams_mg: int = Field(..., gt=0, description="Weight in milligrams")
    withdrawal_method: str | None = Field(None, max_length=64)
    notes: str | None = Field(None, max_length=1000)


class BuyRequest(BaseModel):
    metal_type: MetalType = MetalType.GOLD
    amount: int = Field(..., gt=0, description="Wallet money to spend, in piastres")
    duration_days: int = Field(
        settings.BUY_MAX_DURATION_DAYS,
        ge=settings.BUY_MIN_DURATION_DAYS,
        le=settings.BUY_MAX_DURATION_DAYS,
    )


class SellRequest(BaseModel):
    metal_type: MetalType = MetalType.GOLD


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class DepositOut(BaseModel):
    id: str
    amount: int
    amount_display: str
    status: str
    payment_method: str | None
    provider: str | None
    payment_proof_url: str | None
    notes: str | None
    created_at: str
    approved_at: str | None
    user_name: str | None = None

    @classmethod
    def from_domain(cls, d: Deposit) -> "DepositOut":
        return cls(
            id=d.id,
            amount=d.amount,
            amount_display=piastres_to_display(d.amount),
            status=d.status,
            payment_method=d.payment_method,
            provider=d.provider,
            payment_proof_url=d.payment_proof_url,
            notes=d.notes,
            created_at=d.created_at.isoformat(),
            approved_at=d.approved_at.isoformat() if d.approved_at else None,
            user_name=d.user_name,
        )


class WithdrawalOut(BaseModel):
    id: str
    metal_type: str
    grams_mg: int
    grams_display: str
    amount: int
    amount_display: str
    net_amount: int | None
    fee_percentage_bps: int | None
    fee_amount: int | None
    status: str
    notes: str | None
    proof_image_url: str | None
    created_at: str
    processed_at: str | None
    user_name: str | None = None
    user_phone: str | None = None

    @classmethod
    def from_domain(cls, w: Withdrawal) -> "WithdrawalOut":
        return cls(
            id=w.id,
            metal_type=w.withdrawal_type,
            grams_mg=w.grams_mg,
            grams_display=mg_to_display(w.grams_mg),
            amount=w.amount,
            amount_display=piastres_to_display(w.amount),
            net_amount=w.net_amount,
            fee_percentage_bps=w.fee_percentage_bps,
            fee_amount=w.fee_amount,
            status=w.status,
            notes=w.notes,
            proof_image_url=w.proof_image_url,
            created_at=w.created_at.isoformat(),
            processed_at=w.processed_at.isoformat() if w.processed_at else None,
            user_name=w.user_name,
            user_phone=w.user_phone,
        )


class PortfolioResponse(BaseModel):
    total_invested: int
    total_invested_display: str
    total_gold_mg: int
    total_gold_display: str
    pending_deposits: int
    approved_deposits: int
    pending_withdrawals: int
    completed_withdrawals: int

    @classmethod
    def from_domain(cls, p: PortfolioSummary) -> "PortfolioResponse":
        return cls(
            total_invested=p.total_invested,
            total_invested_display=piastres_to_display(p.total_invested),
            total_gold_mg=p.total_gold_mg,
            total_gold_display=mg_to_display(p.total_gold_mg),
            pending_deposits=p.pending_deposits,
            approved_deposits=p.approved_deposits,
            pending_withdrawals=p.pending_withdrawals,
            completed_withdrawals=p.completed_withdrawals,
        )


class SellResponse(BaseModel):
    position_id: str
    snapshot_id: str
    message: str | None
    net_amount: int | None
    net_amount_display: str | None

    @classmethod
    def from_result(cls, position_id: str, snapshot_id: str, r: TradeResult) -> "SellResponse":
        return cls(
            position_id=position_id,
            snapshot_id=snapshot_id,
            message=r.message,
            net_amount=r.net_amount,
            net_amount_display=(
                piastres_to_display(r.net_amount) if r.net_amount is not None else None
            ),
        )


class BuyResponse(BaseModel):
    snapshot_id: str
    metal_type: str
    amount: int
    amount_display: str
    message: str | None

    @classmethod
    def from_result(
        cls, metal_type: str, amount: int, snapshot_id: str, r: TradeResult
    ) -> "BuyResponse":
        return cls(
            snapshot_id=snapshot_id,
            metal_type=metal_type,
            amount=amount,
            amount_display=piastres_to_display(amount),
            message=r.message,
        )


class WalletOut(BaseModel):
    available: int
    available_display: str
    locked: int
    total: int
    total_display: str

    @classmethod
    def from_domain(cls, w: WalletBalance) -> "WalletOut":
        return cls(
            available=w.available,
            available_display=piastres_to_display(w.available),
            locked=w.locked,
            total=w.total,
            total_display=piastres_to_display(w.total),
        )


class PositionOut(BaseModel):
    id: str
    metal_type: str
    grams_mg: int
    grams_display: str
    buy_amount: int
    buy_amount_display: str
    buy_price_ask: int
    duration_days: int | None
    status: str
    lock_until: str | None
    created_at: str
    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None

    @classmethod
    def from_domain(cls, p: Position, with_user: bool = False) -> "PositionOut":
        return cls(
            id=p.id,
            metal_type=p.metal_type,
            grams_mg=p.grams_mg,
            grams_display=mg_to_display(p.grams_mg),
            buy_amount=p.buy_amount,
            buy_amount_display=piastres_to_display(p.buy_amount),
            buy_price_ask=p.buy_price_ask,
            duration_days=p.duration_days,
            status=p.status,
            lock_until=p.lock_until.isoformat() if p.lock_until else None,
            created_at=p.created_at.isoformat(),
            user_id=p.user_id if with_user else None,
            user_name=p.user_name,
            user_email=p.user_email,
        )
