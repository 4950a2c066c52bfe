"""AccountApplicationService: a user's own deposits, withdrawals, wallet, portfolio and trades.

Writes follow try/commit/except-rollback; cache keys of the affected user
are invalidated only after the commit succeeded. Every query is scoped by
the caller's own user_id.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.au_account.domain.models import (
    AvailableGrams,
    Deposit,
    PortfolioSummary,
    Position,
    TradeResult,
    WalletBalance,
    Withdrawal,
)
from src.au_account.domain.repository import (
    DepositRepositoryProtocol,
    PositionRepositoryProtocol,
    WalletRepositoryProtocol,
    WithdrawalRepositoryProtocol,
)
from src.au_account.infrastructure.persistence import (
    DepositRepository,
    PositionRepository,
    WalletRepository,
    WithdrawalRepository,
)
from src.au_common.enums import PositionStatus
from src.au_common.errors import (
    AppError,
    DepositBelowMinimumError,
    InsufficientBalanceError,
    InsufficientHoldingsError,
    InvalidBuyDurationError,
    ProcedureRejectedError,
)
from src.au_common.money import coerce_piastres, grams_to_mg, value_of_metal
from src.au_common.procedures import PgProcedureGateway, ProcedurePort, first_row
from src.au_common.query_cache import QueryCache, QueryKeys, query_cache
from src.au_market.application.service import (
    BUY_SNAPSHOT_SOURCE,
    SELL_SNAPSHOT_SOURCE,
    MarketApplicationService,
)

logger = logging.getLogger(__name__)


def portfolio_from_row(row: dict | None) -> PortfolioSummary:
    """Map a get_user_portfolio[_admin] row; money in piastres, gold in grams."""
    if not row:
        return PortfolioSummary()
    return PortfolioSummary(
        total_invested=coerce_piastres(row.get("total_invested")),
        total_gold_mg=grams_to_mg(row.get("total_gold_grams")),
        pending_deposits=coerce_piastres(row.get("pending_deposits")),
        approved_deposits=coerce_piastres(row.get("approved_deposits")),
        pending_withdrawals=coerce_piastres(row.get("pending_withdrawals")),
        completed_withdrawals=coerce_piastres(row.get("completed_withdrawals")),
    )


def trade_result_from_row(procedure: str, row: dict | None) -> TradeResult:
    """buy_asset and sell_asset report refusals in-band; no row counts as a refusal."""
    row = row or {}
    if not row.get("success"):
        raise ProcedureRejectedError(procedure, row.get("message") or "trade failed")
    net_amount = row.get("net_amount")
    return TradeResult(
        success=True,
        message=row.get("message"),
        net_amount=coerce_piastres(net_amount) if net_amount is not None else None,
        extra={k: v for k, v in row.items() if k not in ("success", "message", "net_amount")},
    )


class AccountApplicationService:
    def __init__(
        self,
        deposits: DepositRepositoryProtocol | None = None,
        withdrawals: WithdrawalRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        wallets: WalletRepositoryProtocol | None = None,
        procedures: ProcedurePort | None = None,
        market: MarketApplicationService | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self._deposits: DepositRepositoryProtocol = deposits or DepositRepository()
        self._withdrawals: WithdrawalRepositoryProtocol = withdrawals or WithdrawalRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()
        self._procedures: ProcedurePort = procedures or PgProcedureGateway()
        self._market = market or MarketApplicationService()
        self._cache = cache or query_cache

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    async def create_deposit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        payment_method: str,
        payment_proof_url: str | None,
    ) -> Deposit:
        if amount < settings.MIN_DEPOSIT_PIASTRES:
            raise DepositBelowMinimumError(amount, settings.MIN_DEPOSIT_PIASTRES)
        try:
            deposit = await self._deposits.create(
                db, user_id, amount, payment_method, payment_proof_url, str(uuid.uuid4())
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._invalidate_user(user_id)
        await self._cache.invalidate(QueryKeys.ADMIN_DEPOSITS)
        logger.info("Deposit %s requested by %s: %d piastres", deposit.id, user_id, amount)
        return deposit

    async def list_deposits(self, db: AsyncSession, user_id: str) -> list[Deposit]:
        return await self._cache.get_or_load(
            QueryKeys.deposits(user_id),
            lambda: self._deposits.list_by_user(db, user_id),
            settings.LIST_CACHE_SECONDS,
        )

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    async def get_available_grams(self, db: AsyncSession, user_id: str) -> AvailableGrams:
        rows = await self._procedures.call(db, "get_available_grams", {"p_user_id": user_id})
        row = first_row(rows) or {}
        return AvailableGrams(
            gold_mg=grams_to_mg(row.get("available_gold_grams")),
            silver_mg=grams_to_mg(row.get("available_silver_grams")),
        )

    async def create_withdrawal(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        grams_mg: int,
        notes: str | None,
    ) -> Withdrawal:
        try:
            available = (await self.get_available_grams(db, user_id)).for_metal(metal_type)
            if grams_mg > available:
                raise InsufficientHoldingsError(metal_type, grams_mg, available)

            price = await self._market.require_price(db, metal_type)
            amount = value_of_metal(grams_mg, price.sell_price_per_gram)
            withdrawal = await self._withdrawals.create(
                db, user_id, metal_type, grams_mg, amount, notes
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._invalidate_user(user_id)
        await self._cache.invalidate(QueryKeys.ADMIN_WITHDRAWALS)
        logger.info(
            "Withdrawal %s requested by %s: %d mg %s", withdrawal.id, user_id, grams_mg, metal_type
        )
        return withdrawal

    async def list_withdrawals(self, db: AsyncSession, user_id: str) -> list[Withdrawal]:
        return await self._cache.get_or_load(
            QueryKeys.withdrawals(user_id),
            lambda: self._withdrawals.list_by_user(db, user_id),
            settings.LIST_CACHE_SECONDS,
        )

    # ------------------------------------------------------------------
    # Portfolio, wallet and positions
    # ------------------------------------------------------------------

    async def get_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioSummary:
        """Cached summary; a failing procedure yields an all-zero summary, not an error."""

        async def load() -> PortfolioSummary:
            rows = await self._procedures.call(db, "get_user_portfolio", {"p_user_id": user_id})
            return portfolio_from_row(first_row(rows))

        try:
            return await self._cache.get_or_load(
                QueryKeys.portfolio_summary(user_id), load, settings.PORTFOLIO_CACHE_SECONDS
            )
        except AppError as e:
            logger.error("Portfolio summary unavailable for %s: %s", user_id, e.message)
            await db.rollback()
            return PortfolioSummary()

    async def get_wallet_balance(self, db: AsyncSession, user_id: str) -> WalletBalance:
        # not cached: buys are checked against it
        return await self._wallets.get_balance(db, user_id)

    async def list_positions(
        self, db: AsyncSession, user_id: str, metal_type: str | None = None
    ) -> list[Position]:
        """Active positions, i.e. the ones that can be sold, newest first."""
        return await self._cache.get_or_load(
            (*QueryKeys.positions(user_id), metal_type or "all"),
            lambda: self._positions.list_by_user(
                db, user_id, metal_type, PositionStatus.ACTIVE.value
            ),
            settings.LIST_CACHE_SECONDS,
        )

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    async def buy_position(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        amount: int,
        duration_days: int,
    ) -> tuple[str, TradeResult]:
        """Spend `amount` piastres of wallet balance on metal at a frozen price.

        The position is created pending; an admin approves it later. Returns
        (snapshot_id, result).
        """
        if not settings.BUY_MIN_DURATION_DAYS <= duration_days <= settings.BUY_MAX_DURATION_DAYS:
            raise InvalidBuyDurationError(
                duration_days, settings.BUY_MIN_DURATION_DAYS, settings.BUY_MAX_DURATION_DAYS
            )
        try:
            wallet = await self._wallets.get_balance(db, user_id)
            if amount > wallet.available:
                raise InsufficientBalanceError(amount, wallet.available)

            snapshot = await self._market.create_price_snapshot(
                db, user_id, metal_type, BUY_SNAPSHOT_SOURCE
            )
            rows = await self._procedures.call(
                db,
                "buy_asset",
                {
                    "p_user_id": user_id,
                    "p_snapshot_id": snapshot.id,
                    "p_amount": amount,
                    "p_duration_days": duration_days,
                    "p_idempotency_key": str(uuid.uuid4()),
                    "p_metal_type": metal_type,
                },
            )
            result = trade_result_from_row("buy_asset", first_row(rows))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._invalidate_user(user_id)
        await self._cache.invalidate(QueryKeys.PENDING_BUYS)
        logger.info("Buy of %s for %d piastres submitted by %s", metal_type, amount, user_id)
        return snapshot.id, result

    async def sell_position(
        self,
        db: AsyncSession,
        user_id: str,
        position_id: str,
        metal_type: str,
    ) -> tuple[str, TradeResult]:
        """Submit a sell request at a frozen price. Returns (snapshot_id, result)."""
        try:
            snapshot = await self._market.create_price_snapshot(
                db, user_id, metal_type, SELL_SNAPSHOT_SOURCE
            )
            rows = await self._procedures.call(
                db,
                "sell_asset",
                {
                    "p_user_id": user_id,
                    "p_position_id": position_id,
                    "p_snapshot_id": snapshot.id,
                    "p_idempotency_key": str(uuid.uuid4()),
                },
            )
            result = trade_result_from_row("sell_asset", first_row(rows))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._invalidate_user(user_id)
        logger.info("Sell of position %s submitted by %s", position_id, user_id)
        return snapshot.id, result

    async def _invalidate_user(self, user_id: str) -> None:
        await self._cache.invalidate(QueryKeys.portfolio_summary(user_id))
        await self._cache.invalidate(QueryKeys.deposits(user_id))
        await self._cache.invalidate(QueryKeys.withdrawals(user_id))
        await self._cache.invalidate(QueryKeys.positions(user_id))
