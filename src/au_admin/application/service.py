"""AdminService: moderation of deposits, withdrawals, buy requests and goldsmiths; fee rules; users.

Every mutation:
  1. changes state with a guarded UPDATE (0 rows → not found or wrong status)
  2. records an activity_log row in the same transaction
  3. commits, then invalidates the cache keys that showed the old state
"""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.au_account.application.service import portfolio_from_row
from src.au_account.domain.models import Deposit, PortfolioSummary, Position, Withdrawal
from src.au_account.domain.repository import (
    DepositRepositoryProtocol,
    PositionRepositoryProtocol,
    WithdrawalRepositoryProtocol,
)
from src.au_account.infrastructure.persistence import (
    DepositRepository,
    PositionRepository,
    WithdrawalRepository,
)
from src.au_admin.domain.models import ActivityEntry, FeeRule, Goldsmith
from src.au_admin.domain.repository import (
    ActivityLogRepositoryProtocol,
    FeeRuleRepositoryProtocol,
    GoldsmithRepositoryProtocol,
)
from src.au_admin.infrastructure.persistence import (
    ActivityLogRepository,
    FeeRuleRepository,
    GoldsmithRepository,
)
from src.au_common.enums import (
    ActivityType,
    DepositStatus,
    GoldsmithStatus,
    PositionStatus,
    WithdrawalStatus,
)
from src.au_common.errors import (
    DepositNotFoundError,
    EmptyProfileUpdateError,
    FeeRuleNotFoundError,
    GoldsmithNotFoundError,
    InvalidFeeRuleError,
    InvalidStatusTransitionError,
    PositionNotFoundError,
    ProcedureRejectedError,
    UserNotFoundError,
    WithdrawalNotFoundError,
)
from src.au_common.money import mg_to_display, piastres_to_display
from src.au_common.procedures import PgProcedureGateway, ProcedurePort, first_row, first_value
from src.au_common.query_cache import QueryCache, QueryKeys, query_cache
from src.au_gateway.user.roles import RoleRepository, RoleRepositoryProtocol, UserWithRoles

logger = logging.getLogger(__name__)

MAX_BPS = 10_000
DEFAULT_ACTIVITY_LIMIT = 100


class AdminService:
    def __init__(
        self,
        deposits: DepositRepositoryProtocol | None = None,
        withdrawals: WithdrawalRepositoryProtocol | None = None,
        positions: PositionRepositoryProtocol | None = None,
        activity: ActivityLogRepositoryProtocol | None = None,
        fee_rules: FeeRuleRepositoryProtocol | None = None,
        goldsmiths: GoldsmithRepositoryProtocol | None = None,
        roles: RoleRepositoryProtocol | None = None,
        procedures: ProcedurePort | None = None,
        cache: QueryCache | None = None,
    ) -> None:
        self._deposits: DepositRepositoryProtocol = deposits or DepositRepository()
        self._withdrawals: WithdrawalRepositoryProtocol = withdrawals or WithdrawalRepository()
        self._positions: PositionRepositoryProtocol = positions or PositionRepository()
        self._activity: ActivityLogRepositoryProtocol = activity or ActivityLogRepository()
        self._fee_rules: FeeRuleRepositoryProtocol = fee_rules or FeeRuleRepository()
        self._goldsmiths: GoldsmithRepositoryProtocol = goldsmiths or GoldsmithRepository()
        self._roles: RoleRepositoryProtocol = roles or RoleRepository()
        self._procedures: ProcedurePort = procedures or PgProcedureGateway()
        self._cache = cache or query_cache

    # ------------------------------------------------------------------
    # Deposits
    # ------------------------------------------------------------------

    async def list_deposits(self, db: AsyncSession) -> list[Deposit]:
        return await self._cache.get_or_load(
            QueryKeys.ADMIN_DEPOSITS,
            lambda: self._deposits.list_all(db),
            settings.LIST_CACHE_SECONDS,
        )

    async def approve_deposit(self, db: AsyncSession, admin_id: str, deposit_id: str) -> Deposit:
        return await self._decide_deposit(
            db, admin_id, deposit_id, DepositStatus.APPROVED, None, ActivityType.DEPOSIT_APPROVED
        )

    async def reject_deposit(
        self, db: AsyncSession, admin_id: str, deposit_id: str, notes: str | None
    ) -> Deposit:
        return await self._decide_deposit(
            db, admin_id, deposit_id, DepositStatus.REJECTED, notes, ActivityType.DEPOSIT_REJECTED
        )

    async def _decide_deposit(
        self,
        db: AsyncSession,
        admin_id: str,
        deposit_id: str,
        target: DepositStatus,
        notes: str | None,
        action: ActivityType,
    ) -> Deposit:
        try:
            deposit = await self._deposits.set_status(db, deposit_id, target.value, notes)
            if deposit is None:
                current = await self._deposits.get(db, deposit_id)
                if current is None:
                    raise DepositNotFoundError(deposit_id)
                raise InvalidStatusTransitionError(
                    "Deposit", deposit_id, current.status, target.value
                )
            await self._activity.record(
                db,
                admin_id,
                action.value,
                "deposit",
                deposit_id,
                f"Deposit of {piastres_to_display(deposit.amount)} {target.value}",
                {"amount": deposit.amount, "notes": notes} if notes else {"amount": deposit.amount},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._after_user_change(deposit.user_id, QueryKeys.ADMIN_DEPOSITS)
        logger.info("Deposit %s %s by admin %s", deposit_id, target.value, admin_id)
        return deposit

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    async def list_withdrawals(self, db: AsyncSession) -> list[Withdrawal]:
        return await self._cache.get_or_load(
            QueryKeys.ADMIN_WITHDRAWALS,
            lambda: self._withdrawals.list_all(db),
            settings.LIST_CACHE_SECONDS,
        )

    async def approve_withdrawal(
        self,
        db: AsyncSession,
        admin_id: str,
        withdrawal_id: str,
        proof_image_url: str | None = None,
    ) -> Withdrawal:
        """Approve via the approval procedure, which computes fee and net amount.

        The proof image is stored after the approval commits; failing to store
        it is logged and does not undo the approval.
        """
        try:
            current = await self._withdrawals.get(db, withdrawal_id)
            if current is None:
                raise WithdrawalNotFoundError(withdrawal_id)
            if current.status != WithdrawalStatus.PENDING.value:
                raise InvalidStatusTransitionError(
                    "Withdrawal", withdrawal_id, current.status, WithdrawalStatus.COMPLETED.value
                )
            rows = await self._procedures.call(
                db,
                "approve_withdrawal_request",
                {"p_withdrawal_id": withdrawal_id, "p_admin_id": admin_id},
            )
            if not first_value(rows):
                raise ProcedureRejectedError(
                    "approve_withdrawal_request", f"withdrawal {withdrawal_id} was not approved"
                )
            approved = await self._withdrawals.get(db, withdrawal_id) or current
            await self._activity.record(
                db,
                admin_id,
                ActivityType.WITHDRAWAL_APPROVED.value,
                "withdrawal",
                withdrawal_id,
                f"Withdrawal of {mg_to_display(approved.grams_mg)} "
                f"({piastres_to_display(approved.amount)}) approved",
                {"net_amount": approved.net_amount},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if proof_image_url:
            try:
                await self._withdrawals.set_proof_image(db, withdrawal_id, proof_image_url)
                await db.commit()
                approved.proof_image_url = proof_image_url
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("Withdrawal %s approved but proof image not saved: %s", withdrawal_id, e)

        await self._after_user_change(approved.user_id, QueryKeys.ADMIN_WITHDRAWALS)
        logger.info("Withdrawal %s approved by admin %s", withdrawal_id, admin_id)
        return approved

    async def reject_withdrawal(
        self, db: AsyncSession, admin_id: str, withdrawal_id: str, notes: str | None
    ) -> Withdrawal:
        try:
            withdrawal = await self._withdrawals.reject(db, withdrawal_id, notes)
            if withdrawal is None:
                current = await self._withdrawals.get(db, withdrawal_id)
                if current is None:
                    raise WithdrawalNotFoundError(withdrawal_id)
                raise InvalidStatusTransitionError(
                    "Withdrawal", withdrawal_id, current.status, WithdrawalStatus.REJECTED.value
                )
            await self._activity.record(
                db,
                admin_id,
                ActivityType.WITHDRAWAL_REJECTED.value,
                "withdrawal",
                withdrawal_id,
                f"Withdrawal of {mg_to_display(withdrawal.grams_mg)} rejected",
                {"notes": notes},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._after_user_change(withdrawal.user_id, QueryKeys.ADMIN_WITHDRAWALS)
        logger.info("Withdrawal %s rejected by admin %s", withdrawal_id, admin_id)
        return withdrawal

    # ------------------------------------------------------------------
    # Buy requests
    # ------------------------------------------------------------------

    async def list_pending_buys(self, db: AsyncSession) -> list[Position]:
        return await self._cache.get_or_load(
            QueryKeys.PENDING_BUYS,
            lambda: self._positions.list_pending(db),
            settings.LIST_CACHE_SECONDS,
        )

    async def approve_buy(self, db: AsyncSession, admin_id: str, position_id: str) -> Position:
        """Activate a pending position via approve_buy_request; a falsy result is a refusal."""
        try:
            position = await self._positions.get(db, position_id)
            if position is None:
                raise PositionNotFoundError(position_id)
            if position.status != PositionStatus.PENDING.value:
                raise InvalidStatusTransitionError(
                    "Position", position_id, position.status, PositionStatus.ACTIVE.value
                )
            rows = await self._procedures.call(
                db,
                "approve_buy_request",
                {"p_position_id": position_id, "p_admin_id": admin_id},
            )
            if not first_value(rows):
                raise ProcedureRejectedError(
                    "approve_buy_request", f"buy request {position_id} was not approved"
                )
            approved = await self._positions.get(db, position_id) or position
            await self._log_buy(db, admin_id, approved, ActivityType.BUY_APPROVED)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._after_buy_change(approved.user_id)
        logger.info("Buy request %s approved by admin %s", position_id, admin_id)
        return approved

    async def reject_buy(self, db: AsyncSession, admin_id: str, position_id: str) -> Position:
        """A rejected buy request is deleted; only pending rows can go."""
        try:
            position = await self._positions.delete_pending(db, position_id)
            if position is None:
                current = await self._positions.get(db, position_id)
                if current is None:
                    raise PositionNotFoundError(position_id)
                raise InvalidStatusTransitionError(
                    "Position", position_id, current.status, "rejected"
                )
            await self._log_buy(db, admin_id, position, ActivityType.BUY_REJECTED)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._after_buy_change(position.user_id)
        logger.info("Buy request %s rejected by admin %s", position_id, admin_id)
        return position

    async def _log_buy(
        self, db: AsyncSession, admin_id: str, position: Position, action: ActivityType
    ) -> None:
        verb = action.value.removeprefix("buy_")
        await self._activity.record(
            db,
            admin_id,
            action.value,
            "position",
            position.id,
            f"Buy of {mg_to_display(position.grams_mg)} {position.metal_type} "
            f"({piastres_to_display(position.buy_amount)}) {verb}",
            {"user_id": position.user_id, "buy_amount": position.buy_amount},
        )

    async def _after_buy_change(self, user_id: str) -> None:
        await self._cache.invalidate(QueryKeys.PENDING_BUYS)
        await self._cache.invalidate(QueryKeys.positions(user_id))
        await self._cache.invalidate(QueryKeys.portfolio_summary(user_id))
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)

    # ------------------------------------------------------------------
    # Fee rules
    # ------------------------------------------------------------------

    async def list_fee_rules(self, db: AsyncSession) -> list[FeeRule]:
        return await self._cache.get_or_load(
            QueryKeys.FEE_RULES,
            lambda: self._fee_rules.list_all(db),
            settings.LIST_CACHE_SECONDS,
        )

    async def update_fee_rule(
        self, db: AsyncSession, admin_id: str, fee_type: str, percent_bps: int
    ) -> FeeRule:
        if not 0 <= percent_bps <= MAX_BPS:
            raise InvalidFeeRuleError(percent_bps)
        try:
            rule = await self._fee_rules.update_percent(db, fee_type, percent_bps)
            if rule is None:
                raise FeeRuleNotFoundError(fee_type)
            await self._activity.record(
                db,
                admin_id,
                ActivityType.FEE_RULE_UPDATED.value,
                "fee_rule",
                fee_type,
                f"Fee {fee_type} set to {percent_bps} bps",
                {"percent_bps": percent_bps},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._cache.invalidate(QueryKeys.FEE_RULES)
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
        return rule

    # ------------------------------------------------------------------
    # Users and roles
    # ------------------------------------------------------------------

    async def list_users(self, db: AsyncSession) -> list[UserWithRoles]:
        return await self._cache.get_or_load(
            QueryKeys.USERS,
            lambda: self._roles.list_users_with_roles(db),
            settings.LIST_CACHE_SECONDS,
        )

    async def grant_role(self, db: AsyncSession, admin_id: str, user_id: str, role: str) -> None:
        try:
            if not await self._roles.user_exists(db, user_id):
                raise UserNotFoundError(user_id)
            await self._roles.grant(db, user_id, role)
            await self._activity.record(
                db,
                admin_id,
                ActivityType.ROLE_GRANTED.value,
                "user",
                user_id,
                f"Role {role} granted",
                {"role": role},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._cache.invalidate(QueryKeys.USERS)
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
        logger.info("Role %s granted to %s by admin %s", role, user_id, admin_id)

    async def revoke_role(self, db: AsyncSession, admin_id: str, user_id: str, role: str) -> bool:
        """Returns False when the user did not hold the role (nothing logged)."""
        try:
            removed = await self._roles.revoke(db, user_id, role)
            if removed:
                await self._activity.record(
                    db,
                    admin_id,
                    ActivityType.ROLE_REVOKED.value,
                    "user",
                    user_id,
                    f"Role {role} revoked",
                    {"role": role},
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if removed:
            await self._cache.invalidate(QueryKeys.USERS)
            await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
            logger.info("Role %s revoked from %s by admin %s", role, user_id, admin_id)
        return removed

    async def update_user_profile(
        self,
        db: AsyncSession,
        admin_id: str,
        user_id: str,
        full_name: str | None = None,
        phone: str | None = None,
        is_active: bool | None = None,
    ) -> None:
        """Edit name, phone or active flag. A deactivated user is refused on their next request."""
        changes: dict[str, Any] = {
            k: v
            for k, v in (("full_name", full_name), ("phone", phone), ("is_active", is_active))
            if v is not None
        }
        if not changes:
            raise EmptyProfileUpdateError()
        try:
            if not await self._roles.update_profile(db, user_id, full_name, phone, is_active):
                raise UserNotFoundError(user_id)
            await self._activity.record(
                db,
                admin_id,
                ActivityType.USER_UPDATED.value,
                "user",
                user_id,
                f"Profile updated: {', '.join(sorted(changes))}",
                changes,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        await self._cache.invalidate(QueryKeys.USERS)
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
        if is_active is False:
            logger.warning("User %s deactivated by admin %s", user_id, admin_id)
        else:
            logger.info("User %s updated by admin %s", user_id, admin_id)

    async def get_user_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioSummary:
        rows = await self._procedures.call(
            db, "get_user_portfolio_admin", {"p_user_id": user_id}
        )
        return portfolio_from_row(first_row(rows))

    # ------------------------------------------------------------------
    # Goldsmiths
    # ------------------------------------------------------------------

    async def list_goldsmiths(self, db: AsyncSession, status: str | None = None) -> list[Goldsmith]:
        return await self._cache.get_or_load(
            (*QueryKeys.GOLDSMITHS, status or "all"),
            lambda: self._goldsmiths.list(db, status),
            settings.LIST_CACHE_SECONDS,
        )

    async def approve_goldsmith(
        self, db: AsyncSession, admin_id: str, goldsmith_id: str, notes: str | None
    ) -> Goldsmith:
        try:
            goldsmith = await self._goldsmiths.get(db, goldsmith_id)
            if goldsmith is None:
                raise GoldsmithNotFoundError(goldsmith_id)
            if goldsmith.status != GoldsmithStatus.PENDING.value:
                raise InvalidStatusTransitionError(
                    "Goldsmith", goldsmith_id, goldsmith.status, GoldsmithStatus.APPROVED.value
                )
            await self._procedures.call(
                db, "approve_goldsmith", {"p_goldsmith_id": goldsmith_id, "p_notes": notes}
            )
            await self._log_goldsmith(db, admin_id, goldsmith, ActivityType.GOLDSMITH_APPROVED, notes)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        goldsmith.status = GoldsmithStatus.APPROVED.value
        await self._after_goldsmith_change()
        return goldsmith

    async def reject_goldsmith(
        self, db: AsyncSession, admin_id: str, goldsmith_id: str, notes: str | None
    ) -> Goldsmith:
        return await self._move_goldsmith(
            db,
            admin_id,
            goldsmith_id,
            GoldsmithStatus.REJECTED,
            (GoldsmithStatus.PENDING.value,),
            notes,
            ActivityType.GOLDSMITH_REJECTED,
        )

    async def suspend_goldsmith(
        self, db: AsyncSession, admin_id: str, goldsmith_id: str, notes: str | None
    ) -> Goldsmith:
        return await self._move_goldsmith(
            db,
            admin_id,
            goldsmith_id,
            GoldsmithStatus.SUSPENDED,
            (GoldsmithStatus.APPROVED.value,),
            notes,
            ActivityType.GOLDSMITH_SUSPENDED,
        )

    async def _move_goldsmith(
        self,
        db: AsyncSession,
        admin_id: str,
        goldsmith_id: str,
        target: GoldsmithStatus,
        from_statuses: tuple[str, ...],
        notes: str | None,
        action: ActivityType,
    ) -> Goldsmith:
        try:
            goldsmith = await self._goldsmiths.set_status(
                db, goldsmith_id, target.value, from_statuses, notes
            )
            if goldsmith is None:
                current = await self._goldsmiths.get(db, goldsmith_id)
                if current is None:
                    raise GoldsmithNotFoundError(goldsmith_id)
                raise InvalidStatusTransitionError(
                    "Goldsmith", goldsmith_id, current.status, target.value
                )
            await self._log_goldsmith(db, admin_id, goldsmith, action, notes)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._after_goldsmith_change()
        return goldsmith

    async def _log_goldsmith(
        self,
        db: AsyncSession,
        admin_id: str,
        goldsmith: Goldsmith,
        action: ActivityType,
        notes: str | None,
    ) -> None:
        metadata: dict[str, Any] = {"shop_name": goldsmith.shop_name}
        if notes:
            metadata["notes"] = notes
        verb = action.value.removeprefix("goldsmith_")
        await self._activity.record(
            db,
            admin_id,
            action.value,
            "goldsmith",
            goldsmith.id,
            f"Goldsmith {goldsmith.shop_name} {verb}",
            metadata,
        )

    async def _after_goldsmith_change(self) -> None:
        await self._cache.invalidate(QueryKeys.GOLDSMITHS)
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    async def list_activity(
        self, db: AsyncSession, limit: int = DEFAULT_ACTIVITY_LIMIT
    ) -> list[ActivityEntry]:
        limit = max(1, min(limit, settings.ACTIVITY_LOG_MAX))
        return await self._cache.get_or_load(
            (*QueryKeys.ACTIVITY_LOG, str(limit)),
            lambda: self._activity.list_recent(db, limit),
            settings.LIST_CACHE_SECONDS,
        )

    async def _after_user_change(self, user_id: str, admin_key: tuple[str, ...]) -> None:
        await self._cache.invalidate(admin_key)
        await self._cache.invalidate(QueryKeys.portfolio_summary(user_id))
        await self._cache.invalidate(QueryKeys.deposits(user_id))
        await self._cache.invalidate(QueryKeys.withdrawals(user_id))
        await self._cache.invalidate(QueryKeys.ACTIVITY_LOG)
