"""Unit tests for AdminService: moderation, buy requests, fee rules, users, goldsmiths."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.au_account.domain.models import Deposit, Position, Withdrawal
from src.au_admin.application.service import AdminService
from src.au_admin.domain.models import FeeRule, Goldsmith
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
from src.au_common.query_cache import MISS, QueryCache, QueryKeys

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _deposit(status: str = "pending") -> Deposit:
    return Deposit(id="d1", user_id="u1", amount=500_000, status=status, created_at=NOW)


def _withdrawal(status: str = "pending", net_amount: int | None = None) -> Withdrawal:
    return Withdrawal(
        id="w1",
        user_id="u1",
        amount=950_000,
        status=status,
        created_at=NOW,
        grams_mg=2_500,
        net_amount=net_amount,
    )


def _goldsmith(status: str = "pending") -> Goldsmith:
    return Goldsmith(id="g1", user_id="u7", shop_name="Khan Gold", status=status, created_at=NOW)


def _position(status: str = "pending") -> Position:
    return Position(
        id="p1",
        user_id="u1",
        metal_type="gold",
        grams_mg=2_500,
        buy_amount=1_000_000,
        buy_price_ask=400_000,
        status=status,
        created_at=NOW,
    )


def _service(cache: QueryCache) -> tuple[AdminService, dict[str, AsyncMock]]:
    mocks = {
        name: AsyncMock()
        for name in (
            "deposits",
            "withdrawals",
            "positions",
            "activity",
            "fee_rules",
            "goldsmiths",
            "roles",
            "procedures",
        )
    }
    return AdminService(cache=cache, **mocks), mocks


class TestDepositDecisions:
    async def test_approve_pending(self, cache, db) -> None:
        svc, m = _service(cache)
        m["deposits"].set_status.return_value = _deposit("approved")

        deposit = await svc.approve_deposit(db, "admin-1", "d1")

        assert deposit.status == "approved"
        m["deposits"].set_status.assert_awaited_once_with(db, "d1", "approved", None)
        assert m["activity"].record.await_args.args[2] == "deposit_approved"
        db.commit.assert_awaited_once()

    async def test_reject_keeps_notes_in_activity(self, cache, db) -> None:
        svc, m = _service(cache)
        m["deposits"].set_status.return_value = _deposit("rejected")

        await svc.reject_deposit(db, "admin-1", "d1", "blurry receipt")

        m["deposits"].set_status.assert_awaited_once_with(db, "d1", "rejected", "blurry receipt")
        assert m["activity"].record.await_args.args[6]["notes"] == "blurry receipt"

    async def test_unknown_deposit(self, cache, db) -> None:
        svc, m = _service(cache)
        m["deposits"].set_status.return_value = None
        m["deposits"].get.return_value = None

        with pytest.raises(DepositNotFoundError):
            await svc.approve_deposit(db, "admin-1", "nope")
        db.rollback.assert_awaited_once()

    async def test_decided_deposit_cannot_change(self, cache, db) -> None:
        svc, m = _service(cache)
        m["deposits"].set_status.return_value = None
        m["deposits"].get.return_value = _deposit("approved")

        with pytest.raises(InvalidStatusTransitionError) as exc:
            await svc.reject_deposit(db, "admin-1", "d1", None)

        assert "approved" in exc.value.message
        m["activity"].record.assert_not_awaited()

    async def test_approval_invalidates_owner_and_admin_views(self, cache, db) -> None:
        svc, m = _service(cache)
        cache.set(QueryKeys.ADMIN_DEPOSITS, [], 30)
        cache.set(QueryKeys.portfolio_summary("u1"), object(), 60)
        cache.set(QueryKeys.deposits("u1"), [], 30)
        m["deposits"].set_status.return_value = _deposit("approved")

        await svc.approve_deposit(db, "admin-1", "d1")

        assert cache.get(QueryKeys.ADMIN_DEPOSITS) is MISS
        assert cache.get(QueryKeys.portfolio_summary("u1")) is MISS
        assert cache.get(QueryKeys.deposits("u1")) is MISS


class TestApproveWithdrawal:
    async def test_procedure_approves_and_result_is_reloaded(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.side_effect = [_withdrawal(), _withdrawal("completed", 935_750)]
        m["procedures"].call.return_value = [{"approve_withdrawal_request": True}]

        withdrawal = await svc.approve_withdrawal(db, "admin-1", "w1")

        assert withdrawal.status == "completed"
        assert withdrawal.net_amount == 935_750
        m["procedures"].call.assert_awaited_once_with(
            db,
            "approve_withdrawal_request",
            {"p_withdrawal_id": "w1", "p_admin_id": "admin-1"},
        )
        m["withdrawals"].set_proof_image.assert_not_awaited()
        db.commit.assert_awaited_once()

    async def test_falsy_procedure_result_is_a_refusal(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.return_value = _withdrawal()
        m["procedures"].call.return_value = [{"approve_withdrawal_request": False}]

        with pytest.raises(ProcedureRejectedError):
            await svc.approve_withdrawal(db, "admin-1", "w1")

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_only_pending_can_be_approved(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.return_value = _withdrawal("rejected")

        with pytest.raises(InvalidStatusTransitionError):
            await svc.approve_withdrawal(db, "admin-1", "w1")
        m["procedures"].call.assert_not_awaited()

    async def test_unknown_withdrawal(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.return_value = None

        with pytest.raises(WithdrawalNotFoundError):
            await svc.approve_withdrawal(db, "admin-1", "w404")

    async def test_proof_image_saved_after_approval(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.side_effect = [_withdrawal(), _withdrawal("completed", 935_750)]
        m["procedures"].call.return_value = [{"ok": True}]

        withdrawal = await svc.approve_withdrawal(db, "admin-1", "w1", "https://proof/1.png")

        m["withdrawals"].set_proof_image.assert_awaited_once_with(db, "w1", "https://proof/1.png")
        assert withdrawal.proof_image_url == "https://proof/1.png"
        assert db.commit.await_count == 2

    async def test_proof_image_failure_keeps_approval(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].get.side_effect = [_withdrawal(), _withdrawal("completed", 935_750)]
        m["procedures"].call.return_value = [{"ok": True}]
        m["withdrawals"].set_proof_image.side_effect = OperationalError("UPDATE", {}, Exception("x"))

        withdrawal = await svc.approve_withdrawal(db, "admin-1", "w1", "https://proof/1.png")

        assert withdrawal.status == "completed"
        assert withdrawal.proof_image_url is None
        db.commit.assert_awaited_once()
        db.rollback.assert_awaited_once()


class TestRejectWithdrawal:
    async def test_reject_pending(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].reject.return_value = _withdrawal("rejected")

        withdrawal = await svc.reject_withdrawal(db, "admin-1", "w1", "no stock")

        assert withdrawal.status == "rejected"
        assert m["activity"].record.await_args.args[2] == "withdrawal_rejected"

    async def test_completed_cannot_be_rejected(self, cache, db) -> None:
        svc, m = _service(cache)
        m["withdrawals"].reject.return_value = None
        m["withdrawals"].get.return_value = _withdrawal("completed")

        with pytest.raises(InvalidStatusTransitionError):
            await svc.reject_withdrawal(db, "admin-1", "w1", None)


class TestBuyRequests:
    async def test_approve_goes_through_procedure(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].get.side_effect = [_position("pending"), _position("active")]
        m["procedures"].call.return_value = [{"approve_buy_request": True}]

        position = await svc.approve_buy(db, "admin-1", "p1")

        assert position.status == "active"
        m["procedures"].call.assert_awaited_once_with(
            db, "approve_buy_request", {"p_position_id": "p1", "p_admin_id": "admin-1"}
        )
        assert m["activity"].record.await_args.args[2] == "buy_approved"
        db.commit.assert_awaited_once()

    async def test_falsy_procedure_result_is_a_refusal(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].get.return_value = _position("pending")
        m["procedures"].call.return_value = [{"approve_buy_request": False}]

        with pytest.raises(ProcedureRejectedError):
            await svc.approve_buy(db, "admin-1", "p1")

        m["activity"].record.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_approve_requires_pending(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].get.return_value = _position("active")

        with pytest.raises(InvalidStatusTransitionError):
            await svc.approve_buy(db, "admin-1", "p1")
        m["procedures"].call.assert_not_awaited()

    async def test_approve_unknown_position(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].get.return_value = None

        with pytest.raises(PositionNotFoundError):
            await svc.approve_buy(db, "admin-1", "missing")

    async def test_reject_deletes_pending_row(self, cache, db) -> None:
        cache.set(QueryKeys.PENDING_BUYS, [_position()], 30)
        svc, m = _service(cache)
        m["positions"].delete_pending.return_value = _position("pending")

        position = await svc.reject_buy(db, "admin-1", "p1")

        assert position.id == "p1"
        m["positions"].delete_pending.assert_awaited_once_with(db, "p1")
        assert m["activity"].record.await_args.args[2] == "buy_rejected"
        db.commit.assert_awaited_once()
        assert cache.get(QueryKeys.PENDING_BUYS) is MISS

    async def test_reject_of_active_position_is_refused(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].delete_pending.return_value = None
        m["positions"].get.return_value = _position("active")

        with pytest.raises(InvalidStatusTransitionError):
            await svc.reject_buy(db, "admin-1", "p1")
        db.rollback.assert_awaited_once()

    async def test_reject_unknown_position(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].delete_pending.return_value = None
        m["positions"].get.return_value = None

        with pytest.raises(PositionNotFoundError):
            await svc.reject_buy(db, "admin-1", "missing")

    async def test_pending_list_is_cached(self, cache, db) -> None:
        svc, m = _service(cache)
        m["positions"].list_pending.return_value = [_position()]

        await svc.list_pending_buys(db)
        await svc.list_pending_buys(db)

        m["positions"].list_pending.assert_awaited_once()


class TestFeeRules:
    @pytest.mark.parametrize("bps", [-1, 10_001])
    async def test_out_of_range(self, cache, db, bps: int) -> None:
        svc, m = _service(cache)
        with pytest.raises(InvalidFeeRuleError):
            await svc.update_fee_rule(db, "admin-1", "withdrawal", bps)
        m["fee_rules"].update_percent.assert_not_awaited()

    @pytest.mark.parametrize("bps", [0, 150, 10_000])
    async def test_bounds_are_inclusive(self, cache, db, bps: int) -> None:
        svc, m = _service(cache)
        m["fee_rules"].update_percent.return_value = FeeRule("withdrawal", bps)

        rule = await svc.update_fee_rule(db, "admin-1", "withdrawal", bps)

        assert rule.percent_bps == bps

    async def test_unknown_fee_type(self, cache, db) -> None:
        svc, m = _service(cache)
        m["fee_rules"].update_percent.return_value = None

        with pytest.raises(FeeRuleNotFoundError):
            await svc.update_fee_rule(db, "admin-1", "storage", 50)
        db.rollback.assert_awaited_once()


class TestRoles:
    async def test_grant_to_missing_user(self, cache, db) -> None:
        svc, m = _service(cache)
        m["roles"].user_exists.return_value = False

        with pytest.raises(UserNotFoundError):
            await svc.grant_role(db, "admin-1", "ghost", "admin")
        m["roles"].grant.assert_not_awaited()

    async def test_grant_logs_and_invalidates_users(self, cache, db) -> None:
        svc, m = _service(cache)
        cache.set(QueryKeys.USERS, [], 30)
        m["roles"].user_exists.return_value = True

        await svc.grant_role(db, "admin-1", "u1", "goldsmith")

        m["roles"].grant.assert_awaited_once_with(db, "u1", "goldsmith")
        assert m["activity"].record.await_args.args[2] == "role_granted"
        assert cache.get(QueryKeys.USERS) is MISS

    async def test_revoke_role_not_held_logs_nothing(self, cache, db) -> None:
        svc, m = _service(cache)
        m["roles"].revoke.return_value = False

        assert await svc.revoke_role(db, "admin-1", "u1", "admin") is False
        m["activity"].record.assert_not_awaited()


class TestUserProfile:
    async def test_deactivate_logs_and_invalidates_users(self, cache, db) -> None:
        cache.set(QueryKeys.USERS, [], 30)
        svc, m = _service(cache)
        m["roles"].update_profile.return_value = True

        await svc.update_user_profile(db, "admin-1", "u1", is_active=False)

        m["roles"].update_profile.assert_awaited_once_with(db, "u1", None, None, False)
        args = m["activity"].record.await_args.args
        assert args[2] == "user_updated"
        assert args[6] == {"is_active": False}
        db.commit.assert_awaited_once()
        assert cache.get(QueryKeys.USERS) is MISS

    async def test_nothing_to_update_is_refused(self, cache, db) -> None:
        svc, m = _service(cache)

        with pytest.raises(EmptyProfileUpdateError):
            await svc.update_user_profile(db, "admin-1", "u1")
        m["roles"].update_profile.assert_not_awaited()

    async def test_unknown_user(self, cache, db) -> None:
        svc, m = _service(cache)
        m["roles"].update_profile.return_value = False

        with pytest.raises(UserNotFoundError):
            await svc.update_user_profile(db, "admin-1", "ghost", full_name="Ghost")
        m["activity"].record.assert_not_awaited()
        db.rollback.assert_awaited_once()


class TestGoldsmiths:
    async def test_approve_goes_through_procedure(self, cache, db) -> None:
        svc, m = _service(cache)
        m["goldsmiths"].get.return_value = _goldsmith()

        goldsmith = await svc.approve_goldsmith(db, "admin-1", "g1", "documents ok")

        assert goldsmith.status == "approved"
        m["procedures"].call.assert_awaited_once_with(
            db, "approve_goldsmith", {"p_goldsmith_id": "g1", "p_notes": "documents ok"}
        )
        metadata = m["activity"].record.await_args.args[6]
        assert metadata == {"shop_name": "Khan Gold", "notes": "documents ok"}

    async def test_approve_requires_pending(self, cache, db) -> None:
        svc, m = _service(cache)
        m["goldsmiths"].get.return_value = _goldsmith("suspended")

        with pytest.raises(InvalidStatusTransitionError):
            await svc.approve_goldsmith(db, "admin-1", "g1", None)
        m["procedures"].call.assert_not_awaited()

    async def test_suspend_only_from_approved(self, cache, db) -> None:
        svc, m = _service(cache)
        m["goldsmiths"].set_status.return_value = _goldsmith("suspended")

        await svc.suspend_goldsmith(db, "admin-1", "g1", "complaints")

        m["goldsmiths"].set_status.assert_awaited_once_with(
            db, "g1", "suspended", ("approved",), "complaints"
        )

    async def test_reject_unknown_goldsmith(self, cache, db) -> None:
        svc, m = _service(cache)
        m["goldsmiths"].set_status.return_value = None
        m["goldsmiths"].get.return_value = None

        with pytest.raises(GoldsmithNotFoundError):
            await svc.reject_goldsmith(db, "admin-1", "g404", None)

    async def test_listing_is_cached_per_status(self, cache, db) -> None:
        svc, m = _service(cache)
        m["goldsmiths"].list.return_value = [_goldsmith()]

        await svc.list_goldsmiths(db, "pending")
        await svc.list_goldsmiths(db, "pending")
        await svc.list_goldsmiths(db, None)

        assert m["goldsmiths"].list.await_count == 2


class TestActivity:
    @pytest.mark.parametrize(("requested", "used"), [(0, 1), (50, 50), (10_000, 500)])
    async def test_limit_is_clamped(self, cache, db, requested: int, used: int) -> None:
        svc, m = _service(cache)
        m["activity"].list_recent.return_value = []

        await svc.list_activity(db, requested)

        m["activity"].list_recent.assert_awaited_once_with(db, used)


class TestUserPortfolio:
    async def test_admin_procedure_row_is_mapped(self, cache, db) -> None:
        svc, m = _service(cache)
        m["procedures"].call.return_value = [{"total_invested": 900_000, "total_gold_grams": 2}]

        summary = await svc.get_user_portfolio(db, "u1")

        assert summary.total_invested == 900_000
        assert summary.total_gold_mg == 2_000
        assert m["procedures"].call.await_args.args[1] == "get_user_portfolio_admin"
