"""Admin REST API: every endpoint requires the admin role."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.application.schemas import (
    DepositOut,
    PortfolioResponse,
    PositionOut,
    WithdrawalOut,
)
from src.au_admin.application.schemas import (
    ActivityOut,
    ApproveWithdrawalRequest,
    FeeRuleOut,
    FeeRuleUpdateRequest,
    GoldsmithDecisionRequest,
    GoldsmithOut,
    ProfileUpdateRequest,
    RejectRequest,
    RoleRequest,
    UserOut,
)
from src.au_admin.application.service import DEFAULT_ACTIVITY_LIMIT, AdminService
from src.au_common.database import get_db_session
from src.au_common.enums import GoldsmithStatus, UserRole
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import require_admin
from src.au_gateway.user.db_models import UserModel

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()

Admin = Annotated[UserModel, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


# --- deposits ---


@router.get("/deposits")
async def list_deposits(request: Request, admin: Admin, db: Db) -> ApiResponse:
    deposits = await _service.list_deposits(db)
    return success_response([DepositOut.from_domain(d).model_dump() for d in deposits], request)


@router.post("/deposits/{deposit_id}/approve")
async def approve_deposit(deposit_id: str, request: Request, admin: Admin, db: Db) -> ApiResponse:
    deposit = await _service.approve_deposit(db, str(admin.id), deposit_id)
    return success_response(DepositOut.from_domain(deposit).model_dump(), request)


@router.post("/deposits/{deposit_id}/reject")
async def reject_deposit(
    deposit_id: str, body: RejectRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    deposit = await _service.reject_deposit(db, str(admin.id), deposit_id, body.notes)
    return success_response(DepositOut.from_domain(deposit).model_dump(), request)


# --- withdrawals ---


@router.get("/withdrawals")
async def list_withdrawals(request: Request, admin: Admin, db: Db) -> ApiResponse:
    withdrawals = await _service.list_withdrawals(db)
    return success_response(
        [WithdrawalOut.from_domain(w).model_dump() for w in withdrawals], request
    )


@router.post("/withdrawals/{withdrawal_id}/approve")
async def approve_withdrawal(
    withdrawal_id: str,
    body: ApproveWithdrawalRequest,
    request: Request,
    admin: Admin,
    db: Db,
) -> ApiResponse:
    withdrawal = await _service.approve_withdrawal(
        db, str(admin.id), withdrawal_id, body.proof_image_url
    )
    return success_response(WithdrawalOut.from_domain(withdrawal).model_dump(), request)


@router.post("/withdrawals/{withdrawal_id}/reject")
async def reject_withdrawal(
    withdrawal_id: str, body: RejectRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    withdrawal = await _service.reject_withdrawal(db, str(admin.id), withdrawal_id, body.notes)
    return success_response(WithdrawalOut.from_domain(withdrawal).model_dump(), request)


# --- buy requests ---


@router.get("/buy-requests")
async def list_pending_buys(request: Request, admin: Admin, db: Db) -> ApiResponse:
    positions = await _service.list_pending_buys(db)
    return success_response(
        [PositionOut.from_domain(p, with_user=True).model_dump() for p in positions], request
    )


@router.post("/buy-requests/{position_id}/approve")
async def approve_buy(position_id: str, request: Request, admin: Admin, db: Db) -> ApiResponse:
    position = await _service.approve_buy(db, str(admin.id), position_id)
    return success_response(PositionOut.from_domain(position).model_dump(), request)


@router.post("/buy-requests/{position_id}/reject")
async def reject_buy(position_id: str, request: Request, admin: Admin, db: Db) -> ApiResponse:
    position = await _service.reject_buy(db, str(admin.id), position_id)
    return success_response(PositionOut.from_domain(position).model_dump(), request)


# --- fee rules ---


@router.get("/fee-rules")
async def list_fee_rules(request: Request, admin: Admin, db: Db) -> ApiResponse:
    rules = await _service.list_fee_rules(db)
    return success_response([FeeRuleOut.from_domain(r).model_dump() for r in rules], request)


@router.put("/fee-rules/{fee_type}")
async def update_fee_rule(
    fee_type: str, body: FeeRuleUpdateRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    rule = await _service.update_fee_rule(db, str(admin.id), fee_type, body.percent_bps)
    return success_response(FeeRuleOut.from_domain(rule).model_dump(), request)


# --- users and roles ---


@router.get("/users")
async def list_users(request: Request, admin: Admin, db: Db) -> ApiResponse:
    users = await _service.list_users(db)
    return success_response([UserOut.from_domain(u).model_dump() for u in users], request)


@router.patch("/users/{user_id}")
async def update_user_profile(
    user_id: str, body: ProfileUpdateRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    await _service.update_user_profile(
        db, str(admin.id), user_id, body.full_name, body.phone, body.is_active
    )
    return success_response({"user_id": user_id, **body.model_dump(exclude_none=True)}, request)


@router.post("/users/{user_id}/roles")
async def grant_role(
    user_id: str, body: RoleRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    await _service.grant_role(db, str(admin.id), user_id, body.role.value)
    return success_response({"user_id": user_id, "role": body.role.value}, request)


@router.delete("/users/{user_id}/roles/{role}")
async def revoke_role(
    user_id: str, role: UserRole, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    removed = await _service.revoke_role(db, str(admin.id), user_id, role.value)
    return success_response({"user_id": user_id, "role": role.value, "removed": removed}, request)


@router.get("/users/{user_id}/portfolio")
async def get_user_portfolio(user_id: str, request: Request, admin: Admin, db: Db) -> ApiResponse:
    summary = await _service.get_user_portfolio(db, user_id)
    return success_response(PortfolioResponse.from_domain(summary).model_dump(), request)


# --- goldsmiths ---


@router.get("/goldsmiths")
async def list_goldsmiths(
    request: Request,
    admin: Admin,
    db: Db,
    status: GoldsmithStatus | None = Query(None),
) -> ApiResponse:
    goldsmiths = await _service.list_goldsmiths(db, status.value if status else None)
    return success_response([GoldsmithOut.from_domain(g).model_dump() for g in goldsmiths], request)


@router.post("/goldsmiths/{goldsmith_id}/approve")
async def approve_goldsmith(
    goldsmith_id: str, body: GoldsmithDecisionRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    goldsmith = await _service.approve_goldsmith(db, str(admin.id), goldsmith_id, body.notes)
    return success_response(GoldsmithOut.from_domain(goldsmith).model_dump(), request)


@router.post("/goldsmiths/{goldsmith_id}/reject")
async def reject_goldsmith(
    goldsmith_id: str, body: GoldsmithDecisionRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    goldsmith = await _service.reject_goldsmith(db, str(admin.id), goldsmith_id, body.notes)
    return success_response(GoldsmithOut.from_domain(goldsmith).model_dump(), request)


@router.post("/goldsmiths/{goldsmith_id}/suspend")
async def suspend_goldsmith(
    goldsmith_id: str, body: GoldsmithDecisionRequest, request: Request, admin: Admin, db: Db
) -> ApiResponse:
    goldsmith = await _service.suspend_goldsmith(db, str(admin.id), goldsmith_id, body.notes)
    return success_response(GoldsmithOut.from_domain(goldsmith).model_dump(), request)


# --- activity log ---


@router.get("/activity")
async def list_activity(
    request: Request,
    admin: Admin,
    db: Db,
    limit: int = Query(DEFAULT_ACTIVITY_LIMIT, ge=1, le=500),
) -> ApiResponse:
    entries = await _service.list_activity(db, limit)
    return success_response([ActivityOut.from_domain(a).model_dump() for a in entries], request)
