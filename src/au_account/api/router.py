"""au_account REST API: all endpoints act on the caller's own account."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.application.schemas import (
    BuyRequest,
    BuyResponse,
    DepositOut,
    DepositRequest,
    PortfolioResponse,
    PositionOut,
    SellRequest,
    SellResponse,
    WalletOut,
    WithdrawalOut,
    WithdrawalRequest,
)
from src.au_account.application.service import AccountApplicationService
from src.au_common.database import get_db_session
from src.au_common.enums import MetalType
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import get_current_user
from src.au_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/deposits")
async def list_deposits(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    deposits = await _service.list_deposits(db, str(current_user.id))
    return success_response([DepositOut.from_domain(d).model_dump() for d in deposits], request)


@router.post("/deposits", status_code=status.HTTP_201_CREATED)
async def create_deposit(
    request: Request,
    body: DepositRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    deposit = await _service.create_deposit(
        db, str(current_user.id), body.amount, body.payment_method, body.payment_proof_url
    )
    return success_response(DepositOut.from_domain(deposit).model_dump(), request)


@router.get("/withdrawals")
async def list_withdrawals(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    withdrawals = await _service.list_withdrawals(db, str(current_user.id))
    return success_response(
        [WithdrawalOut.from_domain(w).model_dump() for w in withdrawals], request
    )


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    request: Request,
    body: WithdrawalRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    withdrawal = await _service.create_withdrawal(
        db,
        str(current_user.id),
        body.metal_type.value,
        body.grams_mg,
        body.notes or body.withdrawal_method,
    )
    return success_response(WithdrawalOut.from_domain(withdrawal).model_dump(), request)


@router.get("/available-grams")
async def get_available_grams(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    available = await _service.get_available_grams(db, str(current_user.id))
    return success_response(
        {"gold_mg": available.gold_mg, "silver_mg": available.silver_mg}, request
    )


@router.get("/portfolio")
async def get_portfolio(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    summary = await _service.get_portfolio(db, str(current_user.id))
    return success_response(PortfolioResponse.from_domain(summary).model_dump(), request)


@router.get("/wallet")
async def get_wallet(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    wallet = await _service.get_wallet_balance(db, str(current_user.id))
    return success_response(WalletOut.from_domain(wallet).model_dump(), request)


@router.get("/positions")
async def list_positions(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    metal_type: MetalType | None = Query(None),
) -> ApiResponse:
    positions = await _service.list_positions(
        db, str(current_user.id), metal_type.value if metal_type else None
    )
    return success_response([PositionOut.from_domain(p).model_dump() for p in positions], request)


@router.post("/positions", status_code=status.HTTP_201_CREATED)
async def buy_position(
    request: Request,
    body: BuyRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    snapshot_id, result = await _service.buy_position(
        db, str(current_user.id), body.metal_type.value, body.amount, body.duration_days
    )
    out = BuyResponse.from_result(body.metal_type.value, body.amount, snapshot_id, result)
    resp = success_response(out.model_dump(), request)
    resp.message = "Buy request submitted for review"
    return resp


@router.post("/positions/{position_id}/sell")
async def sell_position(
    position_id: str,
    request: Request,
    body: SellRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    snapshot_id, result = await _service.sell_position(
        db, str(current_user.id), position_id, body.metal_type.value
    )
    resp = success_response(
        SellResponse.from_result(position_id, snapshot_id, result).model_dump(), request
    )
    resp.message = "Sell request submitted for review"
    return resp
