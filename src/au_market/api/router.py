"""au_market REST endpoints.

GET /prices        — latest gold and silver prices (any signed-in user)
PUT /admin/prices  — publish a new price pair per metal (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.database import get_db_session
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import get_current_user, require_admin
from src.au_gateway.user.db_models import UserModel
from src.au_market.application.schemas import LatestPricesResponse, UpdatePricesRequest
from src.au_market.application.service import MarketApplicationService

router = APIRouter(tags=["prices"])

_service = MarketApplicationService()


@router.get("/prices")
async def get_prices(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    latest = await _service.get_latest_prices(db)
    return success_response(LatestPricesResponse.from_domain(latest).model_dump(), request)


@router.put("/admin/prices")
async def update_prices(
    request: Request,
    body: UpdatePricesRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    latest = await _service.update_prices(
        db,
        str(admin.id),
        body.gold_buy,
        body.gold_sell,
        body.silver_buy,
        body.silver_sell,
    )
    return success_response(LatestPricesResponse.from_domain(latest).model_dump(), request)
