"""au_reporting REST endpoints (admin only).

GET /admin/reports?start=&end=  — financial report; range applies only with both bounds
GET /admin/stats                — dashboard headline cards
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.database import get_db_session
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import require_admin
from src.au_gateway.user.db_models import UserModel
from src.au_reporting.application.schemas import ReportResponse, StatsResponse
from src.au_reporting.application.service import ReportService
from src.au_reporting.domain.models import DateRange

router = APIRouter(prefix="/admin", tags=["reports"])
_service = ReportService()


@router.get("/reports")
async def get_report(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    start: datetime | None = Query(None, description="Inclusive; a bare date means 00:00 UTC"),
    end: datetime | None = Query(None, description="Inclusive; a bare date means 00:00 UTC"),
) -> ApiResponse:
    report = await _service.get_report(db, DateRange(start=start, end=end))
    return success_response(ReportResponse.from_report(report).model_dump(), request)


@router.get("/stats")
async def get_stats(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    stats = await _service.get_stats(db)
    return success_response(StatsResponse.from_domain(stats).model_dump(), request)
