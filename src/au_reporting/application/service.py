"""ReportService: loads records and hands them to the pure aggregator.

Read-only: no commit/rollback, no caching (reports are recomputed per request).
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_reporting.domain.aggregator import dashboard_stats, generate_report
from src.au_reporting.domain.models import DashboardStats, DateRange, ReportData
from src.au_reporting.domain.repository import ReportRepositoryProtocol
from src.au_reporting.infrastructure.persistence import ReportRepository


class ReportService:
    def __init__(self, repo: ReportRepositoryProtocol | None = None) -> None:
        self._repo: ReportRepositoryProtocol = repo or ReportRepository()

    async def get_report(
        self, db: AsyncSession, date_range: DateRange | None = None
    ) -> ReportData:
        deposits = await self._repo.list_deposit_records(db)
        withdrawals = await self._repo.list_withdrawal_records(db)
        return generate_report(deposits, withdrawals, date_range)

    async def get_stats(self, db: AsyncSession) -> DashboardStats:
        user_count = await self._repo.count_users(db)
        deposits = await self._repo.list_deposit_records(db)
        withdrawals = await self._repo.list_withdrawal_records(db)
        return dashboard_stats(user_count, deposits, withdrawals)
