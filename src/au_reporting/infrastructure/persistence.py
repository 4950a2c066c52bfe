"""ReportRepository: loads the minimal columns the aggregator folds over.

Rows come back as plain dicts ({amount, status, created_at[, net_amount]});
filtering by date happens in the aggregator, which owns the inclusive
range semantics.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_DEPOSIT_RECORDS_SQL = text("""
    SELECT amount, status, created_at
    FROM deposits
    ORDER BY created_at
""")

_WITHDRAWAL_RECORDS_SQL = text("""
    SELECT amount, net_amount, status, created_at
    FROM withdrawals
    ORDER BY created_at
""")

_COUNT_USERS_SQL = text("SELECT COUNT(*) FROM users")


class ReportRepository:
    async def list_deposit_records(self, db: AsyncSession) -> list[dict[str, Any]]:
        result = await db.execute(_DEPOSIT_RECORDS_SQL)
        return [dict(row._mapping) for row in result.fetchall()]

    async def list_withdrawal_records(self, db: AsyncSession) -> list[dict[str, Any]]:
        result = await db.execute(_WITHDRAWAL_RECORDS_SQL)
        return [dict(row._mapping) for row in result.fetchall()]

    async def count_users(self, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_USERS_SQL)
        return int(result.scalar_one())
