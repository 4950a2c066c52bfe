"""Repository Protocol for au_reporting."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession


class ReportRepositoryProtocol(Protocol):
    async def list_deposit_records(self, db: AsyncSession) -> list[dict[str, Any]]: ...

    async def list_withdrawal_records(self, db: AsyncSession) -> list[dict[str, Any]]: ...

    async def count_users(self, db: AsyncSession) -> int: ...
