"""Repository Protocols for au_admin.

Unit tests inject AsyncMock instances that conform to these Protocols.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_admin.domain.models import ActivityEntry, FeeRule, Goldsmith


class ActivityLogRepositoryProtocol(Protocol):
    async def record(
        self,
        db: AsyncSession,
        admin_id: str,
        action_type: str,
        entity_type: str,
        entity_id: str | None,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...

    async def list_recent(self, db: AsyncSession, limit: int) -> list[ActivityEntry]: ...


class FeeRuleRepositoryProtocol(Protocol):
    async def list_all(self, db: AsyncSession) -> list[FeeRule]: ...

    async def update_percent(
        self, db: AsyncSession, fee_type: str, percent_bps: int
    ) -> FeeRule | None: ...


class GoldsmithRepositoryProtocol(Protocol):
    async def list(self, db: AsyncSession, status: str | None) -> list[Goldsmith]: ...

    async def get(self, db: AsyncSession, goldsmith_id: str) -> Goldsmith | None: ...

    async def set_status(
        self,
        db: AsyncSession,
        goldsmith_id: str,
        status: str,
        from_statuses: tuple[str, ...],
        admin_notes: str | None,
    ) -> Goldsmith | None: ...
