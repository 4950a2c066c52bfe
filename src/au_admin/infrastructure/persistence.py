"""Admin repositories: activity log, fee rules, goldsmith applications.

Raw SQL via SQLAlchemy text(); the caller (application service) owns the
transaction.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_admin.domain.models import ActivityEntry, FeeRule, Goldsmith

# ---------------------------------------------------------------------------
# SQL: activity_log
# ---------------------------------------------------------------------------

_INSERT_ACTIVITY_SQL = text("""
    INSERT INTO activity_log
        (user_id, action_type, entity_type, entity_id, description, metadata)
    VALUES
        (:user_id, :action_type, :entity_type, :entity_id, :description,
         CAST(:metadata AS JSONB))
""")

_LIST_ACTIVITY_SQL = text("""
    SELECT a.id, a.user_id, a.action_type, a.entity_type, a.entity_id,
           a.description, a.metadata, a.created_at,
           u.full_name AS admin_name
    FROM activity_log a
    LEFT JOIN users u ON u.id::text = a.user_id
    ORDER BY a.created_at DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# SQL: fee_rules
# ---------------------------------------------------------------------------

_LIST_FEE_RULES_SQL = text("""
    SELECT fee_type, percent_bps, updated_at
    FROM fee_rules
    ORDER BY fee_type
""")

_UPDATE_FEE_RULE_SQL = text("""
    UPDATE fee_rules
    SET percent_bps = :percent_bps
    WHERE fee_type = :fee_type
    RETURNING fee_type, percent_bps, updated_at
""")

# ---------------------------------------------------------------------------
# SQL: goldsmiths
# ---------------------------------------------------------------------------

_GOLDSMITH_COLUMNS = """
    g.id, g.user_id, g.shop_name, g.status, g.admin_notes,
    g.created_at, g.approved_at
"""

_LIST_GOLDSMITHS_SQL = text(f"""
    SELECT {_GOLDSMITH_COLUMNS}, u.full_name AS owner_name
    FROM goldsmiths g
    LEFT JOIN users u ON u.id::text = g.user_id
    WHERE (CAST(:status AS VARCHAR) IS NULL OR g.status = CAST(:status AS VARCHAR))
    ORDER BY g.created_at DESC
""")

_GET_GOLDSMITH_SQL = text(f"""
    SELECT {_GOLDSMITH_COLUMNS}, u.full_name AS owner_name
    FROM goldsmiths g
    LEFT JOIN users u ON u.id::text = g.user_id
    WHERE g.id = :goldsmith_id
""")

_SET_GOLDSMITH_STATUS_SQL = text(f"""
    UPDATE goldsmiths AS g
    SET status = :status,
        admin_notes = COALESCE(:admin_notes, g.admin_notes)
    WHERE g.id = :goldsmith_id AND g.status = ANY(:from_statuses)
    RETURNING {_GOLDSMITH_COLUMNS}, NULL::text AS owner_name
""")


def _row_to_activity(row: Any) -> ActivityEntry:
    metadata = row.metadata
    if isinstance(metadata, str):
        metadata = json.loads(metadata)
    return ActivityEntry(
        id=str(row.id),
        user_id=row.user_id,
        action_type=row.action_type,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        description=row.description or "",
        created_at=row.created_at,
        metadata=metadata or {},
        admin_name=row.admin_name,
    )


def _row_to_goldsmith(row: Any) -> Goldsmith:
    return Goldsmith(
        id=str(row.id),
        user_id=row.user_id,
        shop_name=row.shop_name,
        status=row.status,
        admin_notes=row.admin_notes,
        created_at=row.created_at,
        approved_at=row.approved_at,
        owner_name=row.owner_name,
    )


class ActivityLogRepository:
    async def record(
        self,
        db: AsyncSession,
        admin_id: str,
        action_type: str,
        entity_type: str,
        entity_id: str | None,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await db.execute(
            _INSERT_ACTIVITY_SQL,
            {
                "user_id": admin_id,
                "action_type": action_type,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "description": description,
                "metadata": json.dumps(metadata or {}),
            },
        )

    async def list_recent(self, db: AsyncSession, limit: int) -> list[ActivityEntry]:
        result = await db.execute(_LIST_ACTIVITY_SQL, {"limit": limit})
        return [_row_to_activity(row) for row in result.fetchall()]


class FeeRuleRepository:
    async def list_all(self, db: AsyncSession) -> list[FeeRule]:
        result = await db.execute(_LIST_FEE_RULES_SQL)
        return [
            FeeRule(fee_type=r.fee_type, percent_bps=r.percent_bps, updated_at=r.updated_at)
            for r in result.fetchall()
        ]

    async def update_percent(
        self, db: AsyncSession, fee_type: str, percent_bps: int
    ) -> FeeRule | None:
        result = await db.execute(
            _UPDATE_FEE_RULE_SQL, {"fee_type": fee_type, "percent_bps": percent_bps}
        )
        row = result.fetchone()
        if row is None:
            return None
        return FeeRule(fee_type=row.fee_type, percent_bps=row.percent_bps, updated_at=row.updated_at)


class GoldsmithRepository:
    async def list(self, db: AsyncSession, status: str | None) -> list[Goldsmith]:
        result = await db.execute(_LIST_GOLDSMITHS_SQL, {"status": status})
        return [_row_to_goldsmith(row) for row in result.fetchall()]

    async def get(self, db: AsyncSession, goldsmith_id: str) -> Goldsmith | None:
        result = await db.execute(_GET_GOLDSMITH_SQL, {"goldsmith_id": goldsmith_id})
        row = result.fetchone()
        return _row_to_goldsmith(row) if row else None

    async def set_status(
        self,
        db: AsyncSession,
        goldsmith_id: str,
        status: str,
        from_statuses: tuple[str, ...],
        admin_notes: str | None,
    ) -> Goldsmith | None:
        result = await db.execute(
            _SET_GOLDSMITH_STATUS_SQL,
            {
                "goldsmith_id": goldsmith_id,
                "status": status,
                "from_statuses": list(from_statuses),
                "admin_notes": admin_notes,
            },
        )
        row = result.fetchone()
        return _row_to_goldsmith(row) if row else None
