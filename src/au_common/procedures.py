"""Remote stored procedure port.

Multi-step financial operations (withdrawal and buy approval, asset buy and
sell, portfolio summary, goldsmith approval) live in PostgreSQL functions
owned by the finance team. This module only knows their names and parameter shapes:
    - inputs: named parameters (Postgres `name => value` notation)
    - output: the rows the function returns, as plain dicts

Unit tests inject a mock that conforms to ProcedurePort.
"""

import logging
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.errors import InternalError, ProcedureFailedError

logger = logging.getLogger(__name__)

# name -> accepted parameter names
KNOWN_PROCEDURES: dict[str, frozenset[str]] = {
    "get_user_portfolio": frozenset({"p_user_id"}),
    "get_user_portfolio_admin": frozenset({"p_user_id"}),
    "get_available_grams": frozenset({"p_user_id"}),
    "sell_asset": frozenset(
        {"p_user_id", "p_position_id", "p_snapshot_id", "p_idempotency_key"}
    ),
    "buy_asset": frozenset(
        {
            "p_user_id",
            "p_snapshot_id",
            "p_amount",
            "p_duration_days",
            "p_idempotency_key",
            "p_metal_type",
        }
    ),
    "approve_withdrawal_request": frozenset({"p_withdrawal_id", "p_admin_id"}),
    "approve_buy_request": frozenset({"p_position_id", "p_admin_id"}),
    "approve_goldsmith": frozenset({"p_goldsmith_id", "p_notes"}),
}


class ProcedurePort(Protocol):
    async def call(
        self, db: AsyncSession, name: str, params: dict[str, Any]
    ) -> list[dict[str, Any]]: ...


def build_call_sql(name: str, params: dict[str, Any]) -> str:
    """Render `SELECT * FROM name(p => :p, ...)` after checking the whitelist."""
    allowed = KNOWN_PROCEDURES.get(name)
    if allowed is None:
        raise InternalError(f"Unknown procedure: {name}")
    unknown = set(params) - allowed
    if unknown:
        raise InternalError(f"Unknown parameters for {name}: {sorted(unknown)}")
    args = ", ".join(f"{p} => :{p}" for p in sorted(params))
    return f"SELECT * FROM {name}({args})"


class PgProcedureGateway:
    """Calls procedures over the request's session; the caller owns the transaction."""

    async def call(
        self, db: AsyncSession, name: str, params: dict[str, Any]
    ) -> list[dict[str, Any]]:
        sql = build_call_sql(name, params)
        try:
            result = await db.execute(text(sql), params)
        except SQLAlchemyError as e:
            logger.error("Procedure %s failed: %s", name, e)
            raise ProcedureFailedError(name, type(e).__name__) from e
        return [dict(row._mapping) for row in result.fetchall()]


def first_row(rows: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Procedures return SETOF rows; most callers only want the first."""
    return rows[0] if rows else None


def first_value(rows: list[dict[str, Any]]) -> Any:
    """Scalar-returning procedures come back as one row with one column."""
    row = first_row(rows)
    if not row:
        return None
    return next(iter(row.values()))
