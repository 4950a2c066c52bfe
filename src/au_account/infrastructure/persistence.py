"""Deposit, withdrawal, position and wallet repositories: concrete implementations of the Protocols.

Status changes use `UPDATE ... WHERE status = 'pending' RETURNING`, so a
request can leave `pending` exactly once. A result of 0 rows means the
row is missing or already decided; the caller tells the two apart.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.models import Deposit, Position, WalletBalance, Withdrawal
from src.au_common.errors import InternalError

_DEPOSIT_COLUMNS = """
    d.id, d.user_id, d.amount, d.status, d.payment_method, d.provider,
    d.payment_proof_url, d.notes, d.created_at, d.approved_at
"""

_WITHDRAWAL_COLUMNS = """
    w.id, w.user_id, w.amount, w.status, w.withdrawal_type, w.grams_mg,
    w.net_amount, w.fee_percentage_bps, w.fee_amount, w.notes,
    w.proof_image_url, w.created_at, w.processed_at
"""

# ---------------------------------------------------------------------------
# SQL: deposits
# ---------------------------------------------------------------------------

_INSERT_DEPOSIT_SQL = text(f"""
    INSERT INTO deposits AS d
        (user_id, amount, status, payment_method, provider,
         payment_proof_url, idempotency_key)
    VALUES
        (:user_id, :amount, 'pending', :payment_method, 'manual',
         :payment_proof_url, :idempotency_key)
    RETURNING {_DEPOSIT_COLUMNS}
""")

_GET_DEPOSIT_SQL = text(f"""
    SELECT {_DEPOSIT_COLUMNS}
    FROM deposits d
    WHERE d.id = :deposit_id
""")

_LIST_USER_DEPOSITS_SQL = text(f"""
    SELECT {_DEPOSIT_COLUMNS}
    FROM deposits d
    WHERE d.user_id = :user_id
    ORDER BY d.created_at DESC
""")

_LIST_ALL_DEPOSITS_SQL = text(f"""
    SELECT {_DEPOSIT_COLUMNS}, u.full_name AS user_name
    FROM deposits d
    LEFT JOIN users u ON u.id::text = d.user_id
    ORDER BY d.created_at DESC
""")

_SET_DEPOSIT_STATUS_SQL = text(f"""
    UPDATE deposits AS d
    SET status = CAST(:status AS VARCHAR),
        notes = COALESCE(:notes, d.notes),
        approved_at = CASE WHEN CAST(:status AS VARCHAR) = 'approved'
                           THEN NOW() ELSE d.approved_at END
    WHERE d.id = :deposit_id AND d.status = 'pending'
    RETURNING {_DEPOSIT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: withdrawals
# ---------------------------------------------------------------------------

_INSERT_WITHDRAWAL_SQL = text(f"""
    INSERT INTO withdrawals AS w
        (user_id, amount, status, withdrawal_type, grams_mg, notes)
    VALUES
        (:user_id, :amount, 'pending', :withdrawal_type, :grams_mg, :notes)
    RETURNING {_WITHDRAWAL_COLUMNS}
""")

_GET_WITHDRAWAL_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}
    FROM withdrawals w
    WHERE w.id = :withdrawal_id
""")

_LIST_USER_WITHDRAWALS_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}
    FROM withdrawals w
    WHERE w.user_id = :user_id
    ORDER BY w.created_at DESC
""")

_LIST_ALL_WITHDRAWALS_SQL = text(f"""
    SELECT {_WITHDRAWAL_COLUMNS}, u.full_name AS user_name, u.phone AS user_phone
    FROM withdrawals w
    LEFT JOIN users u ON u.id::text = w.user_id
    ORDER BY w.created_at DESC
""")

_REJECT_WITHDRAWAL_SQL = text(f"""
    UPDATE withdrawals AS w
    SET status = 'rejected',
        notes = COALESCE(:notes, w.notes),
        processed_at = NOW()
    WHERE w.id = :withdrawal_id AND w.status = 'pending'
    RETURNING {_WITHDRAWAL_COLUMNS}
""")

_SET_PROOF_IMAGE_SQL = text("""
    UPDATE withdrawals
    SET proof_image_url = :proof_image_url
    WHERE id = :withdrawal_id
""")

# ---------------------------------------------------------------------------
# SQL: positions and wallets
# ---------------------------------------------------------------------------

_POSITION_COLUMNS = """
    p.id, p.user_id, p.metal_type, p.grams_mg, p.buy_amount, p.buy_price_ask,
    p.duration_days, p.status, p.lock_until, p.created_at
"""

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM gold_positions p
    WHERE p.id = :position_id
""")

_LIST_USER_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM gold_positions p
    WHERE p.user_id = :user_id
      AND p.status = :status
      AND (CAST(:metal_type AS VARCHAR) IS NULL OR p.metal_type = CAST(:metal_type AS VARCHAR))
    ORDER BY p.created_at DESC
""")

_LIST_PENDING_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}, u.full_name AS user_name, u.email AS user_email
    FROM gold_positions p
    LEFT JOIN users u ON u.id::text = p.user_id
    WHERE p.status = 'pending'
    ORDER BY p.created_at DESC
""")

_DELETE_PENDING_POSITION_SQL = text(f"""
    DELETE FROM gold_positions AS p
    WHERE p.id = :position_id AND p.status = 'pending'
    RETURNING {_POSITION_COLUMNS}
""")

_GET_WALLET_SQL = text("""
    SELECT available_balance, locked_balance
    FROM wallet_accounts
    WHERE user_id = :user_id
""")

UNKNOWN_USER = "Unknown"


def _row_to_deposit(row: object, with_user: bool = False) -> Deposit:
    return Deposit(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        payment_method=row.payment_method,  # type: ignore[attr-defined]
        provider=row.provider,  # type: ignore[attr-defined]
        payment_proof_url=row.payment_proof_url,  # type: ignore[attr-defined]
        notes=row.notes,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        approved_at=row.approved_at,  # type: ignore[attr-defined]
        user_name=(row.user_name or UNKNOWN_USER) if with_user else None,  # type: ignore[attr-defined]
    )


def _row_to_withdrawal(row: object, with_user: bool = False) -> Withdrawal:
    return Withdrawal(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        withdrawal_type=row.withdrawal_type,  # type: ignore[attr-defined]
        grams_mg=row.grams_mg,  # type: ignore[attr-defined]
        net_amount=row.net_amount,  # type: ignore[attr-defined]
        fee_percentage_bps=row.fee_percentage_bps,  # type: ignore[attr-defined]
        fee_amount=row.fee_amount,  # type: ignore[attr-defined]
        notes=row.notes,  # type: ignore[attr-defined]
        proof_image_url=row.proof_image_url,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        processed_at=row.processed_at,  # type: ignore[attr-defined]
        user_name=(row.user_name or UNKNOWN_USER) if with_user else None,  # type: ignore[attr-defined]
        user_phone=row.user_phone if with_user else None,  # type: ignore[attr-defined]
    )


def _row_to_position(row: object, with_user: bool = False) -> Position:
    return Position(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        metal_type=row.metal_type,  # type: ignore[attr-defined]
        grams_mg=row.grams_mg,  # type: ignore[attr-defined]
        buy_amount=row.buy_amount,  # type: ignore[attr-defined]
        buy_price_ask=row.buy_price_ask,  # type: ignore[attr-defined]
        duration_days=row.duration_days,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        lock_until=row.lock_until,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        user_name=(row.user_name or UNKNOWN_USER) if with_user else None,  # type: ignore[attr-defined]
        user_email=row.user_email if with_user else None,  # type: ignore[attr-defined]
    )


class DepositRepository:
    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        payment_method: str,
        payment_proof_url: str | None,
        idempotency_key: str,
    ) -> Deposit:
        result = await db.execute(
            _INSERT_DEPOSIT_SQL,
            {
                "user_id": user_id,
                "amount": amount,
                "payment_method": payment_method,
                "payment_proof_url": payment_proof_url,
                "idempotency_key": idempotency_key,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Deposit insert returned no rows")
        return _row_to_deposit(row)

    async def get(self, db: AsyncSession, deposit_id: str) -> Deposit | None:
        result = await db.execute(_GET_DEPOSIT_SQL, {"deposit_id": deposit_id})
        row = result.fetchone()
        return _row_to_deposit(row) if row else None

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Deposit]:
        result = await db.execute(_LIST_USER_DEPOSITS_SQL, {"user_id": user_id})
        return [_row_to_deposit(row) for row in result.fetchall()]

    async def list_all(self, db: AsyncSession) -> list[Deposit]:
        result = await db.execute(_LIST_ALL_DEPOSITS_SQL)
        return [_row_to_deposit(row, with_user=True) for row in result.fetchall()]

    async def set_status(
        self,
        db: AsyncSession,
        deposit_id: str,
        status: str,
        notes: str | None,
    ) -> Deposit | None:
        result = await db.execute(
            _SET_DEPOSIT_STATUS_SQL,
            {"deposit_id": deposit_id, "status": status, "notes": notes},
        )
        row = result.fetchone()
        return _row_to_deposit(row) if row else None


class WithdrawalRepository:
    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        grams_mg: int,
        amount: int,
        notes: str | None,
    ) -> Withdrawal:
        result = await db.execute(
            _INSERT_WITHDRAWAL_SQL,
            {
                "user_id": user_id,
                "amount": amount,
                "withdrawal_type": metal_type,
                "grams_mg": grams_mg,
                "notes": notes,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Withdrawal insert returned no rows")
        return _row_to_withdrawal(row)

    async def get(self, db: AsyncSession, withdrawal_id: str) -> Withdrawal | None:
        result = await db.execute(_GET_WITHDRAWAL_SQL, {"withdrawal_id": withdrawal_id})
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Withdrawal]:
        result = await db.execute(_LIST_USER_WITHDRAWALS_SQL, {"user_id": user_id})
        return [_row_to_withdrawal(row) for row in result.fetchall()]

    async def list_all(self, db: AsyncSession) -> list[Withdrawal]:
        result = await db.execute(_LIST_ALL_WITHDRAWALS_SQL)
        return [_row_to_withdrawal(row, with_user=True) for row in result.fetchall()]

    async def reject(
        self, db: AsyncSession, withdrawal_id: str, notes: str | None
    ) -> Withdrawal | None:
        result = await db.execute(
            _REJECT_WITHDRAWAL_SQL, {"withdrawal_id": withdrawal_id, "notes": notes}
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def set_proof_image(
        self, db: AsyncSession, withdrawal_id: str, proof_image_url: str
    ) -> None:
        await db.execute(
            _SET_PROOF_IMAGE_SQL,
            {"withdrawal_id": withdrawal_id, "proof_image_url": proof_image_url},
        )


class PositionRepository:
    async def get(self, db: AsyncSession, position_id: str) -> Position | None:
        result = await db.execute(_GET_POSITION_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_position(row) if row else None

    async def list_by_user(
        self, db: AsyncSession, user_id: str, metal_type: str | None, status: str
    ) -> list[Position]:
        result = await db.execute(
            _LIST_USER_POSITIONS_SQL,
            {"user_id": user_id, "metal_type": metal_type, "status": status},
        )
        return [_row_to_position(row) for row in result.fetchall()]

    async def list_pending(self, db: AsyncSession) -> list[Position]:
        result = await db.execute(_LIST_PENDING_POSITIONS_SQL)
        return [_row_to_position(row, with_user=True) for row in result.fetchall()]

    async def delete_pending(self, db: AsyncSession, position_id: str) -> Position | None:
        """Remove a buy request that was never approved. None when missing or not pending."""
        result = await db.execute(_DELETE_PENDING_POSITION_SQL, {"position_id": position_id})
        row = result.fetchone()
        return _row_to_position(row) if row else None


class WalletRepository:
    async def get_balance(self, db: AsyncSession, user_id: str) -> WalletBalance:
        """A user without a wallet row has an empty wallet."""
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            return WalletBalance()
        return WalletBalance(available=row.available_balance, locked=row.locked_balance)
