"""Repository Protocols — dependency inversion for testability.

Unit tests inject a mock that conforms to these Protocols.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.domain.models import Deposit, Position, WalletBalance, Withdrawal


class DepositRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        payment_method: str,
        payment_proof_url: str | None,
        idempotency_key: str,
    ) -> Deposit: ...

    async def get(self, db: AsyncSession, deposit_id: str) -> Deposit | None: ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Deposit]: ...

    async def list_all(self, db: AsyncSession) -> list[Deposit]: ...

    async def set_status(
        self,
        db: AsyncSession,
        deposit_id: str,
        status: str,
        notes: str | None,
    ) -> Deposit | None: ...


class WithdrawalRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        metal_type: str,
        grams_mg: int,
        amount: int,
        notes: str | None,
    ) -> Withdrawal: ...

    async def get(self, db: AsyncSession, withdrawal_id: str) -> Withdrawal | None: ...

    async def list_by_user(self, db: AsyncSession, user_id: str) -> list[Withdrawal]: ...

    async def list_all(self, db: AsyncSession) -> list[Withdrawal]: ...

    async def reject(
        self, db: AsyncSession, withdrawal_id: str, notes: str | None
    ) -> Withdrawal | None: ...

    async def set_proof_image(
        self, db: AsyncSession, withdrawal_id: str, proof_image_url: str
    ) -> None: ...


class PositionRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession, position_id: str) -> Position | None: ...

    async def list_by_user(
        self, db: AsyncSession, user_id: str, metal_type: str | None, status: str
    ) -> list[Position]: ...

    async def list_pending(self, db: AsyncSession) -> list[Position]: ...

    async def delete_pending(self, db: AsyncSession, position_id: str) -> Position | None: ...


class WalletRepositoryProtocol(Protocol):
    async def get_balance(self, db: AsyncSession, user_id: str) -> WalletBalance: ...
