"""User service: register, login, refresh.

The caller (router) owns the transaction; register must run inside
`async with db.begin()` so the user row and its default role land together.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.enums import UserRole
from src.au_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.au_gateway.auth.jwt_handler import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.au_gateway.auth.password import hash_password, verify_password
from src.au_gateway.user.db_models import UserModel
from src.au_gateway.user.roles import RoleRepository, RoleRepositoryProtocol

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, roles: RoleRepositoryProtocol | None = None) -> None:
        self._roles: RoleRepositoryProtocol = roles or RoleRepository()

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: str,
        phone: str | None,
        db: AsyncSession,
    ) -> UserModel:
        """Create the user and grant the default `user` role in one transaction."""
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            full_name=full_name,
            phone=phone,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # assigns user.id

        await self._roles.grant(db, str(user.id), UserRole.USER.value)
        await db.refresh(user)  # load server defaults (created_at)
        logger.info("Registered user %s (%s)", user.id, username)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown user and wrong password raise the same error so usernames
        cannot be enumerated.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountDisabledError()

        user_id = str(user.id)
        return user, create_access_token(user_id), create_refresh_token(user_id)

    async def list_roles(self, db: AsyncSession, user_id: str) -> list[str]:
        return await self._roles.list_roles(db, user_id)

    async def refresh(self, refresh_token: str) -> str:
        """Exchange a valid refresh token for a new access token (no rotation)."""
        payload = decode_token(refresh_token, expected_type=REFRESH)
        return create_access_token(str(payload["sub"]))
