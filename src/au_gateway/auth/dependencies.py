"""FastAPI auth dependencies.

    get_current_user  — Bearer token → active UserModel (401 otherwise)
    require_role(...) — caller must hold at least one of the roles (403 otherwise)
    require_admin     — require_role("admin")

Roles are read from user_roles before the endpoint runs any query of its own.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_common.database import get_db_session
from src.au_common.enums import UserRole
from src.au_common.errors import AccountDisabledError, InvalidCredentialsError, PermissionDeniedError
from src.au_gateway.auth.jwt_handler import ACCESS, decode_token
from src.au_gateway.user.db_models import UserModel
from src.au_gateway.user.roles import RoleRepository

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_roles = RoleRepository()


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    try:
        payload = decode_token(token, expected_type=ACCESS)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    result = await db.execute(select(UserModel).where(UserModel.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    if not user.is_active:
        raise AccountDisabledError()
    return user


def require_role(*roles: str) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that admits callers holding any of `roles`."""
    wanted = frozenset(roles)

    async def _check(
        current_user: UserModel = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_session),
    ) -> UserModel:
        granted = await _roles.list_roles(db, str(current_user.id))
        if wanted.isdisjoint(granted):
            raise PermissionDeniedError(" or ".join(sorted(wanted)))
        return current_user

    return _check


require_admin = require_role(UserRole.ADMIN.value)
