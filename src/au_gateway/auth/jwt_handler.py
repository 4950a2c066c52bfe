"""JWT access/refresh tokens (HS256, python-jose).

Both token kinds carry `sub` (user id) and `type`; decode_token refuses a
token of the wrong type so a refresh token can never authorize a request.
Roles are NOT embedded: they are read from user_roles on every request, so
a revoked role takes effect immediately.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.au_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

ACCESS = "access"
REFRESH = "refresh"

_TTL = {
    ACCESS: timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    REFRESH: timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS),
}


def _issue(user_id: str, token_type: str) -> str:
    now = datetime.now(UTC)
    payload = {"sub": user_id, "type": token_type, "iat": now, "exp": now + _TTL[token_type]}
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _issue(user_id, ACCESS)


def create_refresh_token(user_id: str) -> str:
    return _issue(user_id, REFRESH)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Return the payload, or raise the auth error matching `expected_type`.

    Access failures raise InvalidCredentialsError, refresh failures raise
    InvalidRefreshTokenError.
    """
    error = InvalidCredentialsError if expected_type == ACCESS else InvalidRefreshTokenError
    try:
        payload: dict[str, Any] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise error() from None
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise error()
    return payload
