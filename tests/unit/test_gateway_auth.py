"""Unit tests for JWT tokens and bcrypt passwords."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.au_common.errors import InvalidCredentialsError, InvalidRefreshTokenError
from src.au_gateway.auth.jwt_handler import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.au_gateway.auth.password import hash_password, verify_password


class TestTokens:
    def test_access_token_round_trip(self) -> None:
        payload = decode_token(create_access_token("user-1"), expected_type=ACCESS)
        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_refresh_token_cannot_authorize_requests(self) -> None:
        with pytest.raises(InvalidCredentialsError):
            decode_token(create_refresh_token("user-1"), expected_type=ACCESS)

    def test_access_token_cannot_refresh(self) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(create_access_token("user-1"), expected_type=REFRESH)

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "user-1", "type": "access", "iat": past, "exp": past + timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, expected_type=ACCESS)

    def test_foreign_signature_rejected(self) -> None:
        token = jwt.encode({"sub": "user-1", "type": "refresh"}, "other-secret", algorithm="HS256")
        with pytest.raises(InvalidRefreshTokenError):
            decode_token(token, expected_type=REFRESH)

    def test_token_without_subject_rejected(self) -> None:
        token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(InvalidCredentialsError):
            decode_token(token, expected_type=ACCESS)


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("Gold2024x")
        assert hashed != "Gold2024x"
        assert verify_password("Gold2024x", hashed)
        assert not verify_password("gold2024x", hashed)

    def test_unparseable_hash_is_a_mismatch(self) -> None:
        assert not verify_password("whatever1", "not-a-bcrypt-hash")
