"""Unit tests for UserService (mocked DB and role repository)."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.au_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.au_gateway.auth.jwt_handler import (
    ACCESS,
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.au_gateway.auth.password import hash_password
from src.au_gateway.user.db_models import UserModel
from src.au_gateway.user.service import UserService


def _make_user(is_active: bool = True, password: str = "Gold2024x") -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "mona"
    user.email = "mona@example.com"
    user.password_hash = hash_password(password)
    user.is_active = is_active
    return user


def _result(value: object) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def roles() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(roles: AsyncMock) -> UserService:
    return UserService(roles=roles)


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


class TestRegister:
    async def test_duplicate_username(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with pytest.raises(UsernameExistsError):
            await service.register("mona", "new@example.com", "Gold2024x", "Mona", None, mock_db)

    async def test_duplicate_email(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(side_effect=[_result(None), _result(_make_user())])
        with pytest.raises(EmailExistsError):
            await service.register("newbie", "mona@example.com", "Gold2024x", "N", None, mock_db)

    async def test_new_user_gets_default_role(
        self, service: UserService, roles: AsyncMock, mock_db: AsyncMock
    ) -> None:
        new_id = uuid.uuid4()
        mock_db.execute = AsyncMock(return_value=_result(None))

        async def assign_id() -> None:
            mock_db.add.call_args.args[0].id = new_id

        mock_db.flush.side_effect = assign_id

        user = await service.register(
            "newbie", "newbie@example.com", "Gold2024x", "New Bie", "+201000000000", mock_db
        )

        assert user.username == "newbie"
        assert user.full_name == "New Bie"
        assert user.password_hash != "Gold2024x"
        roles.grant.assert_awaited_once_with(mock_db, str(new_id), "user")
        mock_db.refresh.assert_awaited_once_with(user)


class TestLogin:
    async def test_success_returns_user_and_both_tokens(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user()
        mock_db.execute = AsyncMock(return_value=_result(user))

        found, access, refresh = await service.login("mona", "Gold2024x", mock_db)

        assert found is user
        assert decode_token(access, expected_type=ACCESS)["sub"] == str(user.id)
        assert decode_token(refresh, expected_type=REFRESH)["sub"] == str(user.id)

    async def test_unknown_user(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Gold2024x", mock_db)

    async def test_wrong_password(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user()))
        with pytest.raises(InvalidCredentialsError):
            await service.login("mona", "Silver2024x", mock_db)

    async def test_disabled_account(self, service: UserService, mock_db: AsyncMock) -> None:
        mock_db.execute = AsyncMock(return_value=_result(_make_user(is_active=False)))
        with pytest.raises(AccountDisabledError):
            await service.login("mona", "Gold2024x", mock_db)


class TestRefresh:
    async def test_refresh_issues_access_token(self, service: UserService) -> None:
        access = await service.refresh(create_refresh_token("user-9"))
        assert decode_token(access, expected_type=ACCESS)["sub"] == "user-9"

    async def test_access_token_is_not_a_refresh_token(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(create_access_token("user-9"))


class TestListRoles:
    async def test_delegates_to_repository(
        self, service: UserService, roles: AsyncMock, mock_db: AsyncMock
    ) -> None:
        roles.list_roles.return_value = ["admin", "user"]
        assert await service.list_roles(mock_db, "user-9") == ["admin", "user"]
