"""Role assignments (user_roles) and the user directory admins browse.

A role is a (user_id, role) pair, unique per pair. Granting is an upsert
so granting twice is a no-op; revoking reports whether a row was removed.
Profile updates only touch the fields that were given (None keeps the value).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_LIST_ROLES_SQL = text("""
    SELECT role FROM user_roles WHERE user_id = CAST(:user_id AS UUID) ORDER BY role
""")

_GRANT_ROLE_SQL = text("""
    INSERT INTO user_roles (user_id, role)
    VALUES (CAST(:user_id AS UUID), :role)
    ON CONFLICT (user_id, role) DO NOTHING
""")

_REVOKE_ROLE_SQL = text("""
    DELETE FROM user_roles
    WHERE user_id = CAST(:user_id AS UUID) AND role = :role
    RETURNING id
""")

_LIST_USERS_SQL = text("""
    SELECT u.id, u.username, u.email, u.full_name, u.phone, u.is_active, u.created_at,
           COALESCE(array_agg(r.role ORDER BY r.role) FILTER (WHERE r.role IS NOT NULL),
                    '{}') AS roles
    FROM users u
    LEFT JOIN user_roles r ON r.user_id = u.id
    GROUP BY u.id
    ORDER BY u.created_at DESC
""")

_USER_EXISTS_SQL = text("SELECT 1 FROM users WHERE id = CAST(:user_id AS UUID)")

_COUNT_USERS_SQL = text("SELECT COUNT(*) FROM users")

_UPDATE_PROFILE_SQL = text("""
    UPDATE users
    SET full_name = COALESCE(:full_name, full_name),
        phone = COALESCE(:phone, phone),
        is_active = COALESCE(:is_active, is_active)
    WHERE id = CAST(:user_id AS UUID)
    RETURNING id
""")


@dataclass
class UserWithRoles:
    id: str
    username: str
    email: str
    full_name: str | None
    phone: str | None
    is_active: bool
    created_at: datetime
    roles: list[str] = field(default_factory=list)


class RoleRepositoryProtocol(Protocol):
    async def list_roles(self, db: AsyncSession, user_id: str) -> list[str]: ...

    async def grant(self, db: AsyncSession, user_id: str, role: str) -> None: ...

    async def revoke(self, db: AsyncSession, user_id: str, role: str) -> bool: ...

    async def user_exists(self, db: AsyncSession, user_id: str) -> bool: ...

    async def list_users_with_roles(self, db: AsyncSession) -> list[UserWithRoles]: ...

    async def count_users(self, db: AsyncSession) -> int: ...

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: str,
        full_name: str | None,
        phone: str | None,
        is_active: bool | None,
    ) -> bool: ...


class RoleRepository:
    async def list_roles(self, db: AsyncSession, user_id: str) -> list[str]:
        result = await db.execute(_LIST_ROLES_SQL, {"user_id": user_id})
        return [row.role for row in result.fetchall()]

    async def grant(self, db: AsyncSession, user_id: str, role: str) -> None:
        await db.execute(_GRANT_ROLE_SQL, {"user_id": user_id, "role": role})

    async def revoke(self, db: AsyncSession, user_id: str, role: str) -> bool:
        result = await db.execute(_REVOKE_ROLE_SQL, {"user_id": user_id, "role": role})
        return result.fetchone() is not None

    async def user_exists(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(_USER_EXISTS_SQL, {"user_id": user_id})
        return result.fetchone() is not None

    async def list_users_with_roles(self, db: AsyncSession) -> list[UserWithRoles]:
        result = await db.execute(_LIST_USERS_SQL)
        return [
            UserWithRoles(
                id=str(row.id),
                username=row.username,
                email=row.email,
                full_name=row.full_name,
                phone=row.phone,
                is_active=row.is_active,
                created_at=row.created_at,
                roles=list(row.roles),
            )
            for row in result.fetchall()
        ]

    async def count_users(self, db: AsyncSession) -> int:
        result = await db.execute(_COUNT_USERS_SQL)
        return int(result.scalar_one())

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: str,
        full_name: str | None,
        phone: str | None,
        is_active: bool | None,
    ) -> bool:
        result = await db.execute(
            _UPDATE_PROFILE_SQL,
            {"user_id": user_id, "full_name": full_name, "phone": phone, "is_active": is_active},
        )
        return result.fetchone() is not None
