"""Async SQLAlchemy engine and session factory shared by every module.

Repositories issue raw SQL through the request's AsyncSession; the ORM base
only maps users and user_roles for the gateway.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=10,
    max_overflow=10,
    pool_pre_ping=True,
    # shows up in pg_stat_activity next to the procedures' own sessions
    connect_args={"server_settings": {"application_name": settings.APP_NAME}},
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session


async def check_database() -> None:
    """Raise if PostgreSQL is unreachable; used at startup."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
