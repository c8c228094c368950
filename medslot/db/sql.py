# medslot/db/sql.py
from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from medslot.core.config import settings
from medslot.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(dsn: str, *, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine. Pool sizing only applies to server databases;
    SQLite uses its own pool and ignores those options.
    """
    if make_url(dsn).get_backend_name() == "sqlite":
        return create_async_engine(dsn, echo=echo)

    return create_async_engine(
        dsn,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )


engine = build_engine(settings.SQL_DSN, echo=settings.DB_ECHO)

AsyncSessionLocal = build_sessionmaker(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commits when the handler returns, rolls back if anything raised, so a
    failed operation never partially applies.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_db(session: AsyncSession) -> bool:
    await session.execute(text("SELECT 1"))
    return True


async def init_db(bind: AsyncEngine | None = None) -> None:
    """
    Create tables that don't exist yet.
    """
    # Import all models so they get registered on Base.metadata
    from medslot.modules.users import models as _users  # noqa: F401
    from medslot.modules.doctors import models as _doctors  # noqa: F401
    from medslot.modules.appointments import models as _appointments  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")
