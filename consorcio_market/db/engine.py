"""Async database handle, unit-of-work helper, and FastAPI session dependency.

Uses SQLAlchemy 2.0 async with the asyncpg driver for PostgreSQL. The
``Database`` object is constructed once at process start (FastAPI lifespan
or the operations CLI) and passed to whoever needs it.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from consorcio_market.config import DatabaseSettings
from consorcio_market.errors import PersistenceError

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and its session factory."""

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, db_settings: DatabaseSettings, *, echo: bool = False) -> Database:
        """Build a pooled PostgreSQL handle from DatabaseSettings."""
        return cls(
            db_settings.database_url,
            echo=echo,
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on any error.

        Usage:
            async with database.transaction() as db:
                db.add(...)
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create all tables from ORM metadata (schema migrations are not managed here)."""
        # Import here to ensure all models are registered with Base.metadata
        from consorcio_market.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


async def flush_or_fail(db: AsyncSession) -> None:
    """Flush pending writes, surfacing store failures as PersistenceError."""
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Flush failed")
        raise PersistenceError("Erro ao gravar no banco de dados") from exc


async def commit_or_fail(db: AsyncSession) -> None:
    """Commit the unit of work, surfacing store failures as PersistenceError."""
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        logger.exception("Commit failed")
        await db.rollback()
        raise PersistenceError("Erro ao gravar no banco de dados") from exc


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI — yields a session from the app's Database.

    Handlers commit explicitly once their unit of work succeeded; any
    exception rolls the session back.

    Usage:
        @router.get("/example")
        async def handler(db: AsyncSession = Depends(get_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
