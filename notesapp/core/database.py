"""Async database handle and per-request session dependency."""

import logging
from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from notesapp.core.config import Settings, get_settings
from notesapp.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine (connection pool) and the session factory.

    The engine is created on first use; ``connect()`` can be called any
    number of times and reuses the existing pool. ``dispose()`` closes the
    pool and allows a later ``connect()`` to start over.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            url = self._settings.database_url.strip()
            if not url:
                raise ConfigurationError("DATABASE_URL is not configured")
            kwargs = {}
            if not url.startswith("sqlite"):
                kwargs = {
                    "pool_size": self._settings.db_pool_size,
                    "max_overflow": self._settings.db_max_overflow,
                    "pool_pre_ping": True,
                }
            self._engine = create_async_engine(url, echo=False, **kwargs)
            self._session_factory = sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._engine

    async def connect(self) -> None:
        """Open (or reuse) the pool and check the store answers."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection ready")

    async def create_all(self) -> None:
        """Create all tables. Use Alembic migrations in production."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    def session(self) -> AsyncSession:
        if self._session_factory is None:
            _ = self.engine
        return self._session_factory()

    async def dispose(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database connection pool closed")


@lru_cache
def get_database() -> Database:
    return Database(get_settings())


async def get_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async DB session."""
    async with database.session() as session:
        yield session
