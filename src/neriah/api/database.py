"""Database engine lifecycle and the request session dependency."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from neriah.api.config import APIConfig

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def to_async_url(url: str) -> str:
    """Rewrite a plain PostgreSQL URL to use the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix) :]
    return url


class Database:
    """Owns the async engine and session maker."""

    def __init__(self, config: APIConfig) -> None:
        """Initialize database wrapper.

        Args:
            config: API configuration holding the database URL and pool sizes.
        """
        self.config = config
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    async def connect(self) -> None:
        """Create the engine and session maker.

        Raises:
            ValueError: If no database URL is configured.
        """
        if not self.config.database_url:
            raise ValueError("DATABASE_URL is required")
        self._engine = create_async_engine(
            to_async_url(self.config.database_url),
            pool_size=self.config.db_pool_size,
            max_overflow=self.config.db_max_overflow,
            pool_pre_ping=True,
        )
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)

    async def disconnect(self) -> None:
        """Dispose of the engine."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session.

        Raises:
            RuntimeError: If connect() has not been called.
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        async with self._sessionmaker() as session:
            yield session


# Set during application startup
_session_factory: SessionFactory | None = None


def set_session_factory(factory: SessionFactory | None) -> None:
    """Set the session factory used by request handlers.

    Args:
        factory: AsyncSession factory to use.
    """
    global _session_factory
    _session_factory = factory


def get_session_factory() -> SessionFactory:
    """Return the configured session factory.

    Raises:
        HTTPException: If database not configured.
    """
    if _session_factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Yields:
        AsyncSession instance.

    Raises:
        HTTPException: If database not configured.
    """
    async with get_session_factory()() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]
SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]
