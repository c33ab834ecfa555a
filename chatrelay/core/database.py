from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.core.database")

Base = declarative_base()


def _get_async_db_url(sync_url: str) -> str:
    """Convert a sync database URL to its async driver equivalent."""
    if sync_url.startswith("postgresql://"):
        return sync_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgres://"):
        return sync_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg2://"):
        return sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg://"):
        return sync_url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("sqlite:///"):
        return sync_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    else:
        return sync_url


class Database:
    """
    Owns the async engine and session factory for the lifetime of the app.

    Opened once at startup, shared by all requests, disposed at shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = _get_async_db_url(url)
        self.engine = create_async_engine(self.url, echo=echo, future=True)
        self._sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        # Import registers the mapped classes on Base.metadata
        from chatrelay.models import user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._sessionmaker() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")
