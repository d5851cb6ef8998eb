# python
"""Database engine and session utilities.

The persistence handle is an explicitly constructed ``Database`` object. The
application factory creates one per app, opens it in the lifespan handler and
stores it on ``app.state``; request handlers receive sessions through the
``get_db`` dependency. Tests build their own handle against a throwaway SQLite
file and pass it to ``create_app``.
"""
import logging
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from models import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        url = (url or "").strip()
        if not url:
            raise RuntimeError(
                "DATABASE_URL is not configured. Set it in the environment or .env file "
                "(e.g., DATABASE_URL=postgresql+asyncpg://<user>:<pass>@<host>/<db>)."
            )
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    async def connect(self, create_schema: bool = False) -> None:
        if self._engine is not None:
            return
        self._engine = create_async_engine(self.url, echo=self.echo)
        self._sessionmaker = async_sessionmaker(bind=self._engine, expire_on_commit=False)
        if create_schema:
            await self.create_all()
        logger.info("Database connected (%s)", self._engine.url.render_as_string(hide_password=True))

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database connections closed")

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, Any]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
