"""
Async SQLAlchemy persistence gateway (asyncpg driver in production,
aiosqlite in tests).

A ``Database`` instance owns its engine and session factory. The app
factory creates one and stores it on ``app.state``; background jobs get
the same instance injected. Nothing here is a module-level singleton.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from officehr.db.base import Base


class Database:
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str) -> Database:
        engine_args: dict[str, Any] = {
            "echo": False,
            "pool_pre_ping": True,
        }
        if "postgresql" in url:
            engine_args.update(
                {
                    "pool_size": 20,
                    "max_overflow": 10,
                    "pool_recycle": 300,
                }
            )
        return cls(create_async_engine(url, **engine_args))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session, closed on every exit path."""
        async with self.session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session wrapped in BEGIN; commits on success, rolls back on error."""
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def dialect_insert(session: AsyncSession, model: Any):
    """Return an INSERT construct that supports ``ON CONFLICT`` for the bound dialect."""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
