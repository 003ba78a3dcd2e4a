"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: one engine per running event loop
2. Base: declarative base shared by every ORM model
3. Database: session factory handed to the unit of work through DI

The engine URL comes from `settings.DATABASE_URL_ASYNC`. PostgreSQL (asyncpg)
is the production store; SQLite (aiosqlite) is used by the test-suite, where
every session gets its own connection so concurrent transactions really race.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class AsyncEngineManager:
    """
    Keeps the engine bound to the current event loop.

    pytest-asyncio and TestClient each run their own loop; reusing an engine
    created on another loop fails with "attached to a different loop".
    """

    def __init__(self) -> None:
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if self._engine is None or (current_loop is not None and self._loop is not current_loop):
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, recreating engine')
            self._engine = self._create_engine()
            self._session_maker = None
            self._loop = current_loop

        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        self._loop = None

    def _create_engine(self) -> AsyncEngine:
        url = settings.DATABASE_URL_ASYNC
        Logger.base.info(f'🔗 [DB] Creating engine for {url.split("://")[0]}')
        if url.startswith('sqlite'):
            return create_async_engine(
                url,
                poolclass=NullPool,
                connect_args={'timeout': settings.SQLITE_BUSY_TIMEOUT},
            )
        engine_kwargs: dict[str, Any] = {
            'pool_size': settings.DB_POOL_SIZE,
            'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
            'pool_timeout': settings.DB_POOL_TIMEOUT,
            'pool_recycle': settings.DB_POOL_RECYCLE,
            'pool_pre_ping': settings.DB_POOL_PRE_PING,
        }
        return create_async_engine(url, **engine_kwargs)


engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return engine_manager.get_engine()


class Base(DeclarativeBase):
    pass


async def create_db_and_tables() -> None:
    """Create missing tables (local development; production runs alembic)"""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)


class Database:
    """Session factory for the DI container"""

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session_maker = engine_manager.get_session_maker()
        async with session_maker() as session:
            yield session
