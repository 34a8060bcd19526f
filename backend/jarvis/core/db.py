"""Database engine and session management for the embedded SQLite store.

A single :class:`DatabaseManager` owns the one engine the process uses and
hands out sessions to repositories. Nothing here is global: callers build a
manager from :class:`~jarvis.core.config.Settings` and inject it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from jarvis.core.config import Settings
from jarvis.core.errors import ErrorFactory
from jarvis.models import Base

logger = logging.getLogger(__name__)


def _is_memory_url(url: str) -> bool:
    database = make_url(url).database
    return not database or database == ":memory:"


def _build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    kwargs: dict[str, Any] = {"echo": echo}
    memory = _is_memory_url(url)
    if memory:
        # one shared connection so every session sees the same in-memory database
        kwargs["connect_args"] = {"check_same_thread": False}
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **kwargs)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        if not memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class DatabaseManager:
    """Provides the single shared database handle used by all repositories."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseManager":
        return cls(settings.database_url, echo=settings.sql_echo)

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise ErrorFactory.storage("Database is not initialized", {"url": self._safe_url()})
        return self._engine

    async def initialize(self) -> AsyncEngine:
        """Create the engine and any missing tables. Safe to call repeatedly and concurrently."""
        engine, _ = await self._ensure_ready()
        return engine

    async def _ensure_ready(self) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
        async with self._init_lock:
            if self._engine is not None and self._session_factory is not None:
                return self._engine, self._session_factory

            self._ensure_storage_dir()
            engine = _build_engine(self._url, echo=self._echo)
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as exc:
                await engine.dispose()
                raise ErrorFactory.storage(
                    "Failed to initialize database",
                    {"url": self._safe_url()},
                ) from exc

            factory = async_sessionmaker(engine, expire_on_commit=False)
            self._engine = engine
            self._session_factory = factory
            logger.info("SQLite database initialized", extra={"db_url": self._safe_url()})
            return engine, factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session bound to the shared engine, initializing it on first use."""
        _, factory = await self._ensure_ready()
        async with factory() as session:
            yield session

    async def close(self) -> None:
        async with self._init_lock:
            if self._engine is None:
                return
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
        logger.info("Database connection closed")

    def _ensure_storage_dir(self) -> None:
        if _is_memory_url(self._url):
            return
        database = make_url(self._url).database
        if database:
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    def _safe_url(self) -> str:
        return make_url(self._url).render_as_string(hide_password=True)


__all__ = ["DatabaseManager"]
