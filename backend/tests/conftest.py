from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import Final

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from jarvis.core.db import DatabaseManager

MEMORY_URL: Final[str] = "sqlite+aiosqlite:///:memory:"

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "DATABASE_URL": MEMORY_URL,
    "LOG_LEVEL": "DEBUG",
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)


@pytest_asyncio.fixture()
async def database() -> AsyncIterator[DatabaseManager]:
    """A fresh in-memory store per test, built through the app's own handle provider."""
    manager = DatabaseManager(MEMORY_URL)
    await manager.initialize()
    try:
        yield manager
    finally:
        await manager.close()


@pytest_asyncio.fixture()
async def db_session(database: DatabaseManager) -> AsyncIterator[AsyncSession]:
    async with database.session() as session:
        yield session
