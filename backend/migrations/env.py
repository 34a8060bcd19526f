"""Alembic environment configuration.

Migrations reuse the database URL from the application settings. The app
runs on the async aiosqlite driver; Alembic gets the plain ``sqlite`` driver
so it can use SQLAlchemy's standard synchronous engine.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from typing import Any, Dict

from alembic import context
from sqlalchemy import engine_from_config, pool


# Ensure the "backend" directory is on sys.path when migrations run from CLI
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from jarvis.core.config import get_settings  # noqa: E402
from jarvis.models import Base  # noqa: E402


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _get_database_url() -> str:
    """Return a sync SQLAlchemy URL derived from application settings."""

    url = get_settings().database_url
    if url.startswith("sqlite+aiosqlite"):
        return url.replace("+aiosqlite", "", 1)
    return url


def _get_config_section() -> Dict[str, Any]:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = _get_database_url()
    return section


target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""

    context.configure(
        url=_get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""

    connectable = engine_from_config(
        _get_config_section(),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
