from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from roster_scheduler.core.config import get_settings
from roster_scheduler.db.base import Base
from roster_scheduler.db import models  # noqa: F401  # ensure model metadata is loaded

if TYPE_CHECKING:
    from alembic.runtime.environment import EnvironmentContext

# Alembic Config object, gives access to the .ini values.
config = context.config

# Logging setup from the .ini file, when one is used.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Metadata for autogenerate.
target_metadata = Base.metadata


def _database_url(*, async_driver: bool) -> str:
    settings = get_settings()
    url = settings.database_url
    if async_driver:
        return url
    # Alembic's offline mode requires a synchronous driver.
    return url.replace("+asyncpg", "")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = _database_url(async_driver=False)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    engine: AsyncEngine = create_async_engine(
        _database_url(async_driver=True), poolclass=pool.NullPool
    )

    async with engine.begin() as connection:
        await connection.run_sync(do_run_migrations)

    await engine.dispose()


def run_migrations() -> None:
    if context.is_offline_mode():
        run_migrations_offline()
    else:
        asyncio.run(run_migrations_online())


run_migrations()
