"""Alembic environment for the users schema.

Learn: The database URL is read from a fresh Settings() so that
USERDESK_DATABASE_URL set in the shell wins, and alembic.ini never holds
credentials. The in-process memory:// store has no schema to migrate, so
it is refused up front. SQLite gets batch mode because it cannot ALTER
most constraints in place; Postgres runs plain ALTERs.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from userdesk.config import Settings
from userdesk.db.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_settings = Settings()
if _settings.uses_memory_store:
    raise RuntimeError(
        "USERDESK_DATABASE_URL points at the in-memory store; "
        "migrations need a real database"
    )
config.set_main_option("sqlalchemy.url", _settings.database_url)

target_metadata = Base.metadata


def _configure_options(dialect_name: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": dialect_name == "sqlite",
    }


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url.split(":", 1)[0].split("+", 1)[0]),
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection) -> None:
    context.configure(
        connection=connection, **_configure_options(connection.dialect.name)
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
