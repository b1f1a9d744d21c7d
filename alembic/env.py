"""Alembic environment for the patrol-zones schema (async SQLAlchemy)."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from patrol_zones import models  # noqa: F401
from patrol_zones.core.config import Settings, get_settings
from patrol_zones.models.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure(settings: Settings, **kwargs: object) -> None:
    """Configure the migration context, keeping alembic_version in the target schema."""
    if settings.database_schema is not None:
        kwargs["version_table_schema"] = settings.database_schema
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_migrations_offline(settings: Settings) -> None:
    """Emit SQL to stdout without connecting."""
    _configure(
        settings,
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection: Connection, settings: Settings) -> None:
    if settings.database_schema is not None:
        connection.execute(text(f'SET search_path TO "{settings.database_schema}", public'))
    _configure(settings, connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online(settings: Settings) -> None:
    """Apply migrations over an async connection, creating the schema if needed."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = settings.database_url
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    try:
        async with engine.connect() as connection:
            if settings.database_schema is not None:
                await connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{settings.database_schema}"'))
                await connection.commit()
            await connection.run_sync(_run_sync, settings)
    finally:
        await engine.dispose()


_settings = get_settings()
if context.is_offline_mode():
    run_migrations_offline(_settings)
else:
    asyncio.run(run_migrations_online(_settings))
