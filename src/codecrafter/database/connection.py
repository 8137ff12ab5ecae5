"""Database connection management for CodeCrafter.

This module provides factory functions for creating SQLAlchemy async engines
and session factories, configured from the application's DatabaseConfig,
plus a helper that creates the schema for development databases.

Production deployments use asyncpg and manage the schema with Alembic;
tests and local runs may point the same code at an aiosqlite URL.

Example usage:
    >>> from codecrafter.config import DatabaseConfig
    >>> from codecrafter.database.connection import get_engine, get_session_factory
    >>>
    >>> config = DatabaseConfig(url="postgresql+asyncpg://localhost/codecrafter")
    >>> engine = get_engine(config)
    >>> SessionFactory = get_session_factory(engine)
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from codecrafter.config import DatabaseConfig
from codecrafter.database.models.base import Base


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    Pool sizing applies to server databases only; SQLite URLs get the
    dialect's default pool, and every SQLite transaction starts with
    BEGIN IMMEDIATE so concurrent writers wait on the busy timeout instead
    of failing when one of them tries to upgrade a read lock.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured AsyncEngine instance.
    """
    if make_url(config.url).get_backend_name() == "sqlite":
        engine = create_async_engine(config.url, echo=config.echo)
        _use_immediate_transactions(engine)
        return engine

    return create_async_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    The returned factory produces AsyncSession instances configured with
    expire_on_commit=False so records can be read after commit without
    triggering lazy loads.

    Args:
        engine: AsyncEngine to bind sessions to.

    Returns:
        Configured async_sessionmaker that produces AsyncSession instances.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables and indexes that do not exist yet.

    Args:
        engine: Engine connected to the target database.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
