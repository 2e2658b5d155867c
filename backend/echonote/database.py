"""
EchoNote Backend: Database Engine & Session Management
========================================================

What:  Async SQLAlchemy engine factory, session factory, declarative base,
       and the transactional `session_scope` used by the repositories.
How:   `create_engine_from_settings()` builds an async engine with connection
       pooling; `session_scope()` yields a session that commits on success
       and rolls back on error.
Who:   Engine and session factory are created by the application lifespan
       (or by tests) and handed to the repositories through their constructors.

Transaction Model:
    Every repository call runs in its own short-lived session and commits
    independently. The audio pipeline relies on this: the `processing` and
    `failed` job statuses must be durable even when a later step raises.
    A request-scoped session that rolls back on error would erase the
    `failed` marker together with the failure.

Connection Pooling (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600.
    SQLite uses SQLAlchemy's default pool and ignores these options.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from echonote.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic autogenerate and by
    `init_models()` for development/test schema creation.
    """
    pass


# ── Engine & Session Factory ──────────────────────────────────────────────

def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Pool sizing options only apply to server databases; SQLite's pool
    classes reject them.
    """
    options = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory with expire_on_commit=False so records can be mapped
    after the commit without triggering a lazy reload.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide a transactional scope around a series of operations.

    1. Creates a session from the factory
    2. Yields it to the caller
    3. Commits on success, rolls back on any exception (and re-raises)
    4. Always closes the session (returns the connection to the pool)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────

async def init_models(engine: AsyncEngine) -> None:
    """
    Create all tables registered on `Base.metadata` if they do not exist.

    Used for SQLite development databases and the test suite. Production
    deployments run `alembic upgrade head` instead.
    """
    # Import models so they register with Base.metadata
    from echonote.models import audio_job, note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully closes all pooled connections (application shutdown)."""
    await engine.dispose()
