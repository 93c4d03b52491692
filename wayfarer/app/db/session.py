# wayfarer/app/db/session.py
"""
Async database session management for SQLAlchemy.

- asyncpg for PostgreSQL (production)
- aiosqlite for SQLite (local development and tests)

The Principal store's consistency (role reads and single-row role
updates) is delegated entirely to the database's own transactions.
"""
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from wayfarer.app.core.config import Settings, get_settings


def create_engine_for(settings: Settings) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    SQLite (local development):
    - NullPool, one connection per session
    - check_same_thread=False for async compatibility

    PostgreSQL (production):
    - AsyncAdaptedQueuePool with pre-ping and a 5 minute recycle
    """
    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: model attributes stay readable after commit
    # autoflush=False: explicit control over DB writes
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Global async engine instance
# Created once at module load, reused across all requests
# ─────────────────────────────────────────────────────────────────────────────
engine: AsyncEngine = create_engine_for(get_settings())

AsyncSessionLocal: async_sessionmaker[AsyncSession] = create_sessionmaker(engine)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Sessions come from the sessionmaker create_app() built for the app's
    own Settings, falling back to the module-level one.

    Usage in FastAPI endpoints:
        @router.get("/journal")
        async def list_journal(db: AsyncSession = Depends(get_db)):
            ...

    Note: This does NOT auto-commit. Services must explicitly commit:
        await db.commit()
    """
    sessionmaker = getattr(request.app.state, "sessionmaker", AsyncSessionLocal)
    async with sessionmaker() as session:
        yield session
