"""Database engine and session factory construction for the link shortener.

This module builds the SQLAlchemy async engine and session factory from
settings. Nothing here is created at import time: the application lifespan
owns the engine through :class:`shortlinks.store.LinkStore`.

Flow Diagram - Engine Lifecycle
===============================
::
    ┌─────────────┐
    │  lifespan   │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ build_engine│
    │ (settings)  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ build_      │
    │ sessionmaker│
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ create_all  │
    │ (init)      │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve       │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ dispose()   │
    │ (shutdown)  │
    └─────────────┘

Key Behaviours
===============
- PostgreSQL (``asyncpg``) gets a sized connection pool with pre-ping.
- SQLite (``aiosqlite``) uses the dialect's default pool; pool sizing
  arguments are not passed.
- Sessions do not expire objects on commit so records can be returned
  after the transaction closes.

Classes:
    Base:  SQLAlchemy declarative base for all models.

Functions:
    build_engine():  Creates the async engine from settings.
    build_sessionmaker():  Creates the async session factory for an engine.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shortlinks.config import Settings

__all__ = ["Base", "build_engine", "build_sessionmaker"]


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    if settings.is_sqlite:
        return create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
