"""
Media Catalog – Async SQLAlchemy engine, session, and declarative base.

The engine is owned by a ``Database`` object that the application lifespan
creates at startup and disposes at shutdown.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from catalog.config import Settings

logger = logging.getLogger(__name__)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class Database:
    """Engine + session factory with an explicit start/stop lifecycle."""

    def __init__(self, settings: Settings):
        engine_kwargs = {
            "echo": settings.DEBUG,
            "future": True,
        }

        # If using PostgreSQL behind PgBouncer (transaction mode), disable
        # prepared statement caching because it is not supported there.
        if "postgresql" in settings.DATABASE_URL:
            engine_kwargs["connect_args"] = {"statement_cache_size": 0}

        self.url = settings.DATABASE_URL
        self.engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        # Register all models on Base.metadata before creating tables
        from catalog import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close pooled connections once in-flight sessions have returned them."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


# ── Dependency for FastAPI routes ──
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield an async database session from the app's Database, auto-closed on exit."""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
