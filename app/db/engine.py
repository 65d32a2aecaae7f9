"""Async SQLAlchemy engine and session factory.

With DATABASE_URL set (postgresql+asyncpg://...), this module exposes an
async engine, a session factory and a lifespan hook.  Without it every
export is None and the API serves from the in-memory user repo.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all table models."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Request-scoped session: commit on success, roll back on exception."""
    if async_session_factory is None:
        raise RuntimeError(
            "DATABASE_URL is not configured; cannot create database session"
        )
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_database() -> None:
    """Round-trip a trivial query; raises when the database is unreachable."""
    if engine is None:
        raise RuntimeError("DATABASE_URL is not configured")
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@asynccontextmanager
async def lifespan_db() -> AsyncIterator[None]:
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory user repo")
        yield
        return

    logger.info(
        "Database engine created: %s",
        engine.url.render_as_string(hide_password=True),
    )
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
