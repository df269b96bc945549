from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from ouca.config import settings

# Sync engine for Celery workers (swap the async driver for its sync counterpart)
_SYNC_DRIVERS = {"+asyncpg": "+psycopg2", "+aiosqlite": ""}


def to_sync_url(url: str) -> str:
    for async_driver, sync_driver in _SYNC_DRIVERS.items():
        url = url.replace(async_driver, sync_driver)
    return url


def engine_options(url: str) -> dict[str, Any]:
    # In-memory SQLite must share a single connection across sessions
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True}


engine = create_async_engine(
    settings.DATABASE_URL, echo=False, **engine_options(settings.DATABASE_URL)
)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)

sync_url = to_sync_url(settings.DATABASE_URL)
sync_engine = create_engine(sync_url, echo=False, **engine_options(sync_url))
sync_session_factory = sessionmaker(sync_engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession]:
    async with async_session_factory() as session:
        yield session
