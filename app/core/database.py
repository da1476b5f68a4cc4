"""
Async storage

One SQLAlchemy async engine (aiosqlite by default) shared by every SQLModel
table. Requests get a session through `get_db`; background tasks, scheduled
jobs and websocket handlers open their own from `get_session_factory()`.
"""
from pathlib import Path
from typing import AsyncGenerator
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel
from loguru import logger

from .config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    parsed = make_url(url)
    connect_args = {}
    if parsed.get_backend_name() == "sqlite":
        # concurrent background writers wait on the file lock instead of failing
        connect_args["timeout"] = 30
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, echo=echo, connect_args=connect_args)


engine = build_engine(settings.database_url, echo=settings.debug and settings.is_development)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session for one request; committed when the handler returns cleanly"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    return AsyncSessionLocal


async def init_db() -> None:
    from app import models  # noqa: F401  registers the tables

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database ready: {} tables on {}", len(SQLModel.metadata.tables), engine.url.render_as_string(hide_password=True))


async def close_db() -> None:
    await engine.dispose()
