"""Async database engine and session helpers."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from unseen.storage.models import Base

logger = logging.getLogger(__name__)

_engines: dict[str, AsyncEngine] = {}


def _resolve_url(db_url: Optional[str]) -> str:
    if db_url is None:
        from unseen.config import get_settings

        db_url = get_settings().general.db_url
    return db_url


def get_engine(db_url: Optional[str] = None) -> AsyncEngine:
    """Get (or create) the engine for a database URL."""
    db_url = _resolve_url(db_url)
    if db_url not in _engines:
        url = make_url(db_url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        kwargs = {}
        if url.get_backend_name() == "sqlite":
            # Each CLI command runs its own event loop; pooled connections would outlive it
            kwargs["poolclass"] = NullPool
        _engines[db_url] = create_async_engine(db_url, **kwargs)
    return _engines[db_url]


@asynccontextmanager
async def get_session(db_url: Optional[str] = None) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""
    factory = async_sessionmaker(get_engine(db_url), expire_on_commit=False)
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(db_url: Optional[str] = None) -> None:
    """Create all tables if they don't exist."""
    engine = get_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized: %s", engine.url.render_as_string(hide_password=True))


async def dispose_engines() -> None:
    for engine in _engines.values():
        await engine.dispose()
    _engines.clear()
