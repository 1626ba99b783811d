from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from usage_monitor.core.config.settings import get_settings

logger = logging.getLogger(__name__)

DATABASE_URL = get_settings().database_url


def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(database_url: str) -> AsyncEngine:
    url = make_url(database_url)
    created = create_async_engine(url, echo=False)
    if _is_sqlite(url):
        # SQLite enforces the user foreign keys only when enabled per connection.
        event.listen(created.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return created


engine = _create_engine(DATABASE_URL)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


def _ensure_sqlite_dir(url: URL) -> None:
    if not _is_sqlite(url) or url.database in (None, "", ":memory:"):
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


async def _safe_rollback(session: AsyncSession) -> None:
    if not session.in_transaction():
        return
    try:
        await asyncio.shield(session.rollback())
    except Exception:
        return


async def _safe_close(session: AsyncSession) -> None:
    try:
        await asyncio.shield(session.close())
    except Exception:
        return


async def get_session() -> AsyncIterator[AsyncSession]:
    session = SessionLocal()
    try:
        yield session
    except BaseException:
        await _safe_rollback(session)
        raise
    finally:
        if session.in_transaction():
            await _safe_rollback(session)
        await _safe_close(session)


async def init_db() -> None:
    from usage_monitor.db.models import Base

    _ensure_sqlite_dir(engine.url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready url=%s", engine.url.render_as_string(hide_password=True))


async def close_db() -> None:
    await engine.dispose()
