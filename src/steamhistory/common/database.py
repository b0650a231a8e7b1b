"""Async engine and session scope for the catalog and history tables."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from steamhistory.common.config import SteamHistorySettings, get_settings
from steamhistory.common.logging import get_logger
from steamhistory.common.models import Base

# Both tables must be registered on Base.metadata before create_all().
import steamhistory.apps.models  # noqa: F401
import steamhistory.history.models  # noqa: F401

logger = get_logger("database")

SQLITE_LOCK_TIMEOUT = 30


def _is_file_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:")


class DatabaseManager:
    """Owns the async engine shared by every worker of a batch.

    Each unit of work (one fetched sample, one classifier decision) opens
    its own session through :meth:`get_session`, so writes for different
    apps never share a transaction.
    """

    def __init__(self, settings: SteamHistorySettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        options = {}
        if url.startswith("sqlite"):
            # Hundreds of workers queue on SQLite's single writer lock
            options["connect_args"] = {"timeout": SQLITE_LOCK_TIMEOUT}
        self.engine = create_async_engine(url, echo=False, **options)
        if _is_file_sqlite(url):
            event.listen(self.engine.sync_engine, "connect", _enable_wal)
        self._sessions = async_sessionmaker(self.engine, expire_on_commit=False)
        logger.debug("Database engine ready for %s", self.engine.url.render_as_string())

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        return self.engine

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """One transaction: committed on exit, rolled back on any error."""
        self._require_engine()
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                logger.debug("Session rolled back", exc_info=True)
                raise

    async def create_all(self) -> None:
        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self._sessions = None


def _enable_wal(dbapi_connection, connection_record) -> None:
    # Readers keep working while a collector batch holds the writer lock
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()
