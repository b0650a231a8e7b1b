"""App catalog service — refresh, lookup and usable flag management."""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from steamhistory.apps.models import AppModel
from steamhistory.apps.schemas import AppEntry
from steamhistory.common.exceptions import AppNotFoundError
from steamhistory.history.service import HistoryService

logger = logging.getLogger(__name__)


class AppService:
    """Catalog of Steam apps and their usable flag."""

    def __init__(self, history: HistoryService | None = None):
        self.history = history or HistoryService()

    async def all_usable(self, session: AsyncSession) -> list[AppModel]:
        return await self._by_flag(session, True)

    async def all_unusable(self, session: AsyncSession) -> list[AppModel]:
        return await self._by_flag(session, False)

    async def _by_flag(self, session: AsyncSession, usable: bool) -> list[AppModel]:
        result = await session.execute(
            select(AppModel).where(AppModel.usable.is_(usable)).order_by(AppModel.id)
        )
        return list(result.scalars().all())

    async def get_by_id(self, session: AsyncSession, app_id: int) -> AppModel | None:
        return await session.get(AppModel, app_id)

    async def get_name(self, session: AsyncSession, app_id: int) -> str:
        app = await self.get_by_id(session, app_id)
        if app is None:
            raise AppNotFoundError(f"No app with ID {app_id}")
        return app.name

    async def upsert_many(
        self,
        session: AsyncSession,
        entries: Iterable[AppEntry | Mapping[str, Any]],
    ) -> tuple[int, int]:
        """Apply a catalog refresh. Returns (created, renamed).

        Known ids only get their name updated; the usable flag is left
        alone. New ids start out usable. Ids missing from the refresh are
        kept as they are.
        """
        incoming: dict[int, str] = {}
        for entry in entries:
            if not isinstance(entry, AppEntry):
                entry = AppEntry.model_validate(entry)
            # Steam's list repeats some ids; the last name wins
            incoming[entry.id] = entry.name
        if not incoming:
            return 0, 0

        result = await session.execute(select(AppModel.id, AppModel.name))
        existing = {row.id: row.name for row in result}

        now = datetime.now(timezone.utc)
        created = [
            {"id": app_id, "name": name, "usable": True, "created_at": now, "updated_at": now}
            for app_id, name in incoming.items()
            if app_id not in existing
        ]
        renamed = [
            {"id": app_id, "name": name, "updated_at": now}
            for app_id, name in incoming.items()
            if app_id in existing and existing[app_id] != name
        ]
        if created:
            await session.execute(insert(AppModel), created)
        if renamed:
            await session.execute(update(AppModel), renamed)
        await session.flush()
        logger.info("Catalog refresh: %d new, %d renamed", len(created), len(renamed))
        return len(created), len(renamed)

    async def set_usable(
        self, session: AsyncSession, app_id: int, usable: bool
    ) -> bool:
        """Set the usable flag. Returns True if the flag actually changed.

        Every transition drops the app's history in the same transaction:
        an unusable app keeps none, and a reactivated one starts empty even
        if a collector run still appended a sample after deactivation.
        """
        app = await self.get_by_id(session, app_id)
        if app is None:
            raise AppNotFoundError(f"No app with ID {app_id}")
        if app.usable == usable:
            return False
        app.usable = usable
        removed = await self.history.delete_all(session, app_id)
        if removed:
            logger.debug("Dropped %d samples of app %d", removed, app_id, extra={"app_id": app_id})
        await session.flush()
        return True

    async def search(
        self, session: AsyncSession, query: str, limit: int = 10
    ) -> list[AppModel]:
        """Case-insensitive substring match on app names."""
        needle = query.strip().lower()
        result = await session.execute(
            select(AppModel)
            .where(func.lower(AppModel.name).contains(needle, autoescape=True))
            .order_by(AppModel.name, AppModel.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, usable: bool | None = None) -> int:
        query = select(func.count(AppModel.id))
        if usable is not None:
            query = query.where(AppModel.usable.is_(usable))
        return (await session.execute(query)).scalar() or 0
