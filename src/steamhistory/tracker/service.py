"""Tracker service — collect user counts and refresh the app catalog."""

import logging

from steamhistory.apps.models import AppModel
from steamhistory.apps.service import AppService
from steamhistory.common.config import SteamHistorySettings
from steamhistory.common.database import DatabaseManager
from steamhistory.common.pool import BatchResult, run_pool
from steamhistory.history.service import HistoryService
from steamhistory.steam.client import CatalogSource, UsageSource

logger = logging.getLogger(__name__)


class TrackerService:
    """Periodic collection of usage samples for every usable app."""

    def __init__(
        self,
        settings: SteamHistorySettings,
        db: DatabaseManager,
        source: UsageSource,
        apps: AppService,
        history: HistoryService,
        catalog_source: CatalogSource | None = None,
    ):
        self.settings = settings
        self.db = db
        self.source = source
        self.apps = apps
        self.history = history
        self.catalog_source = catalog_source

    async def record_history(self) -> BatchResult:
        """Record the current number of users of every usable app.

        Returns after every app has either produced exactly one sample or
        been skipped with a logged error. A store failure while listing the
        apps propagates.
        """
        async with self.db.get_session() as session:
            apps = await self.apps.all_usable(session)
        logger.info("Recording usage of %d apps", len(apps))

        async def record(app: AppModel) -> None:
            count = await self.source.get_user_count(app.id)
            async with self.db.get_session() as session:
                await self.history.append_record(session, app.id, count)

        return await run_pool(
            apps, record,
            workers=self.settings.worker_count,
            operation="record_history",
        )

    async def update_metadata(self) -> tuple[int, int]:
        """Refresh app names from Steam. Returns (created, renamed)."""
        if self.catalog_source is None:
            raise RuntimeError("TrackerService has no catalog source configured")
        entries = await self.catalog_source.get_apps()
        logger.info("Steam reported %d apps", len(entries))
        async with self.db.get_session() as session:
            return await self.apps.upsert_many(session, entries)
