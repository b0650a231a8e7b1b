"""Analysis service — classify apps as usable or unusable."""

import logging

from steamhistory.analysis.rules import should_deactivate, should_reactivate
from steamhistory.apps.models import AppModel
from steamhistory.apps.service import AppService
from steamhistory.common.config import SteamHistorySettings
from steamhistory.common.database import DatabaseManager
from steamhistory.common.pool import BatchResult, run_pool
from steamhistory.history.service import HistoryService
from steamhistory.steam.client import UsageSource

logger = logging.getLogger(__name__)


class AnalysisService:
    """Flips the usable flag of apps based on their history or a live sample.

    Deactivation judges the recorded history while reactivation judges a
    single live sample, so an app hovering around both thresholds can be
    switched back and forth on consecutive runs.
    """

    def __init__(
        self,
        settings: SteamHistorySettings,
        db: DatabaseManager,
        source: UsageSource,
        apps: AppService,
        history: HistoryService,
    ):
        self.settings = settings
        self.db = db
        self.source = source
        self.apps = apps
        self.history = history

    async def detect_unusable_apps(self) -> BatchResult:
        """Mark apps nobody plays as unusable and drop their history.

        Each app is judged in its own transaction; a failure on one app is
        logged and the pass moves on.
        """
        async with self.db.get_session() as session:
            apps = await self.apps.all_usable(session)

        result = BatchResult(operation="detect_unusable", total=len(apps))
        for app in apps:
            try:
                async with self.db.get_session() as session:
                    count, avg = await self.history.aggregate(session, app.id)
                    changed = False
                    if should_deactivate(count, avg):
                        changed = await self.apps.set_usable(session, app.id, False)
            except Exception:
                result.failed += 1
                logger.warning(
                    "Failed to classify app %d", app.id,
                    exc_info=True, extra={"app_id": app.id},
                )
                continue
            result.succeeded += 1
            if changed:
                result.changed.append(app.id)
                logger.info(
                    "Marked app %s (%d) as unusable.", app.name, app.id,
                    extra={"app_id": app.id},
                )

        logger.info(
            "detect_unusable finished: %d of %d apps marked unusable",
            len(result.changed), result.total,
        )
        return result

    async def detect_usable_apps(self) -> BatchResult:
        """Check whether any unusable app has players again."""
        async with self.db.get_session() as session:
            apps = await self.apps.all_unusable(session)

        async def check(app: AppModel) -> bool:
            count = await self.source.get_user_count(app.id)
            if not should_reactivate(count):
                return False
            async with self.db.get_session() as session:
                changed = await self.apps.set_usable(session, app.id, True)
            if changed:
                logger.info(
                    "Marked app %s (%d) as usable.", app.name, app.id,
                    extra={"app_id": app.id},
                )
            return changed

        result = await run_pool(
            apps, check,
            workers=self.settings.worker_count,
            operation="detect_usable",
        )
        result.changed = [app.id for app in result.changed]
        return result

    # ── Counters ──

    async def count_all_apps(self) -> int:
        async with self.db.get_session() as session:
            return await self.apps.count(session)

    async def count_usable_apps(self) -> int:
        async with self.db.get_session() as session:
            return await self.apps.count(session, usable=True)

    async def count_unusable_apps(self) -> int:
        async with self.db.get_session() as session:
            return await self.apps.count(session, usable=False)
