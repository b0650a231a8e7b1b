"""History service — append, read, aggregate and drop usage samples."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from steamhistory.apps.models import AppModel
from steamhistory.history.models import UsageRecordModel


def to_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class HistoryService:
    """Per-app append-only usage history.

    All rows of one app form that app's history. The history comes into
    existence with the first appended record and disappears with
    :meth:`delete_all`.
    """

    async def append_record(
        self,
        session: AsyncSession,
        app_id: int,
        count: int,
        recorded_at: datetime | None = None,
    ) -> UsageRecordModel:
        """Append one sample, stamped with the current time by default."""
        if count < 0:
            raise ValueError(f"User count must be non-negative, got {count}")
        if recorded_at is None:
            recorded_at = datetime.now(timezone.utc)
        record = UsageRecordModel(
            app_id=app_id,
            recorded_at=to_utc(recorded_at).replace(microsecond=0),
            count=count,
        )
        session.add(record)
        await session.flush()
        return record

    async def read_all(
        self, session: AsyncSession, app_id: int
    ) -> list[UsageRecordModel]:
        """All samples of an app, oldest first."""
        result = await session.execute(
            select(UsageRecordModel)
            .where(UsageRecordModel.app_id == app_id)
            .order_by(UsageRecordModel.recorded_at, UsageRecordModel.id)
        )
        return list(result.scalars().all())

    async def delete_all(self, session: AsyncSession, app_id: int) -> int:
        """Drop the whole history of an app. Returns the number of removed samples."""
        result = await session.execute(
            delete(UsageRecordModel).where(UsageRecordModel.app_id == app_id)
        )
        await session.flush()
        return result.rowcount or 0

    async def aggregate(
        self, session: AsyncSession, app_id: int
    ) -> tuple[int, float]:
        """Return (number of samples, mean user count). Empty history is (0, 0.0)."""
        result = await session.execute(
            select(
                func.count(UsageRecordModel.id),
                func.avg(UsageRecordModel.count),
            ).where(UsageRecordModel.app_id == app_id)
        )
        count, avg = result.one()
        return count or 0, float(avg or 0.0)

    async def most_popular_today(
        self,
        session: AsyncSession,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[dict]:
        """Usable apps with the highest peak user count over the last 24 hours."""
        now = to_utc(now or datetime.now(timezone.utc))
        peak = func.max(UsageRecordModel.count).label("peak")
        result = await session.execute(
            select(AppModel.id, AppModel.name, peak)
            .select_from(UsageRecordModel)
            .join(AppModel, AppModel.id == UsageRecordModel.app_id)
            .where(
                AppModel.usable.is_(True),
                UsageRecordModel.recorded_at >= now - timedelta(days=1),
            )
            .group_by(AppModel.id, AppModel.name)
            .order_by(peak.desc(), AppModel.id)
            .limit(limit)
        )
        return [
            {"id": row.id, "name": row.name, "peak": row.peak}
            for row in result
        ]
