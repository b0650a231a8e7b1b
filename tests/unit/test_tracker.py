"""Tests for tracker service — usage collection and catalog refresh."""

import pytest

from steamhistory.apps.schemas import AppEntry
from steamhistory.apps.service import AppService
from steamhistory.common.config import SteamHistorySettings
from steamhistory.common.database import DatabaseManager
from steamhistory.common.exceptions import SourceError
from steamhistory.history.service import HistoryService
from steamhistory.tracker.service import TrackerService


def make_settings(**overrides) -> SteamHistorySettings:
    defaults = {"worker_count": 8}
    defaults.update(overrides)
    return SteamHistorySettings(**defaults)


@pytest.fixture
async def db(db_url):
    manager = DatabaseManager(make_settings(db_url=db_url))
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def history():
    return HistoryService()


@pytest.fixture
def apps(history):
    return AppService(history)


@pytest.fixture
def svc(db, fake_source, apps, history):
    return TrackerService(
        make_settings(), db, fake_source, apps, history,
        catalog_source=fake_source,
    )


async def _create_apps(db, apps, ids):
    async with db.get_session() as session:
        await apps.upsert_many(session, [{"id": i, "name": f"App {i}"} for i in ids])


async def _record_counts(db, history, ids):
    async with db.get_session() as session:
        return {i: len(await history.read_all(session, i)) for i in ids}


class TestRecordHistory:
    async def test_one_record_per_app(self, db, svc, apps, history, fake_source):
        ids = list(range(1, 41))
        await _create_apps(db, apps, ids)
        fake_source.counts = {i: i * 10 for i in ids}

        result = await svc.record_history()

        assert result.total == 40
        assert result.succeeded == 40
        assert result.failed == 0
        assert result.changed == []
        assert await _record_counts(db, history, ids) == {i: 1 for i in ids}
        async with db.get_session() as session:
            (record,) = await history.read_all(session, 7)
            assert record.count == 70

    async def test_failed_fetch_writes_nothing(self, db, svc, apps, history, fake_source):
        ids = [10, 20, 30, 40]
        await _create_apps(db, apps, ids)
        fake_source.failing = {20, 40}
        fake_source.counts = {10: 1, 30: 3}

        result = await svc.record_history()

        assert result.succeeded == 2
        assert result.failed == 2
        assert await _record_counts(db, history, ids) == {10: 1, 20: 0, 30: 1, 40: 0}

    async def test_only_usable_apps_are_fetched(self, db, svc, apps, fake_source):
        await _create_apps(db, apps, [10, 20])
        async with db.get_session() as session:
            await apps.set_usable(session, 20, False)

        await svc.record_history()

        assert fake_source.calls == [10]

    async def test_worker_width_respected(self, db, apps, history, fake_source):
        await _create_apps(db, apps, range(1, 31))
        svc = TrackerService(make_settings(worker_count=3), db, fake_source, apps, history)

        result = await svc.record_history()

        assert result.succeeded == 30
        assert fake_source.max_in_flight <= 3

    async def test_no_usable_apps(self, svc, fake_source):
        result = await svc.record_history()
        assert result.total == 0
        assert fake_source.calls == []

    async def test_store_failure_propagates(self, svc, db):
        await db.close()
        with pytest.raises(RuntimeError):
            await svc.record_history()


class TestUpdateMetadata:
    async def test_refresh_creates_and_renames(self, db, svc, apps, fake_source):
        await _create_apps(db, apps, [10])
        fake_source.apps = [
            AppEntry(id=10, name="Counter-Strike"),
            AppEntry(id=20, name="Team Fortress Classic"),
        ]

        assert await svc.update_metadata() == (1, 1)
        async with db.get_session() as session:
            assert await apps.get_name(session, 10) == "Counter-Strike"
            assert (await apps.get_by_id(session, 20)).usable is True

    async def test_source_failure_propagates(self, db, apps, history):
        class BrokenCatalog:
            async def get_apps(self):
                raise SourceError("HTTP 503 from /ISteamApps/GetAppList/v2/")

        svc = TrackerService(
            make_settings(), db, None, apps, history, catalog_source=BrokenCatalog(),
        )
        with pytest.raises(SourceError):
            await svc.update_metadata()

    async def test_requires_catalog_source(self, db, fake_source, apps, history):
        svc = TrackerService(make_settings(), db, fake_source, apps, history)
        with pytest.raises(RuntimeError):
            await svc.update_metadata()
