"""Tests for app catalog service — refresh, flags, search, counters."""

import pytest

from steamhistory.apps.schemas import AppEntry
from steamhistory.apps.service import AppService
from steamhistory.common.config import SteamHistorySettings
from steamhistory.common.database import DatabaseManager
from steamhistory.common.exceptions import AppNotFoundError
from steamhistory.history.service import HistoryService


def make_settings(**overrides) -> SteamHistorySettings:
    defaults = {"db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return SteamHistorySettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def history():
    return HistoryService()


@pytest.fixture
def svc(history):
    return AppService(history)


class TestUpsertMany:
    async def test_new_apps_default_usable(self, db, svc):
        async with db.get_session() as session:
            created, renamed = await svc.upsert_many(session, [
                {"id": 10, "name": "Team Fortress Classic"},
                AppEntry(id=20, name="Day of Defeat"),
            ])
        assert (created, renamed) == (2, 0)
        async with db.get_session() as session:
            app = await svc.get_by_id(session, 10)
            assert app.name == "Team Fortress Classic"
            assert app.usable is True
            assert len(await svc.all_usable(session)) == 2

    async def test_existing_app_only_renamed(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "Old"}])
        async with db.get_session() as session:
            await svc.set_usable(session, 10, False)
        async with db.get_session() as session:
            created, renamed = await svc.upsert_many(session, [{"id": 10, "name": "New"}])
        assert (created, renamed) == (0, 1)
        async with db.get_session() as session:
            app = await svc.get_by_id(session, 10)
            assert app.name == "New"
            assert app.usable is False

    async def test_unchanged_name_not_counted(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "Same"}])
        async with db.get_session() as session:
            assert await svc.upsert_many(session, [{"id": 10, "name": "Same"}]) == (0, 0)

    async def test_absent_ids_are_kept(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "A"}, {"id": 20, "name": "B"}])
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 20, "name": "B"}])
        async with db.get_session() as session:
            app = await svc.get_by_id(session, 10)
            assert app is not None
            assert app.usable is True

    async def test_duplicate_ids_last_name_wins(self, db, svc):
        async with db.get_session() as session:
            created, _ = await svc.upsert_many(session, [
                {"id": 10, "name": "First"}, {"id": 10, "name": "Second"},
            ])
        assert created == 1
        async with db.get_session() as session:
            assert await svc.get_name(session, 10) == "Second"

    async def test_empty_refresh(self, db, svc):
        async with db.get_session() as session:
            assert await svc.upsert_many(session, []) == (0, 0)


class TestSetUsable:
    async def test_deactivation_drops_history(self, db, svc, history):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "A"}, {"id": 20, "name": "B"}])
        async with db.get_session() as session:
            await history.append_record(session, 10, 3)
            await history.append_record(session, 20, 7)
        async with db.get_session() as session:
            assert await svc.set_usable(session, 10, False) is True
        async with db.get_session() as session:
            assert await history.read_all(session, 10) == []
            assert len(await history.read_all(session, 20)) == 1
            assert [a.id for a in await svc.all_unusable(session)] == [10]

    async def test_reactivation_starts_empty(self, db, svc, history):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "A"}])
        async with db.get_session() as session:
            await svc.set_usable(session, 10, False)
        # A late sample from a collector run that started before deactivation
        async with db.get_session() as session:
            await history.append_record(session, 10, 4)
        async with db.get_session() as session:
            assert await svc.set_usable(session, 10, True) is True
        async with db.get_session() as session:
            assert await history.read_all(session, 10) == []

    async def test_same_flag_is_noop(self, db, svc, history):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": 10, "name": "A"}])
            await history.append_record(session, 10, 1)
        async with db.get_session() as session:
            assert await svc.set_usable(session, 10, True) is False
        async with db.get_session() as session:
            assert len(await history.read_all(session, 10)) == 1

    async def test_unknown_app(self, db, svc):
        with pytest.raises(AppNotFoundError):
            async with db.get_session() as session:
                await svc.set_usable(session, 999, False)


class TestLookup:
    async def test_get_name_unknown(self, db, svc):
        with pytest.raises(AppNotFoundError):
            async with db.get_session() as session:
                await svc.get_name(session, 1)

    async def test_search_case_insensitive(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [
                {"id": 10, "name": "Counter-Strike"},
                {"id": 240, "name": "Counter-Strike: Source"},
                {"id": 440, "name": "Team Fortress 2"},
            ])
        async with db.get_session() as session:
            found = await svc.search(session, "counter")
            assert [a.id for a in found] == [10, 240]

    async def test_search_limit(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": i, "name": f"Game {i}"} for i in range(1, 21)])
        async with db.get_session() as session:
            assert len(await svc.search(session, "game", limit=5)) == 5

    async def test_search_percent_is_literal(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [
                {"id": 1, "name": "Portal"},
                {"id": 2, "name": "100% Orange Juice"},
            ])
        async with db.get_session() as session:
            assert [a.id for a in await svc.search(session, "%")] == [2]

    async def test_search_underscore_is_literal(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [
                {"id": 1, "name": "Portal"},
                {"id": 2, "name": "Dead_Space"},
            ])
        async with db.get_session() as session:
            assert [a.id for a in await svc.search(session, "_")] == [2]
            assert await svc.search(session, "p_rtal") == []

    async def test_counts(self, db, svc):
        async with db.get_session() as session:
            await svc.upsert_many(session, [{"id": i, "name": str(i)} for i in range(1, 6)])
        async with db.get_session() as session:
            await svc.set_usable(session, 1, False)
            await svc.set_usable(session, 2, False)
        async with db.get_session() as session:
            assert await svc.count(session) == 5
            assert await svc.count(session, usable=True) == 3
            assert await svc.count(session, usable=False) == 2
