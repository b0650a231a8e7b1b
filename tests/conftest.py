"""Shared test fixtures for SteamHistory."""

import asyncio
import os

import pytest
from httpx import ASGITransport, AsyncClient

from steamhistory.apps.schemas import AppEntry
from steamhistory.common.exceptions import SourceError


class FakeSource:
    """In-process stand-in for the Steam Web API.

    ``counts`` maps app ids to the live user count to report; ids in
    ``failing`` raise SourceError. Tracks how many calls overlap.
    """

    def __init__(self):
        self.counts: dict[int, int] = {}
        self.failing: set[int] = set()
        self.apps: list[AppEntry] = []
        self.calls: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_user_count(self, app_id: int) -> int:
        self.calls.append(app_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Let other workers run so overlap is observable
            await asyncio.sleep(0)
            if app_id in self.failing:
                raise SourceError(f"No player count for app {app_id}")
            return self.counts.get(app_id, 0)
        finally:
            self.in_flight -= 1

    async def get_apps(self) -> list[AppEntry]:
        return list(self.apps)


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def db_url(tmp_path):
    # File-backed so concurrent sessions get their own connections
    return f"sqlite+aiosqlite:///{tmp_path / 'steamhistory.db'}"


@pytest.fixture
def app(db_url):
    """Create a test app with a throwaway DB and in-memory cache."""
    os.environ["STEAMHISTORY_DB_URL"] = db_url
    os.environ["STEAMHISTORY_CACHE_BACKEND"] = "memory"
    os.environ["STEAMHISTORY_ENVIRONMENT"] = "development"
    os.environ["STEAMHISTORY_STEAM_API_KEY"] = "test-steam-key"

    # Clear caches and singletons so new env vars take effect
    from steamhistory.common.config import get_settings
    get_settings.cache_clear()

    from steamhistory.deps import reset_singletons
    reset_singletons()

    from steamhistory.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from steamhistory.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()
