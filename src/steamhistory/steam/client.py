"""
Async client for the Steam Web API.

Provides the two external sources the collector depends on: the current
number of players of one app, and the full list of apps.
"""

import logging
from typing import Any, Optional, Protocol

import httpx

from steamhistory.apps.schemas import AppEntry
from steamhistory.common.exceptions import SourceError

logger = logging.getLogger(__name__)

PLAYER_COUNT_PATH = "/ISteamUserStats/GetNumberOfCurrentPlayers/v1/"
APP_LIST_PATH = "/ISteamApps/GetAppList/v2/"


class UsageSource(Protocol):
    """Anything that can report the live user count of an app."""

    async def get_user_count(self, app_id: int) -> int: ...


class CatalogSource(Protocol):
    """Anything that can list every known app."""

    async def get_apps(self) -> list[AppEntry]: ...


class SteamClient:
    """
    Asynchronous HTTP client for the Steam Web API.

    One instance is shared by every worker of a batch, so the underlying
    connection pool is sized for the batch width.
    """

    def __init__(
        self,
        base_url: str = "https://api.steampowered.com",
        api_key: str = "",
        timeout: float = 10.0,
        max_connections: int = 200,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_connections = max_connections
        self._http: Optional[httpx.AsyncClient] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                limits=httpx.Limits(
                    max_connections=self.max_connections,
                    max_keepalive_connections=self.max_connections,
                ),
            )
        return self._http

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """Single GET with errors folded into SourceError. No retries."""
        if self.api_key:
            params = {**params, "key": self.api_key}
        try:
            resp = await self._get_http_client().get(path, params=params)
        except httpx.TimeoutException as e:
            raise SourceError(f"Timeout calling {path}") from e
        except httpx.HTTPError as e:
            raise SourceError(f"Request to {path} failed: {e}") from e

        if resp.status_code >= 400:
            raise SourceError(f"HTTP {resp.status_code} from {path}")
        try:
            data = resp.json()
        except ValueError as e:
            raise SourceError(f"Invalid JSON from {path}") from e
        if not isinstance(data, dict):
            raise SourceError(f"Unexpected payload from {path}")
        return data

    # ── Usage ──

    async def get_user_count(self, app_id: int) -> int:
        """Current number of players of an app."""
        data = await self._get_json(PLAYER_COUNT_PATH, {"appid": app_id})
        response = data.get("response") or {}
        # Steam answers 200 with result=42 for apps it has no stats for
        if response.get("result") != 1 or "player_count" not in response:
            raise SourceError(
                f"No player count for app {app_id} (result={response.get('result')})"
            )
        count = int(response["player_count"])
        if count < 0:
            raise SourceError(f"Negative player count for app {app_id}: {count}")
        return count

    # ── Catalog ──

    async def get_apps(self) -> list[AppEntry]:
        """Every app Steam knows about."""
        data = await self._get_json(APP_LIST_PATH, {})
        try:
            raw_apps = data["applist"]["apps"]
        except (KeyError, TypeError) as e:
            raise SourceError("App list payload is missing applist.apps") from e

        apps = []
        for raw in raw_apps:
            try:
                apps.append(AppEntry(id=raw["appid"], name=raw.get("name", "")))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed app list entry: %r", raw)
        return apps

    # ── Lifecycle ──

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
