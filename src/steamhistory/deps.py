"""Dependency injection singletons for SteamHistory."""

from steamhistory.analysis.service import AnalysisService
from steamhistory.apps.service import AppService
from steamhistory.cache.backend import CacheBackend, MemoryCache, RedisCache
from steamhistory.cache.reader import CachedReader
from steamhistory.common.config import get_settings
from steamhistory.common.database import DatabaseManager
from steamhistory.history.service import HistoryService
from steamhistory.steam.client import SteamClient
from steamhistory.tracker.service import TrackerService

_db: DatabaseManager | None = None
_steam: SteamClient | None = None
_cache: CacheBackend | None = None
_history: HistoryService | None = None
_apps: AppService | None = None
_tracker: TrackerService | None = None
_analysis: AnalysisService | None = None
_reader: CachedReader | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_steam_client() -> SteamClient:
    global _steam
    if _steam is None:
        settings = get_settings()
        _steam = SteamClient(
            base_url=settings.steam_api_url,
            api_key=settings.steam_api_key,
            timeout=settings.request_timeout,
            max_connections=settings.worker_count,
        )
    return _steam


def get_cache() -> CacheBackend:
    global _cache
    if _cache is None:
        settings = get_settings()
        if settings.cache_backend == "redis":
            _cache = RedisCache(settings.cache_url)
        else:
            _cache = MemoryCache()
    return _cache


def get_history_service() -> HistoryService:
    global _history
    if _history is None:
        _history = HistoryService()
    return _history


def get_app_service() -> AppService:
    global _apps
    if _apps is None:
        _apps = AppService(get_history_service())
    return _apps


def get_tracker_service() -> TrackerService:
    global _tracker
    if _tracker is None:
        steam = get_steam_client()
        _tracker = TrackerService(
            get_settings(), get_db(), steam,
            get_app_service(), get_history_service(),
            catalog_source=steam,
        )
    return _tracker


def get_analysis_service() -> AnalysisService:
    global _analysis
    if _analysis is None:
        _analysis = AnalysisService(
            get_settings(), get_db(), get_steam_client(),
            get_app_service(), get_history_service(),
        )
    return _analysis


def get_reader() -> CachedReader:
    global _reader
    if _reader is None:
        _reader = CachedReader(
            get_settings(), get_db(), get_cache(),
            get_app_service(), get_history_service(),
        )
    return _reader


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _steam, _cache, _history, _apps, _tracker, _analysis, _reader
    _db = None
    _steam = None
    _cache = None
    _history = None
    _apps = None
    _tracker = None
    _analysis = None
    _reader = None
