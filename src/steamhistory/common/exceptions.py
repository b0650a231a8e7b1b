"""SteamHistory exception hierarchy."""


class SteamHistoryError(Exception):
    """Base exception for all SteamHistory errors."""

    def __init__(self, message: str = "", code: str = "STEAMHISTORY_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class AppNotFoundError(SteamHistoryError):
    """Raised when an application is not in the catalog."""

    def __init__(self, message: str = "App not found"):
        super().__init__(message, code="NOT_FOUND")


class SourceError(SteamHistoryError):
    """Raised when the Steam Web API call fails or returns an unusable answer."""

    def __init__(self, message: str = "Steam API request failed"):
        super().__init__(message, code="SOURCE_ERROR")


class CacheError(SteamHistoryError):
    """Raised by cache backends when the cache store cannot be reached."""

    def __init__(self, message: str = "Cache unavailable"):
        super().__init__(message, code="CACHE_ERROR")
