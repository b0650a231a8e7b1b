"""SteamHistory: concurrent-user history collector for Steam applications."""

from steamhistory.common.pool import BatchResult, run_pool

__all__ = [
    "BatchResult",
    "run_pool",
]
__version__ = "0.1.0"
