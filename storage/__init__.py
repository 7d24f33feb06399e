from .redis_client import RedisClient, CircuitOpenError
from .time_series import TimeSeriesWriter, TimeSeriesReader
from .cache import WindowCache
from .archiver import RedisArchiver, MetadataRegistry
from .watchdog import Watchdog, NullWatchdog, RedisWatchdog, Heartbeat

__all__ = [
    "RedisClient",
    "CircuitOpenError",
    "TimeSeriesWriter",
    "TimeSeriesReader",
    "WindowCache",
    "RedisArchiver",
    "MetadataRegistry",
    "Watchdog",
    "NullWatchdog",
    "RedisWatchdog",
    "Heartbeat",
]
