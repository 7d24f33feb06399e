"""Query engine — cache lookup, upstream metadata + statistics queries, join, admission."""

import time
import threading
from typing import Callable

from config import Settings, configure_logging
from engine.errors import InvalidParameter, UpstreamQueryError
from engine.join import SnapshotJoiner
from engine.models import Snapshot, WindowKey
from engine.resolvers import MetadataQuery, MetadataResolver, StatisticsResolver
from storage.cache import WindowCache
from storage.watchdog import NullWatchdog, Watchdog

NS_PER_SEC = 1_000_000_000


class QueryEngine:
    """
    Serves one snapshot per window.

    The cache lock is only held for the lookup and for the final
    eviction/admission step; store queries on a miss run unlocked so that
    hits for other windows are never blocked behind them. Concurrent misses
    for the same window are not deduplicated: each does the full round trip
    and the last writer wins.
    """

    def __init__(
        self,
        settings: Settings,
        metadata: MetadataResolver,
        statistics: StatisticsResolver,
        cache: WindowCache | None = None,
        watchdog: Watchdog | None = None,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.settings = settings
        self.log = configure_logging("query-engine", settings.log_level)
        self._metadata = metadata
        self._statistics = statistics
        self._cache = cache if cache is not None else WindowCache(
            high_water=settings.cache_high_water,
            evict_batch=settings.cache_evict_batch,
        )
        self._watchdog = watchdog if watchdog is not None else NullWatchdog()
        self._clock = clock
        self._guard_ns = settings.cache_admission_guard_sec * NS_PER_SEC
        self._query = MetadataQuery(
            required_attribute=settings.coordinate_attribute,
            path_pattern=settings.tracked_path_pattern,
        )
        self._joiner = SnapshotJoiner(
            coordinate_attribute=settings.coordinate_attribute,
            name_attribute=settings.name_attribute,
            log=self.log,
        )

        self._counter_lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.upstream_errors = 0

    @property
    def cache(self) -> WindowCache:
        return self._cache

    def get_snapshot(self, start_ns: int, length_ns: int) -> Snapshot:
        if length_ns <= 0:
            raise InvalidParameter("window", length_ns)
        key = WindowKey(start_ns, length_ns)

        cached = self._cache.get(key)
        if cached is not None:
            self._count("hits")
            return cached
        self._count("misses")

        snapshot = self._build(key)

        evicted = self._cache.evict_overflow()
        if evicted:
            self.log.info("cache_evicted", evicted=evicted, size=len(self._cache))
        if self.is_settled(key):
            self._cache.put(key, snapshot)
            self.log.info("snapshot_cached", window_start=key.start_ns, window_length=key.length_ns)
        else:
            self.log.info("snapshot_not_cached_too_recent", window_start=key.start_ns, window_length=key.length_ns)
        return snapshot

    def is_settled(self, key: WindowKey) -> bool:
        """A window is cacheable once it ended at least the guard interval ago."""
        return key.end_ns <= self._clock() - self._guard_ns

    def _build(self, key: WindowKey) -> Snapshot:
        try:
            items = self._metadata.resolve_entities(self._query)
        except Exception as e:
            self._count("upstream_errors")
            self.log.error("metadata_query_failed", error=str(e))
            raise UpstreamQueryError("metadata", e) from e
        self.log.info("metadata_resolved", results=len(items))
        self._report("archiver.mdq", len(items), "no metadata results")

        drafts, summary = self._joiner.resolve_entities(items)
        stream_ids = self._joiner.stream_ids(drafts)

        try:
            stats = self._statistics.resolve_statistics(stream_ids, key.start_ns, key.length_ns)
        except Exception as e:
            self._count("upstream_errors")
            self.log.error("statistics_query_failed", error=str(e), streams=len(stream_ids))
            raise UpstreamQueryError("statistics", e) from e
        with_points = sum(1 for item in stats if item.has_points)
        self.log.info("statistics_resolved", streams=len(stats), with_points=with_points, requested=len(stream_ids))
        self._report("archiver.dat", with_points, "got zero results")

        records = self._joiner.apply_statistics(drafts, stats, summary)
        return Snapshot(window_start=key.start_ns, window_length=key.length_ns, data=records)

    def _report(self, name: str, results: int, reason: str):
        timeout = self.settings.watchdog_query_timeout_sec
        try:
            if results > 0:
                self._watchdog.kick(name, timeout)
            else:
                self._watchdog.fault(name, reason, timeout)
        except Exception as e:
            self.log.warning("watchdog_report_failed", name=name, error=str(e))

    def _count(self, counter: str):
        with self._counter_lock:
            setattr(self, counter, getattr(self, counter) + 1)
