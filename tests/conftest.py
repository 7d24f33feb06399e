"""Shared test fixtures."""

import pytest

from config import Settings
from engine.query_engine import NS_PER_SEC, QueryEngine
from engine.resolvers import (
    MetadataItem,
    MetadataQuery,
    MetadataResolver,
    StatisticsItem,
    StatisticsResolver,
)

NOW_NS = 1_700_000_000 * NS_PER_SEC
TRACKED_PATH = "hamilton/sensors/s.hamilton/{}/i.temperature/signal/operative"


def metadata_item(stream_id: str, sensor: str, name: str, rcoords: str | None = "1.0,2.0") -> MetadataItem:
    attributes = {"name": name}
    if rcoords is not None:
        attributes["rcoords"] = rcoords
    return MetadataItem(stream_id=stream_id, path=TRACKED_PATH.format(sensor), attributes=attributes)


def stat_item(stream_id: str, mn: float, mean: float, mx: float, count: int) -> StatisticsItem:
    return StatisticsItem(stream_id=stream_id, min=[mn], mean=[mean], max=[mx], count=[count])


class FakeStore(MetadataResolver, StatisticsResolver):
    """In-memory resolvers that record every query they receive."""

    def __init__(self, metadata=None, stats=None):
        self.metadata = list(metadata or [])
        self.stats = list(stats or [])
        self.metadata_error: Exception | None = None
        self.stats_error: Exception | None = None
        self.metadata_calls: list[MetadataQuery] = []
        self.stats_calls: list[tuple[list[str], int, int]] = []

    def resolve_entities(self, query):
        self.metadata_calls.append(query)
        if self.metadata_error:
            raise self.metadata_error
        return list(self.metadata)

    def resolve_statistics(self, stream_ids, start_ns, length_ns):
        self.stats_calls.append((list(stream_ids), start_ns, length_ns))
        if self.stats_error:
            raise self.stats_error
        return [s for s in self.stats if s.stream_id in stream_ids]

    @property
    def upstream_calls(self) -> int:
        return len(self.metadata_calls) + len(self.stats_calls)


class RecordingWatchdog:
    def __init__(self):
        self.kicks: list[str] = []
        self.faults: list[tuple[str, str]] = []

    def kick(self, name, timeout_sec):
        self.kicks.append(name)

    def fault(self, name, reason, timeout_sec=600):
        self.faults.append((name, reason))


@pytest.fixture
def settings():
    """Test settings with localhost defaults."""
    return Settings(
        redis_url="redis://localhost:6379/1",
        watchdog_enabled=False,
        log_level="WARNING",
    )


@pytest.fixture
def store():
    return FakeStore(
        metadata=[metadata_item("u1", "S1", "air_temp")],
        stats=[stat_item("u1", 18.0, 20.0, 22.0, 10)],
    )


@pytest.fixture
def clock():
    """Mutable clock, pinned to NOW_NS until a test moves it."""

    class _Clock:
        now = NOW_NS

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def engine(settings, store, clock):
    return QueryEngine(settings, metadata=store, statistics=store, clock=clock)
