"""Time-series storage using Redis sorted sets (score = timestamp in ms)."""

import json
from dataclasses import dataclass

from storage.redis_client import RedisClient


def ts_key(stream_id: str) -> str:
    return f"ts:{stream_id}"


@dataclass
class WindowStats:
    count: int
    min_val: float
    mean: float
    max_val: float


def summarize(values: list[float]) -> WindowStats | None:
    """Single-bucket min/mean/max/count. None when the window holds no points."""
    if not values:
        return None
    count = len(values)
    return WindowStats(
        count=count,
        min_val=min(values),
        mean=sum(values) / count,
        max_val=max(values),
    )


class TimeSeriesWriter:
    """
    Buffers readings and writes them in one Redis pipeline per batch.
    Entries older than the retention period are trimmed on each flush.
    """

    def __init__(self, client: RedisClient, pipeline_batch: int = 50, retention_ms: int = 86_400_000):
        self._client = client
        self._batch_size = pipeline_batch
        self._retention_ms = retention_ms
        self._pending: list[tuple[str, float, float]] = []

    def write(self, stream_id: str, timestamp_ms: float, value: float):
        self._pending.append((stream_id, timestamp_ms, value))
        if len(self._pending) >= self._batch_size:
            self.flush()

    def flush(self):
        if not self._pending:
            return
        pending, self._pending = self._pending, []

        def _op(r):
            pipe = r.pipeline()
            newest = 0.0
            keys = set()
            for stream_id, timestamp_ms, value in pending:
                # Timestamp is part of the member so repeated values stay distinct
                member = json.dumps({"ts": timestamp_ms, "value": value})
                pipe.zadd(ts_key(stream_id), {member: timestamp_ms})
                newest = max(newest, timestamp_ms)
                keys.add(ts_key(stream_id))
            cutoff = newest - self._retention_ms
            for key in keys:
                pipe.zremrangebyscore(key, "-inf", f"({cutoff}")
            pipe.execute()

        self._client.execute_with_retry(_op)

    @property
    def pending(self) -> int:
        return len(self._pending)


class TimeSeriesReader:
    """Read-side queries over the sorted sets written by TimeSeriesWriter."""

    def __init__(self, client: RedisClient):
        self._client = client

    def window_stats(self, stream_ids: list[str], start_ms: float, end_ms: float) -> dict[str, WindowStats | None]:
        """Aggregate every stream over [start_ms, end_ms) in a single pipelined round trip."""
        if not stream_ids:
            return {}

        def _query(r):
            pipe = r.pipeline(transaction=False)
            for stream_id in stream_ids:
                pipe.zrangebyscore(ts_key(stream_id), start_ms, f"({end_ms}")
            return pipe.execute()

        replies = self._client.execute_with_retry(_query)
        return {
            stream_id: summarize([json.loads(member)["value"] for member in raw])
            for stream_id, raw in zip(stream_ids, replies)
        }
