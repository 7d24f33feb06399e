"""Redis-backed archiver — stream metadata in hashes, readings in sorted sets.

Layout:
    md:streams        set of stream ids
    md:stream:<id>    hash, `path` plus free-form metadata attributes
    ts:<id>           sorted set written by TimeSeriesWriter
"""

from typing import Any

from engine.resolvers import (
    MetadataItem,
    MetadataQuery,
    MetadataResolver,
    StatisticsItem,
    StatisticsResolver,
)
from storage.redis_client import RedisClient
from storage.time_series import TimeSeriesReader

STREAMS_KEY = "md:streams"
PATH_FIELD = "path"

NS_PER_MS = 1_000_000


def stream_key(stream_id: str) -> str:
    return f"md:stream:{stream_id}"


class RedisArchiver(MetadataResolver, StatisticsResolver):
    def __init__(self, client: RedisClient):
        self._client = client
        self._reader = TimeSeriesReader(client)

    def resolve_entities(self, query: MetadataQuery) -> list[MetadataItem]:
        def _query(r):
            stream_ids = sorted(r.smembers(STREAMS_KEY))
            pipe = r.pipeline(transaction=False)
            for stream_id in stream_ids:
                pipe.hgetall(stream_key(stream_id))
            return list(zip(stream_ids, pipe.execute())) if stream_ids else []

        items = []
        for stream_id, fields in self._client.execute_with_retry(_query):
            if not fields:
                continue
            attributes = dict(fields)
            path = attributes.pop(PATH_FIELD, "")
            if query.matches(path, attributes):
                items.append(MetadataItem(stream_id=stream_id, path=path, attributes=attributes))
        return items

    def resolve_statistics(self, stream_ids: list[str], start_ns: int, length_ns: int) -> list[StatisticsItem]:
        stats = self._reader.window_stats(
            stream_ids,
            start_ns / NS_PER_MS,
            (start_ns + length_ns) / NS_PER_MS,
        )
        items = []
        for stream_id, window in stats.items():
            item = StatisticsItem(stream_id=stream_id)
            if window is not None:
                item.min.append(window.min_val)
                item.mean.append(window.mean)
                item.max.append(window.max_val)
                item.count.append(window.count)
            items.append(item)
        return items


class MetadataRegistry:
    """Write side of the metadata layout, used by the development producer."""

    def __init__(self, client: RedisClient):
        self._client = client

    def register(self, stream_id: str, path: str, attributes: dict[str, Any]):
        mapping = {k: str(v) for k, v in attributes.items()}
        mapping[PATH_FIELD] = path

        def _op(r):
            pipe = r.pipeline()
            pipe.hset(stream_key(stream_id), mapping=mapping)
            pipe.sadd(STREAMS_KEY, stream_id)
            pipe.execute()

        self._client.execute_with_retry(_op)

    def unregister(self, stream_id: str):
        def _op(r):
            pipe = r.pipeline()
            pipe.delete(stream_key(stream_id))
            pipe.srem(STREAMS_KEY, stream_id)
            pipe.execute()

        self._client.execute_with_retry(_op)
