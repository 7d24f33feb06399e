"""Tests for the window cache and its reader/writer lock."""

import threading
import time

import pytest

from engine.models import Snapshot, WindowKey
from storage.cache import ReadWriteLock, WindowCache


def snap(i: int) -> Snapshot:
    return Snapshot(window_start=i, window_length=300)


class TestWindowCache:
    def test_miss_then_hit(self):
        cache = WindowCache()
        key = WindowKey(100, 300)
        assert cache.get(key) is None
        cache.put(key, snap(100))
        assert cache.get(WindowKey(100, 300)) is not None

    def test_exact_key_match_only(self):
        cache = WindowCache()
        cache.put(WindowKey(100, 300), snap(100))
        assert cache.get(WindowKey(101, 300)) is None
        assert cache.get(WindowKey(100, 299)) is None

    def test_returns_same_object(self):
        cache = WindowCache()
        s = snap(1)
        cache.put(WindowKey(1, 300), s)
        assert cache.get(WindowKey(1, 300)) is s

    def test_never_exceeds_high_water(self):
        cache = WindowCache(high_water=1000, evict_batch=50)
        for i in range(1001):
            cache.put(WindowKey(i, 300), snap(i))
            assert len(cache) <= 1000
        assert WindowKey(1000, 300) in cache
        assert cache.evicted_total == 50

    def test_evicts_oldest_batch_first(self):
        cache = WindowCache(high_water=10, evict_batch=3)
        for i in range(11):
            cache.put(WindowKey(i, 300), snap(i))
        assert len(cache) == 8
        for i in range(3):
            assert WindowKey(i, 300) not in cache
        assert WindowKey(3, 300) in cache

    def test_replacing_existing_key_does_not_evict(self):
        cache = WindowCache(high_water=2, evict_batch=1)
        cache.put(WindowKey(1, 300), snap(1))
        cache.put(WindowKey(2, 300), snap(2))
        assert cache.put(WindowKey(2, 300), snap(2)) == 0
        assert len(cache) == 2

    def test_evict_overflow_below_cap_is_noop(self):
        cache = WindowCache(high_water=5, evict_batch=2)
        cache.put(WindowKey(1, 300), snap(1))
        assert cache.evict_overflow() == 0
        assert len(cache) == 1

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            WindowCache(high_water=10, evict_batch=0)

    def test_concurrent_puts_and_gets(self):
        cache = WindowCache(high_water=100, evict_batch=10)
        errors = []

        def writer(offset):
            for i in range(200):
                cache.put(WindowKey(offset + i, 300), snap(i))

        def reader():
            for i in range(200):
                if len(cache) > 100:
                    errors.append(len(cache))
                cache.get(WindowKey(i, 300))

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
        assert len(cache) <= 100


class TestReadWriteLock:
    def test_readers_share(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)

        def read():
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=read) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        # Both readers reached the barrier while holding the lock
        assert not inside.broken

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        writer_in = threading.Event()

        def write():
            with lock.write():
                writer_in.set()
                time.sleep(0.05)
                events.append("write_done")

        def read():
            writer_in.wait()
            with lock.read():
                events.append("read")

        w = threading.Thread(target=write)
        r = threading.Thread(target=read)
        w.start()
        r.start()
        w.join()
        r.join()
        assert events == ["write_done", "read"]
