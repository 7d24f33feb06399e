"""In-process window cache — settled snapshots keyed by (start, length)."""

import threading
from contextlib import contextmanager

from engine.models import Snapshot, WindowKey


class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    A waiting writer blocks new readers so a steady stream of cache hits
    cannot starve insertion and eviction.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class WindowCache:
    """
    Bounded WindowKey → Snapshot map shared by all request threads.

    Eviction is coarse: once the map reaches `high_water` entries a batch of
    `evict_batch` entries is dropped in insertion order (oldest first). It is
    not an LRU; reads do not refresh an entry.
    """

    def __init__(self, high_water: int = 1000, evict_batch: int = 50):
        if evict_batch < 1 or high_water < 1:
            raise ValueError("high_water and evict_batch must be positive")
        self.high_water = high_water
        self.evict_batch = evict_batch
        self._entries: dict[WindowKey, Snapshot] = {}
        self._lock = ReadWriteLock()
        self.evicted_total = 0

    def get(self, key: WindowKey) -> Snapshot | None:
        with self._lock.read():
            return self._entries.get(key)

    def evict_overflow(self) -> int:
        """Drop a batch if the cache is at its cap. Returns the number removed."""
        with self._lock.write():
            return self._evict_locked()

    def put(self, key: WindowKey, snapshot: Snapshot) -> int:
        """Insert (or replace) an entry, making room first. Returns the number evicted."""
        with self._lock.write():
            evicted = 0 if key in self._entries else self._evict_locked()
            self._entries[key] = snapshot
            return evicted

    def _evict_locked(self) -> int:
        if len(self._entries) < self.high_water:
            return 0
        victims = []
        for key in self._entries:
            victims.append(key)
            if len(victims) == self.evict_batch:
                break
        for key in victims:
            del self._entries[key]
        self.evicted_total += len(victims)
        return len(victims)

    def __contains__(self, key: WindowKey) -> bool:
        with self._lock.read():
            return key in self._entries

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def clear(self):
        with self._lock.write():
            self._entries.clear()
