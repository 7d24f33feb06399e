"""Liveness watchdog — heartbeat keys with a TTL, plus fault markers, kept in Redis."""

import threading

from storage.redis_client import RedisClient


class Watchdog:
    """Liveness sink. The base implementation reports nowhere."""

    def kick(self, name: str, timeout_sec: int):
        pass

    def fault(self, name: str, reason: str, timeout_sec: int = 600):
        pass


class NullWatchdog(Watchdog):
    """Used when liveness reporting is disabled."""


class RedisWatchdog(Watchdog):
    """
    A kick writes `wd:<prefix>.<name> = ok` with a TTL; an external monitor
    treats an expired key as a dead component. A fault overwrites the key
    with the reason so the monitor can tell "unhealthy" from "gone".
    """

    KEY_PREFIX = "wd:"

    def __init__(self, client: RedisClient, prefix: str, log=None):
        self._client = client
        self._prefix = prefix
        self.log = log

    def key(self, name: str) -> str:
        return f"{self.KEY_PREFIX}{self._prefix}.{name}"

    def kick(self, name: str, timeout_sec: int):
        key = self.key(name)
        self._client.execute_with_retry(lambda r: r.set(key, "ok", ex=timeout_sec))

    def fault(self, name: str, reason: str, timeout_sec: int = 600):
        key = self.key(name)
        self._client.execute_with_retry(lambda r: r.set(key, f"fault:{reason}", ex=timeout_sec))
        if self.log is not None:
            self.log.warning("watchdog_fault", name=name, reason=reason)


class Heartbeat:
    """Background thread that kicks `<prefix>.running` while the process is up."""

    def __init__(self, watchdog: Watchdog, interval_sec: float, timeout_sec: int, log):
        self._watchdog = watchdog
        self._interval = interval_sec
        self._timeout = timeout_sec
        self.log = log
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="heartbeat", daemon=True)

    def start(self):
        self._thread.start()

    def _loop(self):
        while not self._stop.is_set():
            try:
                self._watchdog.kick("running", self._timeout)
            except Exception as e:
                self.log.error("heartbeat_error", error=str(e))
            self._stop.wait(self._interval)

    def stop(self):
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout=5)
