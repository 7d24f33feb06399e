"""Pooled Redis client with retry and a circuit breaker, shared by request threads."""

import threading
import time
from typing import Any, Callable

import redis

from config import Settings, configure_logging


class CircuitOpenError(Exception):
    pass


class CircuitBreaker:
    """
    CLOSED → OPEN after `failure_threshold` consecutive failures.
    OPEN → HALF_OPEN once `recovery_timeout` has passed; the next call is a probe.
    Any success closes the circuit again.
    """

    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 30.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.state = "closed"
        self.failure_count = 0
        self.last_failure_time = 0.0
        self._lock = threading.Lock()

    def can_execute(self) -> bool:
        with self._lock:
            if self.state != "open":
                return True
            if time.monotonic() - self.last_failure_time >= self.recovery_timeout:
                self.state = "half_open"
                return True
            return False

    def record_success(self):
        with self._lock:
            self.failure_count = 0
            self.state = "closed"

    def record_failure(self):
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.monotonic()
            if self.state == "half_open" or self.failure_count >= self.failure_threshold:
                self.state = "open"


class RedisClient:
    def __init__(self, settings: Settings):
        self.log = configure_logging("redis-client", settings.log_level)
        self._pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_pool_size,
            socket_timeout=settings.redis_socket_timeout_sec,
            socket_connect_timeout=settings.redis_socket_timeout_sec,
            decode_responses=True,
        )
        self._circuit = CircuitBreaker(failure_threshold=5, recovery_timeout=30)
        self.log.info("redis_pool_created", url=settings.redis_url, pool_size=settings.redis_pool_size)

    def get_client(self) -> redis.Redis:
        return redis.Redis(connection_pool=self._pool)

    def execute_with_retry(self, func: Callable[[redis.Redis], Any], max_retries: int = 3) -> Any:
        """Run `func` against a pooled connection, retrying connection-level failures with backoff."""
        if not self._circuit.can_execute():
            raise CircuitOpenError("Redis circuit breaker is OPEN, failing fast")

        last_error: Exception | None = None
        for attempt in range(max_retries):
            if attempt and not self._circuit.can_execute():
                break
            try:
                result = func(self.get_client())
                self._circuit.record_success()
                return result
            except (redis.ConnectionError, redis.TimeoutError) as e:
                last_error = e
                self._circuit.record_failure()
                if attempt < max_retries - 1:
                    backoff = 0.1 * (2 ** attempt)
                    self.log.warning("redis_retry", attempt=attempt + 1, backoff=backoff, error=str(e))
                    time.sleep(backoff)

        raise last_error  # type: ignore[misc]

    def ping(self) -> bool:
        try:
            return bool(self.execute_with_retry(lambda r: r.ping(), max_retries=1))
        except (redis.RedisError, CircuitOpenError):
            return False

    def close(self):
        self._pool.disconnect()
        self.log.info("redis_pool_closed")

    @property
    def circuit_state(self) -> str:
        return self._circuit.state
