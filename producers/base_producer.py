"""Base producer loop with graceful shutdown, writing readings into the time-series store."""

import signal
import time
from abc import ABC, abstractmethod

from config import Settings, configure_logging
from storage.redis_client import RedisClient
from storage.time_series import TimeSeriesWriter


class BaseProducer(ABC):
    def __init__(self, settings: Settings, component_name: str = "producer"):
        self.settings = settings
        self.log = configure_logging(component_name, settings.log_level)
        self._running = True
        self._sent_count = 0
        self._redis = RedisClient(settings)
        self._writer = TimeSeriesWriter(
            self._redis,
            pipeline_batch=settings.redis_pipeline_batch,
            retention_ms=settings.redis_ts_retention_ms,
        )

        signal.signal(signal.SIGTERM, self._shutdown)
        signal.signal(signal.SIGINT, self._shutdown)

    def setup(self):
        """Register anything the readings depend on. Runs once before the loop."""

    @abstractmethod
    def generate_readings(self, now_ms: float) -> list[tuple[str, float]]:
        """Return (stream_id, value) pairs for this tick."""

    @abstractmethod
    def get_interval(self) -> float:
        """Seconds to sleep between ticks."""

    def run(self):
        self.setup()
        self.log.info("producer_started")
        try:
            ticks = 0
            while self._running:
                now_ms = time.time() * 1000
                for stream_id, value in self.generate_readings(now_ms):
                    self._writer.write(stream_id, now_ms, value)
                    self._sent_count += 1
                ticks += 1
                if ticks % 60 == 0:
                    self.log.info("producer_progress", written=self._sent_count)
                time.sleep(self.get_interval())
        except KeyboardInterrupt:
            pass
        finally:
            self._cleanup()

    def _shutdown(self, signum, frame):
        self.log.info("shutdown_signal_received", signal=signum)
        self._running = False

    def _cleanup(self):
        self._writer.flush()
        self._redis.close()
        self.log.info("producer_stopped", total_written=self._sent_count)
