"""Centralized configuration using pydantic-settings. All values are env-configurable."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SNAPSHOT_")

    # Redis (time-series store)
    redis_url: str = "redis://redis:6379/0"
    redis_pool_size: int = 20
    redis_socket_timeout_sec: float = 5.0
    redis_pipeline_batch: int = 50
    redis_ts_retention_ms: int = 7 * 86_400_000  # 7 days

    # Sensor metadata
    tracked_path_pattern: str = r"^hamilton/sensors/s\.hamilton/[^/]+/i\.temperature/signal/operative$"
    coordinate_attribute: str = "rcoords"
    name_attribute: str = "name"

    # Window cache
    cache_high_water: int = 1000
    cache_evict_batch: int = 50
    cache_admission_guard_sec: int = 180

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 9999
    default_lookback_sec: int = 600
    default_window_sec: int = 300

    # Watchdog
    watchdog_enabled: bool = True
    watchdog_prefix: str = "snapshot"
    watchdog_interval_sec: float = 60.0
    watchdog_running_timeout_sec: int = 300
    watchdog_query_timeout_sec: int = 600

    # Producer
    producer_num_sensors: int = 12
    producer_interval_ms: int = 1000

    # Monitoring
    log_level: str = "INFO"
