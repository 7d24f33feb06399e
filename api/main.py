"""FastAPI application factory with lifespan management."""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from api.routers import health, prometheus, snapshot
from config import Settings, configure_logging
from engine.errors import InvalidParameter, UpstreamQueryError
from engine.query_engine import QueryEngine
from storage.archiver import RedisArchiver
from storage.redis_client import RedisClient
from storage.watchdog import Heartbeat, NullWatchdog, RedisWatchdog


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire store, watchdog and engine on startup; release them on shutdown."""
    settings: Settings = app.state.settings
    log = configure_logging("api", settings.log_level)

    redis_client = RedisClient(settings)
    archiver = RedisArchiver(redis_client)
    if settings.watchdog_enabled:
        watchdog = RedisWatchdog(redis_client, settings.watchdog_prefix, log=log)
    else:
        watchdog = NullWatchdog()
    engine = QueryEngine(settings, metadata=archiver, statistics=archiver, watchdog=watchdog)

    heartbeat = Heartbeat(
        watchdog,
        interval_sec=settings.watchdog_interval_sec,
        timeout_sec=settings.watchdog_running_timeout_sec,
        log=log,
    )
    heartbeat.start()

    app.state.redis = redis_client
    app.state.engine = engine
    app.state.start_time = time.time()
    log.info("api_started", port=settings.api_port, watchdog=settings.watchdog_enabled)

    yield

    heartbeat.stop()
    redis_client.close()
    log.info("api_stopped")


async def invalid_parameter_handler(request: Request, exc: InvalidParameter):
    return PlainTextResponse(str(exc), status_code=400)


async def upstream_error_handler(request: Request, exc: UpstreamQueryError):
    return PlainTextResponse(str(exc), status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Sensor Window Snapshot API",
        version="1.0.0",
        description="Per-sensor min/mean/max/count over a time window, cached once settled",
        lifespan=lifespan,
    )
    app.state.settings = settings or Settings()

    app.add_exception_handler(InvalidParameter, invalid_parameter_handler)
    app.add_exception_handler(UpstreamQueryError, upstream_error_handler)

    app.include_router(health.router)
    app.include_router(snapshot.router)
    app.include_router(prometheus.router)

    return app


app = create_app()


if __name__ == "__main__":
    _settings = app.state.settings
    uvicorn.run("api.main:app", host=_settings.api_host, port=_settings.api_port)
