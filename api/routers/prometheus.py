"""Prometheus-compatible metrics endpoint."""

import time

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter()

CIRCUIT_STATES = {"closed": 0, "open": 1, "half_open": 2}


def _gauge(name: str, help_text: str, value, kind: str = "gauge") -> list[str]:
    return [f"# HELP {name} {help_text}", f"# TYPE {name} {kind}", f"{name} {value}", ""]


@router.get("/metrics")
def prometheus_metrics(request: Request):
    """Expose cache and store health in Prometheus text exposition format."""
    engine = request.app.state.engine
    redis_client = request.app.state.redis
    uptime = time.time() - request.app.state.start_time

    lines = []
    lines += _gauge("snapshot_cache_entries", "Snapshots currently cached", len(engine.cache))
    lines += _gauge("snapshot_cache_hits_total", "Requests served from the window cache", engine.hits, "counter")
    lines += _gauge("snapshot_cache_misses_total", "Requests that queried the store", engine.misses, "counter")
    lines += _gauge(
        "snapshot_cache_evicted_total", "Snapshots dropped by the size bound", engine.cache.evicted_total, "counter"
    )
    lines += _gauge(
        "snapshot_upstream_errors_total", "Failed metadata or statistics queries", engine.upstream_errors, "counter"
    )
    lines += _gauge(
        "redis_circuit_breaker_state",
        "Circuit breaker state (0=closed, 1=open, 2=half_open)",
        CIRCUIT_STATES.get(redis_client.circuit_state, 0),
    )
    lines += _gauge("api_uptime_seconds", "Seconds since API start", f"{uptime:.1f}")
    return PlainTextResponse("\n".join(lines), media_type="text/plain; version=0.0.4")
