"""Window snapshot endpoint."""

import re
import time

from fastapi import APIRouter, Depends, Query, Response

from api.dependencies import get_engine, get_settings
from config import Settings
from engine.errors import InvalidParameter
from engine.query_engine import NS_PER_SEC, QueryEngine

router = APIRouter()

INTEGER = re.compile(r"[+-]?[0-9]+")


def parse_seconds(name: str, raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    if not INTEGER.fullmatch(raw):
        raise InvalidParameter(name, raw)
    return int(raw)


# Plain `def`: FastAPI runs it on the worker thread pool, one request per thread,
# so a slow store query on a miss never blocks cache hits for other requests.
@router.get("/data")
def get_data(
    start: str | None = Query(default=None, alias="from", description="Window start, unix seconds"),
    window: str | None = Query(default=None, description="Window length in seconds"),
    engine: QueryEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """Min/mean/max/count of every tracked sensor over [from, from + window)."""
    start_sec = parse_seconds("from", start, int(time.time()) - settings.default_lookback_sec)
    window_sec = parse_seconds("window", window, settings.default_window_sec)
    if window_sec <= 0:
        raise InvalidParameter("window", window)

    snapshot = engine.get_snapshot(start_sec * NS_PER_SEC, window_sec * NS_PER_SEC)
    return Response(content=snapshot.json_bytes(), media_type="application/json")
