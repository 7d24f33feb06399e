"""FastAPI dependency injection."""

from fastapi import Request

from config import Settings
from engine.query_engine import QueryEngine
from storage.redis_client import RedisClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> QueryEngine:
    return request.app.state.engine


def get_redis(request: Request) -> RedisClient:
    return request.app.state.redis
