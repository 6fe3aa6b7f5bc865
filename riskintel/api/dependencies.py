"""
API Dependencies

FastAPI dependency injection for shared resources. Resources are built
once in the application lifespan and stored on ``app.state``; tests
replace them through ``app.dependency_overrides``.
"""

from typing import Optional

import redis.asyncio as redis
from fastapi import HTTPException, Request, status

from ..cache import SignalCache
from ..config import Settings
from ..intelligence import DeviceIPIntelligence
from ..scoring import FraudScoringEngine
from ..storage import RiskDataRepository, InMemoryRiskDataRepository, SqlRiskDataRepository


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} not initialized",
        )
    return value


def get_engine(request: Request) -> FraudScoringEngine:
    return _state(request, "engine")


def get_composer(request: Request) -> DeviceIPIntelligence:
    return _state(request, "composer")


def get_cache(request: Request) -> SignalCache:
    return _state(request, "cache")


def get_repository(request: Request) -> RiskDataRepository:
    return _state(request, "repository")


async def create_redis(settings: Settings) -> Optional[redis.Redis]:
    """
    Connect to Redis if enabled.

    Returns:
        Redis client, or None when disabled or unreachable
    """
    if not settings.redis_enabled:
        return None

    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        return None
    return client


async def create_repository(settings: Settings) -> RiskDataRepository:
    """PostgreSQL repository when enabled, otherwise an empty in-memory one."""
    if not settings.postgres_enabled:
        return InMemoryRiskDataRepository()

    repository = SqlRiskDataRepository(settings.postgres_url, echo=settings.app_debug)
    await repository.initialize()
    return repository
