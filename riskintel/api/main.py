"""
Risk Intelligence API

FastAPI application exposing the fraud scoring engine and the
device/IP composer.

Endpoints:
- POST /analyze: Score a transaction (cached verdict if present)
- POST /analyze/refresh: Score a transaction, replacing any cached verdict
- GET /results/{transaction_id}: Cached verdict
- DELETE /results/{transaction_id}: Drop a cached verdict
- POST /device-ip/assess: Standalone device/IP assessment
- GET /health: Health check
- GET /metrics: Prometheus metrics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Path, status
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..cache import SignalCache
from ..config import settings, load_scoring_config
from ..metrics import metrics
from ..schemas import (
    AnalyzeRequest,
    DeviceIPAssessRequest,
    DeviceIPRiskAssessment,
    FraudDetectionResult,
)
from ..intelligence import DeviceIPIntelligence
from ..scoring import FraudScoringEngine, InvalidRequestError
from ..storage import RiskDataRepository
from ..utils import get_logger
from ..vendors import build_vendor_adapters
from .auth import require_api_token, require_metrics_token
from .dependencies import (
    create_redis,
    create_repository,
    get_cache,
    get_composer,
    get_engine,
    get_repository,
)

logger = logging.getLogger("riskintel.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes and cleans up resources:
    - Redis connection (memory cache fallback)
    - Repository (PostgreSQL or in-memory)
    - Vendor adapters and the scoring engine
    """
    get_logger("riskintel", settings.app_log_level)

    redis_client = await create_redis(settings)
    if settings.redis_enabled and redis_client is None:
        logger.warning("Redis unreachable, using in-memory signal cache")
    cache = SignalCache(redis_client, key_prefix=settings.cache_key_prefix)

    repository = await create_repository(settings)
    adapters = build_vendor_adapters(settings, repository)

    engine = FraudScoringEngine(
        repository,
        cache,
        adapters=adapters,
        config=load_scoring_config(settings.scoring_config_path),
        enable_vendor_apis=settings.fraud_enable_vendor_apis,
        enable_ml=settings.fraud_enable_ml,
    )

    app.state.cache = cache
    app.state.repository = repository
    app.state.engine = engine
    app.state.composer = engine.composer
    logger.info(
        "Risk engine started (cache=%s, vendor_apis=%s, ml=%s)",
        cache.backend_name, settings.fraud_enable_vendor_apis, settings.fraud_enable_ml,
    )

    yield

    # Cleanup
    await adapters.close()
    await repository.close()
    if redis_client:
        await redis_client.aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    return FastAPI(
        title="Risk Intelligence API",
        description="Multi-signal fraud scoring for transactions",
        version="1.0.0",
        lifespan=lifespan,
    )


app = create_app()


@app.get("/health")
async def health_check(
    cache: SignalCache = Depends(get_cache),
    repository: RiskDataRepository = Depends(get_repository),
):
    """
    Health check endpoint.

    Returns service health status and component availability.
    """
    health = {
        "status": "healthy",
        "cache_backend": cache.backend_name,
        "components": {
            "cache": await cache.ping(),
            "repository": False,
        },
    }

    try:
        health["components"]["repository"] = await repository.health_check()
    except Exception as e:
        logger.warning("Repository health check failed: %s", e)

    if not all(health["components"].values()):
        health["status"] = "degraded"

    return health


@app.get("/metrics")
def metrics_endpoint(_: None = Depends(require_metrics_token)):
    """Expose Prometheus metrics with optional token auth."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


async def _run_analysis(
    engine: FraudScoringEngine,
    body: AnalyzeRequest,
    refresh: bool,
) -> FraudDetectionResult:
    try:
        return await engine.analyze(
            body.transaction_id,
            body.user_id,
            ip_address=body.ip_address,
            user_agent=body.user_agent,
            device_fingerprint=body.device_fingerprint,
            email=body.email,
            refresh=refresh,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.post("/analyze", response_model=FraudDetectionResult)
async def analyze(
    body: AnalyzeRequest,
    engine: FraudScoringEngine = Depends(get_engine),
    _: None = Depends(require_api_token),
):
    """Score a transaction, returning the cached verdict if one exists."""
    metrics.requests_total.labels(endpoint="/analyze").inc()
    return await _run_analysis(engine, body, refresh=False)


@app.post("/analyze/refresh", response_model=FraudDetectionResult)
async def analyze_refresh(
    body: AnalyzeRequest,
    engine: FraudScoringEngine = Depends(get_engine),
    _: None = Depends(require_api_token),
):
    """Score a transaction from scratch and replace the cached verdict."""
    metrics.requests_total.labels(endpoint="/analyze/refresh").inc()
    return await _run_analysis(engine, body, refresh=True)


@app.get("/results/{transaction_id}", response_model=FraudDetectionResult)
async def get_result(
    transaction_id: int = Path(..., gt=0),
    engine: FraudScoringEngine = Depends(get_engine),
    _: None = Depends(require_api_token),
):
    """Return the cached verdict for a transaction."""
    metrics.requests_total.labels(endpoint="/results").inc()
    result = await engine.get_cached_result(transaction_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No cached result")
    return result


@app.delete("/results/{transaction_id}")
async def invalidate_result(
    transaction_id: int = Path(..., gt=0),
    engine: FraudScoringEngine = Depends(get_engine),
    _: None = Depends(require_api_token),
):
    """Drop the cached verdict for a transaction."""
    metrics.requests_total.labels(endpoint="/results").inc()
    return {"transaction_id": transaction_id, "deleted": await engine.invalidate(transaction_id)}


@app.post("/device-ip/assess", response_model=DeviceIPRiskAssessment)
async def assess_device_ip(
    body: DeviceIPAssessRequest,
    composer: DeviceIPIntelligence = Depends(get_composer),
    _: None = Depends(require_api_token),
):
    """Standalone device/IP risk assessment."""
    metrics.requests_total.labels(endpoint="/device-ip/assess").inc()
    return await composer.assess(
        body.user_id,
        body.ip_address,
        device_fingerprint=body.device_fingerprint,
        email=body.email,
    )
