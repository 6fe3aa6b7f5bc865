"""
Pytest Configuration and Fixtures - Risk Intelligence Engine

Provides shared fixtures for risk engine tests. Everything runs against
the in-memory cache and repository, so no Redis or PostgreSQL is needed.
"""

import asyncio
from datetime import datetime, timedelta, UTC
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from riskintel.api.dependencies import get_cache, get_composer, get_engine, get_repository
from riskintel.api.main import app
from riskintel.cache import MemoryBackend, SignalCache
from riskintel.schemas import (
    IdentityResult,
    IPReputationResult,
    ThreatIntelligenceResult,
    TransactionRecord,
    TransactionStatus,
    UserRecord,
)
from riskintel.scoring import FraudScoringEngine
from riskintel.storage import InMemoryRiskDataRepository
from riskintel.vendors import (
    IdentityAdapter,
    IPReputationAdapter,
    ThreatIntelAdapter,
    VendorAdapters,
)

TRUSTED_USER_ID = 1
TRUSTED_TXN_ID = 1001
NEW_USER_ID = 2
NEW_USER_TXN_ID = 2001
TOR_IP = "185.220.101.1"
CLEAN_IP = "203.0.113.10"


# =============================================================================
# Fake vendor adapters
# =============================================================================

class _Behavior:
    """Shared knobs: fixed result, raised error or artificial delay."""

    def _setup(self, result: Any, error: Optional[Exception], delay: float) -> None:
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0

    async def _respond(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeIdentityAdapter(_Behavior, IdentityAdapter):
    def __init__(self, result=None, error=None, delay=0.0, **kwargs):
        IdentityAdapter.__init__(self, "fake-identity", **kwargs)
        self._setup(result, error, delay)

    async def check_identity(self, user_id, email, phone=None, document_data=None):
        return await self._respond()


class FakeIPAdapter(_Behavior, IPReputationAdapter):
    def __init__(self, result=None, error=None, delay=0.0, **kwargs):
        IPReputationAdapter.__init__(self, "fake-ip", **kwargs)
        self._setup(result, error, delay)

    async def check_ip_reputation(self, ip_address):
        return await self._respond()


class FakeThreatAdapter(_Behavior, ThreatIntelAdapter):
    def __init__(self, result=None, error=None, delay=0.0, **kwargs):
        ThreatIntelAdapter.__init__(self, "fake-threat", **kwargs)
        self._setup(result, error, delay)

    async def check_threat_intel(self, user_id, ip_address, email=None):
        return await self._respond()


def tor_ip_result(risk_score: float = 90) -> IPReputationResult:
    return IPReputationResult(
        provider="fake-ip",
        risk_score=risk_score,
        is_tor=True,
        country="NL",
        threat_level="high",
        flags=["tor_exit_node"],
    )


def clean_ip_result(risk_score: float = 10) -> IPReputationResult:
    return IPReputationResult(provider="fake-ip", risk_score=risk_score, country="US")


# =============================================================================
# Core fixtures
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return datetime.now(UTC)


@pytest.fixture
def cache() -> SignalCache:
    """Signal cache on a fresh in-memory backend."""
    return SignalCache(backend=MemoryBackend())


@pytest.fixture
def trusted_user(now: datetime) -> UserRecord:
    return UserRecord(
        id=TRUSTED_USER_ID,
        created_at=now - timedelta(days=400),
        email="trusted@example.com",
        is_verified=True,
        verification_level="full",
    )


@pytest.fixture
def new_user(now: datetime) -> UserRecord:
    return UserRecord(
        id=NEW_USER_ID,
        created_at=now - timedelta(days=2),
        email="new@example.com",
    )


@pytest.fixture
def repository(trusted_user, new_user, now) -> InMemoryRiskDataRepository:
    """
    Two users:
    - trusted: 400 days old, 50 completed $100 transactions, no disputes
    - new: 2 days old, a single pending transaction
    """
    repo = InMemoryRiskDataRepository(users=[trusted_user, new_user])

    for i in range(50):
        repo.add_transaction(TransactionRecord(
            id=100 + i,
            user_id=TRUSTED_USER_ID,
            amount=100.0,
            status=TransactionStatus.COMPLETED,
            created_at=now - timedelta(days=10 + i),
        ))
    repo.add_transaction(TransactionRecord(
        id=TRUSTED_TXN_ID,
        user_id=TRUSTED_USER_ID,
        amount=110.0,
        status=TransactionStatus.PENDING,
        created_at=now - timedelta(minutes=1),
    ))
    repo.add_transaction(TransactionRecord(
        id=NEW_USER_TXN_ID,
        user_id=NEW_USER_ID,
        amount=250.0,
        status=TransactionStatus.PENDING,
        created_at=now - timedelta(minutes=1),
    ))
    return repo


@pytest.fixture
def clean_adapters() -> VendorAdapters:
    return VendorAdapters(
        identity=FakeIdentityAdapter(IdentityResult(provider="fake-identity", verified=True, confidence=0.9, risk_score=15)),
        ip_reputation=FakeIPAdapter(clean_ip_result()),
        threat_intel=FakeThreatAdapter(ThreatIntelligenceResult(provider="fake-threat", risk_score=5)),
    )


@pytest.fixture
def engine(repository, cache, clean_adapters) -> FraudScoringEngine:
    """Engine with vendor checks and the anomaly heuristic enabled."""
    return FraudScoringEngine(
        repository,
        cache,
        adapters=clean_adapters,
        enable_vendor_apis=True,
        enable_ml=True,
    )


@pytest_asyncio.fixture
async def api_client(engine, cache, repository) -> AsyncGenerator[AsyncClient, None]:
    """
    Get async HTTP client for API tests.

    Shared resources are injected through dependency overrides instead
    of the lifespan, so no infrastructure is contacted.
    """
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_composer] = lambda: engine.composer
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_repository] = lambda: repository

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
