"""
Fraud Scoring Engine

Orchestrates signal collection and combines everything into a
FraudDetectionResult.

Pipeline:
1. Vendor checks (identity + device/IP composite), when enabled
2. Internal signals from user and transaction history
3. Anomaly heuristic over the collected signals, when enabled
4. Weighted aggregation, classification, confidence, recommendations
5. Verdict cached per transaction for 24 hours

Any stage other than aggregation may fail; its signals are dropped and
the verdict carries lower confidence instead.
"""

import asyncio
import logging
import time
from typing import Optional

from ..cache import SignalCache
from ..config import ScoringConfig, DEFAULT_SCORING_CONFIG
from ..intelligence import DeviceHistoryStore, DeviceIPIntelligence
from ..metrics import metrics
from ..schemas import (
    DeviceIPRiskAssessment,
    FraudDetectionResult,
    IdentityResult,
    Signal,
    SignalNames,
    SignalType,
    VendorResults,
)
from ..signals import InternalSignalCollector
from ..storage import RiskDataRepository
from ..vendors import VendorAdapters, guarded_call
from .aggregation import build_recommendations, classify, compute_confidence, weighted_score
from .anomaly import AnomalyScorer, HeuristicAnomalyScorer

logger = logging.getLogger("riskintel.scoring")

RESULT_NAMESPACE = "fraud_result"


class InvalidRequestError(ValueError):
    """Raised when an analysis request is malformed."""
    pass


def _validate_id(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidRequestError(f"{name} must be a positive integer, got {value!r}")
    return value


class FraudScoringEngine:
    """
    Main fraud scoring engine.

    Dependencies are injected so tests and alternative deployments can
    swap any stage (composer, collector, anomaly scorer) independently.
    """

    def __init__(
        self,
        repository: RiskDataRepository,
        cache: SignalCache,
        adapters: Optional[VendorAdapters] = None,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        enable_vendor_apis: bool = False,
        enable_ml: bool = False,
        composer: Optional[DeviceIPIntelligence] = None,
        collector: Optional[InternalSignalCollector] = None,
        anomaly_scorer: Optional[AnomalyScorer] = None,
    ):
        """
        Initialize engine.

        Args:
            repository: User/transaction store
            cache: Signal cache (verdicts and vendor responses)
            adapters: Vendor adapters
            config: Scoring configuration
            enable_vendor_apis: Run identity and device/IP vendor checks
            enable_ml: Add the anomaly signal
            composer: Device/IP composer (built from cache/adapters if None)
            collector: Internal signal collector (built if None)
            anomaly_scorer: Anomaly scorer (heuristic if None)
        """
        self.repository = repository
        self.cache = cache
        self.adapters = adapters or VendorAdapters()
        self.config = config
        self.enable_vendor_apis = enable_vendor_apis
        self.enable_ml = enable_ml

        device_history = DeviceHistoryStore(cache, config.ttls)
        self.composer = composer or DeviceIPIntelligence(
            cache,
            self.adapters,
            device_history=device_history,
            config=config.device_ip,
            ttls=config.ttls,
        )
        self.collector = collector or InternalSignalCollector(
            repository,
            device_history=device_history,
            weights=config.signal_weights,
        )
        self.anomaly_scorer = anomaly_scorer or HeuristicAnomalyScorer(
            weight=config.signal_weights.anomaly_detection,
            high_risk_score=config.high_risk_signal_score,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def analyze(
        self,
        transaction_id: int,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
        email: Optional[str] = None,
        refresh: bool = False,
    ) -> FraudDetectionResult:
        """
        Analyze a transaction.

        Args:
            transaction_id: Transaction to assess
            user_id: Transaction owner
            ip_address: Client IP
            user_agent: Client user agent
            device_fingerprint: Client device fingerprint
            email: User email (identity and threat checks)
            refresh: Ignore any cached verdict

        Returns:
            FraudDetectionResult

        Raises:
            InvalidRequestError: if an id is not a positive integer
        """
        _validate_id("transaction_id", transaction_id)
        _validate_id("user_id", user_id)

        if not refresh:
            cached = await self.get_cached_result(transaction_id)
            if cached is not None:
                metrics.analyses_total.labels(
                    risk_level=cached.risk_level.value, cached="true"
                ).inc()
                return cached

        start_time = time.perf_counter()

        vendor_signals: list[Signal] = []
        vendor_results: Optional[VendorResults] = None
        assessment: Optional[DeviceIPRiskAssessment] = None

        if self.enable_vendor_apis:
            identity, assessment = await asyncio.gather(
                self._check_identity(user_id, email),
                self.composer.assess(user_id, ip_address, device_fingerprint, email),
            )
            vendor_results = VendorResults(
                identity=identity,
                ip=assessment.ip_reputation,
                threat_intel=assessment.threat_intelligence,
            )
            vendor_signals = self._vendor_signals(vendor_results)

        signals = await self._collect_internal(
            transaction_id,
            user_id,
            ip_address,
            user_agent,
            device_fingerprint,
            assessment.device_fingerprint if assessment else None,
        )
        signals.extend(vendor_signals)

        if self.enable_ml:
            anomaly = await self._score_anomaly(signals)
            if anomaly is not None:
                signals.append(anomaly)

        overall_score = weighted_score(signals)
        risk_level = classify(overall_score, self.config.risk_thresholds)

        result = FraudDetectionResult(
            transaction_id=transaction_id,
            user_id=user_id,
            overall_score=overall_score,
            risk_level=risk_level,
            signals=signals,
            confidence=compute_confidence(signals, self.config.confidence),
            recommendations=build_recommendations(
                risk_level,
                signals,
                self.config.high_risk_signal_score,
                assessment,
            ),
            vendor_results=vendor_results,
            device_ip_assessment=assessment,
        )

        await self.cache.set(
            str(transaction_id),
            result,
            ttl_seconds=self.config.ttls.fraud_result,
            namespace=RESULT_NAMESPACE,
        )

        latency_ms = (time.perf_counter() - start_time) * 1000
        metrics.analysis_latency.observe(latency_ms)
        metrics.overall_score_distribution.observe(overall_score)
        metrics.analyses_total.labels(risk_level=risk_level.value, cached="false").inc()

        logger.info(
            "Transaction %s scored %.2f (%s) from %d signals in %.1fms",
            transaction_id, overall_score, risk_level.value, len(signals), latency_ms,
        )
        return result

    async def reanalyze(
        self,
        transaction_id: int,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
        email: Optional[str] = None,
    ) -> FraudDetectionResult:
        """Analyze again, replacing any cached verdict."""
        return await self.analyze(
            transaction_id,
            user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            device_fingerprint=device_fingerprint,
            email=email,
            refresh=True,
        )

    async def get_cached_result(self, transaction_id: int) -> Optional[FraudDetectionResult]:
        """Return the cached verdict for a transaction, marked ``is_cached``."""
        _validate_id("transaction_id", transaction_id)

        cached = await self.cache.get(str(transaction_id), RESULT_NAMESPACE)
        if cached is None:
            return None
        try:
            result = FraudDetectionResult.model_validate(cached)
        except ValueError as e:
            logger.warning("Discarding unreadable cached verdict %s: %s", transaction_id, e)
            return None
        return result.model_copy(update={"is_cached": True})

    async def invalidate(self, transaction_id: int) -> bool:
        """Drop the cached verdict for a transaction."""
        _validate_id("transaction_id", transaction_id)
        return await self.cache.delete(str(transaction_id), RESULT_NAMESPACE)

    # =========================================================================
    # Stages
    # =========================================================================

    async def _check_identity(self, user_id: int, email: Optional[str]) -> Optional[IdentityResult]:
        adapter = self.adapters.identity
        if adapter is None:
            return None
        return await guarded_call(adapter, adapter.check_identity(user_id, email))

    def _vendor_signals(self, results: VendorResults) -> list[Signal]:
        weights = self.config.signal_weights
        signals = []

        if results.identity is not None:
            signals.append(Signal(
                type=SignalType.VENDOR,
                name=SignalNames.IDENTITY_VERIFICATION,
                score=results.identity.risk_score,
                weight=weights.identity_verification,
                metadata={
                    "provider": results.identity.provider,
                    "verified": results.identity.verified,
                    "confidence": results.identity.confidence,
                    "flags": results.identity.flags,
                },
            ))

        if results.ip is not None:
            signals.append(Signal(
                type=SignalType.VENDOR,
                name=SignalNames.IP_REPUTATION,
                score=results.ip.risk_score,
                weight=weights.ip_reputation,
                metadata={
                    "provider": results.ip.provider,
                    "isProxy": results.ip.is_proxy,
                    "isVpn": results.ip.is_vpn,
                    "isTor": results.ip.is_tor,
                    "country": results.ip.country,
                    "threatLevel": results.ip.threat_level,
                },
            ))

        if results.threat_intel is not None:
            signals.append(Signal(
                type=SignalType.VENDOR,
                name=SignalNames.THREAT_INTELLIGENCE,
                score=results.threat_intel.risk_score,
                weight=weights.threat_intelligence,
                metadata={
                    "provider": results.threat_intel.provider,
                    "isThreat": results.threat_intel.is_threat,
                    "threatTypes": results.threat_intel.threat_types,
                },
            ))

        return signals

    async def _collect_internal(self, transaction_id, user_id, ip_address, user_agent,
                                device_fingerprint, device_result) -> list[Signal]:
        try:
            return await self.collector.collect(
                user_id,
                transaction_id,
                ip_address=ip_address,
                user_agent=user_agent,
                device_fingerprint=device_fingerprint,
                device_result=device_result,
            )
        except Exception as e:
            logger.error("Internal signal collection failed: %s", e)
            metrics.stage_failures.labels(stage="internal_signals").inc()
            return []

    async def _score_anomaly(self, signals: list[Signal]) -> Optional[Signal]:
        try:
            return await self.anomaly_scorer.score(signals)
        except Exception as e:
            logger.error("Anomaly scoring failed: %s", e)
            metrics.stage_failures.labels(stage="anomaly").inc()
            return None
