"""
Device/IP Intelligence

Composes IP reputation, device history and threat intelligence into a
single DeviceIPRiskAssessment.

Design goals:
- Run the three lookups concurrently
- Cache vendor responses (1 hour) so repeat traffic costs nothing
- Degrade, never fail: a missing input only removes its weight
"""

import asyncio
import logging
from typing import Optional

from ..cache import SignalCache, hash_key
from ..config import DeviceIPConfig, CacheTTLs
from ..metrics import metrics
from ..schemas import (
    DeviceFingerprintResult,
    DeviceIPRiskAssessment,
    IPReputationResult,
    ThreatIntelligenceResult,
    Recommendations,
    RiskLevel,
)
from ..vendors import VendorAdapters, guarded_call, is_valid_ip
from .device_history import DeviceHistoryStore

logger = logging.getLogger("riskintel.intelligence")

IP_NAMESPACE = "ip_reputation"
THREAT_NAMESPACE = "threat_intel"


class DeviceIPIntelligence:
    """
    Device and network risk composer.

    Each check can also be called on its own; ``assess`` fans out to all
    three and folds whatever came back into one weighted score.
    """

    def __init__(
        self,
        cache: SignalCache,
        adapters: Optional[VendorAdapters] = None,
        device_history: Optional[DeviceHistoryStore] = None,
        config: Optional[DeviceIPConfig] = None,
        ttls: Optional[CacheTTLs] = None,
    ):
        """
        Initialize composer.

        Args:
            cache: Signal cache for vendor responses
            adapters: Vendor adapters (IP reputation and threat intel are used)
            device_history: Shared device history store
            config: Composite weights and thresholds
            ttls: Cache TTLs
        """
        self.cache = cache
        self.adapters = adapters or VendorAdapters()
        self.ttls = ttls or CacheTTLs()
        self.device_history = device_history or DeviceHistoryStore(cache, self.ttls)
        self.config = config or DeviceIPConfig()

    # =========================================================================
    # Individual checks
    # =========================================================================

    async def check_ip_reputation(self, ip_address: Optional[str]) -> Optional[IPReputationResult]:
        """IP reputation, cached by IP hash. None when unavailable."""
        adapter = self.adapters.ip_reputation
        if adapter is None or not is_valid_ip(ip_address):
            return None

        value = await self.cache.get_or_set(
            hash_key(ip_address),
            lambda: guarded_call(adapter, adapter.check_ip_reputation(ip_address)),
            ttl_seconds=self.ttls.ip_reputation,
            namespace=IP_NAMESPACE,
        )
        return IPReputationResult.model_validate(value) if value is not None else None

    async def check_device_fingerprint(
        self,
        device_fingerprint: Optional[str],
        user_id: int,
    ) -> Optional[DeviceFingerprintResult]:
        """Device history check; records the observation."""
        if not device_fingerprint:
            return None
        try:
            return await self.device_history.check(device_fingerprint, user_id)
        except Exception as e:
            logger.error("Device fingerprint check failed: %s", e)
            metrics.stage_failures.labels(stage="device_fingerprint").inc()
            return None

    async def check_threat_intelligence(
        self,
        user_id: int,
        ip_address: Optional[str],
        email: Optional[str] = None,
    ) -> Optional[ThreatIntelligenceResult]:
        """Threat intelligence for a (user, ip) pair, cached for an hour."""
        adapter = self.adapters.threat_intel
        if adapter is None or not is_valid_ip(ip_address):
            return None

        value = await self.cache.get_or_set(
            f"{user_id}:{hash_key(ip_address)}",
            lambda: guarded_call(adapter, adapter.check_threat_intel(user_id, ip_address, email)),
            ttl_seconds=self.ttls.threat_intel,
            namespace=THREAT_NAMESPACE,
        )
        return ThreatIntelligenceResult.model_validate(value) if value is not None else None

    # =========================================================================
    # Composite assessment
    # =========================================================================

    async def assess(
        self,
        user_id: int,
        ip_address: Optional[str],
        device_fingerprint: Optional[str] = None,
        email: Optional[str] = None,
    ) -> DeviceIPRiskAssessment:
        """
        Assess device and network risk for a request.

        Never raises; an unexpected failure yields a neutral medium-risk
        assessment flagged ``assessment_error``.

        Args:
            user_id: User making the request
            ip_address: Client IP ("" or "unknown" when not known)
            device_fingerprint: Client device fingerprint (optional)
            email: User email for threat lookups (optional)

        Returns:
            DeviceIPRiskAssessment
        """
        try:
            ip_result, device_result, threat_result = await asyncio.gather(
                self.check_ip_reputation(ip_address),
                self.check_device_fingerprint(device_fingerprint, user_id),
                self.check_threat_intelligence(user_id, ip_address, email),
            )
            assessment = self.compose(ip_result, device_result, threat_result)
        except Exception as e:
            logger.error("Device/IP assessment failed for user %s: %s", user_id, e)
            metrics.stage_failures.labels(stage="device_ip").inc()
            assessment = self.default_assessment(str(e))

        metrics.device_ip_assessments.labels(risk_level=assessment.risk_level.value).inc()
        return assessment

    def compose(
        self,
        ip_result: Optional[IPReputationResult],
        device_result: Optional[DeviceFingerprintResult],
        threat_result: Optional[ThreatIntelligenceResult],
    ) -> DeviceIPRiskAssessment:
        """Fold the three (optional) results into one assessment."""
        components = [
            ("ip_reputation", ip_result, self.config.ip_weight),
            ("device_fingerprint", device_result, self.config.device_weight),
            ("threat_intelligence", threat_result, self.config.threat_weight),
        ]
        present = [(name, r.risk_score, w) for name, r, w in components if r is not None]
        total_weight = sum(w for _, _, w in present)

        flags: list[str] = []
        metadata = {"components": [name for name, _, _ in present]}

        if present and total_weight > 0:
            score = sum(s * w for _, s, w in present) / total_weight
            metadata["low_confidence"] = False
        else:
            score = self.config.default_score
            flags.append("insufficient_data")
            metadata["low_confidence"] = True

        score = max(0, min(100, score))
        # level comes from the unrounded score
        risk_level = RiskLevel(self.config.thresholds.classify(score))
        score = round(score)

        recommendations: list[str] = []

        if ip_result is not None:
            flags.extend(ip_result.flags)
            if ip_result.is_proxy or ip_result.is_vpn:
                flags.append("proxy_or_vpn_detected")
                recommendations.append(Recommendations.PROXY_OR_VPN)
            if ip_result.is_tor:
                flags.append("tor_network_detected")
                recommendations.append(Recommendations.TOR)
            if ip_result.threat_level == "high":
                recommendations.append(Recommendations.IP_HIGH_THREAT)

        if device_result is not None:
            flags.extend(device_result.flags)
            if device_result.is_new_device:
                recommendations.append(Recommendations.NEW_DEVICE)
            if device_result.is_suspicious:
                recommendations.append(Recommendations.SHARED_DEVICE)

        if threat_result is not None and threat_result.is_threat:
            flags.append("threat_detected")
            flags.extend(f"threat_{t}" for t in threat_result.threat_types)
            recommendations.append(Recommendations.THREAT_HIT)

        if not recommendations and risk_level != RiskLevel.LOW:
            recommendations.append(Recommendations.monitor_level(risk_level.value))

        return DeviceIPRiskAssessment(
            overall_risk_score=score,
            risk_level=risk_level,
            ip_reputation=ip_result,
            device_fingerprint=device_result,
            threat_intelligence=threat_result,
            recommendations=recommendations,
            flags=list(dict.fromkeys(flags)),
            metadata=metadata,
        )

    def default_assessment(self, error: Optional[str] = None) -> DeviceIPRiskAssessment:
        """Neutral assessment returned when composition itself fails."""
        score = self.config.default_score
        return DeviceIPRiskAssessment(
            overall_risk_score=score,
            risk_level=RiskLevel(self.config.thresholds.classify(score)),
            recommendations=[Recommendations.ASSESSMENT_FAILED],
            flags=["assessment_error"],
            metadata={"error": error, "low_confidence": True},
        )
