"""
Device/IP Intelligence Tests

Device history bookkeeping and the composite device/IP assessment:
renormalization over missing inputs, flags, recommendations, caching
of vendor responses and failure handling.
"""

from unittest.mock import AsyncMock

import pytest

from riskintel.cache import MemoryBackend, SignalCache
from riskintel.config import DeviceIPConfig, RiskThresholds
from riskintel.intelligence import DeviceHistoryStore, DeviceIPIntelligence
from riskintel.schemas import (
    IPReputationResult,
    Recommendations,
    RiskLevel,
    ThreatIntelligenceResult,
)
from riskintel.vendors import VendorAdapters

from conftest import CLEAN_IP, TOR_IP, FakeIPAdapter, FakeThreatAdapter, clean_ip_result, tor_ip_result


@pytest.fixture
def history(cache) -> DeviceHistoryStore:
    return DeviceHistoryStore(cache)


def composer_for(cache, ip=None, threat=None, **kwargs) -> DeviceIPIntelligence:
    return DeviceIPIntelligence(
        cache,
        VendorAdapters(ip_reputation=ip, threat_intel=threat),
        **kwargs,
    )


class TestDeviceHistory:
    """Tests for device → user bookkeeping."""

    @pytest.mark.asyncio
    async def test_first_sighting_is_new(self, history):
        result = await history.check("fp-abc", 1)

        assert result.is_new_device is True
        assert result.is_suspicious is False
        assert result.device_count == 1
        assert result.risk_score == 50
        assert result.flags == ["new_device"]

    @pytest.mark.asyncio
    async def test_repeat_check_is_not_new(self, history):
        first = await history.check("fp-abc", 1)
        second = await history.check("fp-abc", 1)

        assert second.is_new_device is False
        assert second.device_count == first.device_count
        assert second.associated_users == [1]
        assert second.risk_score == 10
        assert second.first_seen == first.first_seen

    @pytest.mark.asyncio
    async def test_three_users_not_suspicious(self, history):
        for user_id in (1, 2, 3):
            await history.check("fp-shared", user_id)

        result = await history.check("fp-shared", 1)
        assert result.is_suspicious is False
        assert result.device_count == 3

    @pytest.mark.asyncio
    async def test_four_users_suspicious(self, history):
        for user_id in (1, 2, 3, 4):
            await history.check("fp-shared", user_id)

        result = await history.check("fp-shared", 1)
        assert result.is_suspicious is True
        assert "suspicious_device_reuse" in result.flags
        assert result.risk_score == 40

    @pytest.mark.asyncio
    async def test_heavy_sharing_caps_at_100(self, history):
        for user_id in range(1, 8):
            await history.check("fp-farm", user_id)

        result = await history.check("fp-farm", 99)
        assert result.flags == ["new_device", "suspicious_device_reuse", "high_device_sharing"]
        assert result.risk_score == 100

    @pytest.mark.asyncio
    async def test_devices_are_independent(self, history):
        await history.check("fp-a", 1)
        result = await history.check("fp-b", 1)
        assert result.is_new_device is True

    @pytest.mark.asyncio
    async def test_last_check_is_cached(self, history):
        assert await history.last_check("fp-abc", 1) is None

        result = await history.check("fp-abc", 1)
        cached = await history.last_check("fp-abc", 1)

        assert cached == result

    @pytest.mark.asyncio
    async def test_raw_fingerprint_not_in_keys(self, cache, history):
        await history.check("fp-secret-value", 1)
        assert not any("fp-secret-value" in key for key in cache.backend._entries)


class TestComposite:
    """Tests for the weighted composite."""

    @pytest.mark.asyncio
    async def test_ip_only_uses_ip_score(self, cache):
        composer = composer_for(cache, ip=FakeIPAdapter(clean_ip_result(risk_score=72)))

        assessment = await composer.assess(1, CLEAN_IP)

        assert assessment.overall_risk_score == 72
        assert assessment.risk_level == RiskLevel.HIGH
        assert assessment.metadata["components"] == ["ip_reputation"]

    @pytest.mark.asyncio
    async def test_no_inputs_is_neutral_medium(self, cache):
        assessment = await composer_for(cache).assess(1, "unknown")

        assert assessment.overall_risk_score == 50
        assert assessment.risk_level == RiskLevel.MEDIUM
        assert "insufficient_data" in assessment.flags
        assert assessment.metadata["low_confidence"] is True
        assert assessment.recommendations == [Recommendations.monitor_level("medium")]

    @pytest.mark.asyncio
    async def test_all_three_weighted(self, cache):
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(clean_ip_result(risk_score=20)),
            threat=FakeThreatAdapter(ThreatIntelligenceResult(risk_score=40)),
        )

        assessment = await composer.assess(1, CLEAN_IP, device_fingerprint="fp-1")

        # 0.4*20 + 0.3*50 (new device) + 0.3*40
        assert assessment.overall_risk_score == 35
        assert assessment.risk_level == RiskLevel.LOW

    @pytest.mark.asyncio
    async def test_score_is_integer(self, cache):
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(clean_ip_result(risk_score=33)),
            threat=FakeThreatAdapter(ThreatIntelligenceResult(risk_score=10)),
        )
        assessment = await composer.assess(1, CLEAN_IP)
        assert assessment.overall_risk_score == float(round((33 * 0.4 + 10 * 0.3) / 0.7))

    @pytest.mark.asyncio
    async def test_level_uses_unrounded_score(self, cache, history):
        for user_id in (10, 11, 12, 13):
            await history.check("fp-farm", user_id)
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(clean_ip_result(risk_score=88)),
            device_history=history,
        )

        assessment = await composer.assess(1, CLEAN_IP, device_fingerprint="fp-farm")

        # (0.4*88 + 0.3*80) / 0.7 = 84.57
        assert assessment.device_fingerprint.risk_score == 80
        assert assessment.overall_risk_score == 85
        assert assessment.risk_level == RiskLevel.HIGH

    @pytest.mark.asyncio
    async def test_tor_is_critical(self, cache):
        composer = composer_for(cache, ip=FakeIPAdapter(tor_ip_result(risk_score=90)))

        assessment = await composer.assess(1, TOR_IP)

        assert assessment.overall_risk_score >= 85
        assert assessment.risk_level == RiskLevel.CRITICAL
        assert "tor_network_detected" in assessment.flags
        assert "tor_exit_node" in assessment.flags
        assert assessment.recommendations == [
            Recommendations.TOR,
            Recommendations.IP_HIGH_THREAT,
        ]

    @pytest.mark.asyncio
    async def test_recommendation_order(self, cache, history):
        for user_id in (10, 11, 12, 13):
            await history.check("fp-shared", user_id)

        ip = IPReputationResult(risk_score=70, is_vpn=True, threat_level="high")
        threat = ThreatIntelligenceResult(risk_score=80, is_threat=True, threat_types=["botnet", "spam"])
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(ip),
            threat=FakeThreatAdapter(threat),
            device_history=history,
        )

        assessment = await composer.assess(1, CLEAN_IP, device_fingerprint="fp-shared")

        assert assessment.recommendations == [
            Recommendations.PROXY_OR_VPN,
            Recommendations.IP_HIGH_THREAT,
            Recommendations.NEW_DEVICE,
            Recommendations.SHARED_DEVICE,
            Recommendations.THREAT_HIT,
        ]
        assert {"proxy_or_vpn_detected", "threat_detected", "threat_botnet", "threat_spam"} <= set(assessment.flags)
        assert len(assessment.flags) == len(set(assessment.flags))

    @pytest.mark.asyncio
    async def test_custom_thresholds(self, cache):
        config = DeviceIPConfig(thresholds=RiskThresholds(medium=10, high=20, critical=30))
        composer = composer_for(cache, ip=FakeIPAdapter(clean_ip_result(risk_score=25)), config=config)

        assessment = await composer.assess(1, CLEAN_IP)
        assert assessment.risk_level == RiskLevel.HIGH


class TestVendorCaching:
    """Vendor responses are cached for an hour."""

    @pytest.mark.asyncio
    async def test_ip_reputation_cached(self, cache):
        adapter = FakeIPAdapter(clean_ip_result())
        composer = composer_for(cache, ip=adapter)

        first = await composer.check_ip_reputation(CLEAN_IP)
        second = await composer.check_ip_reputation(CLEAN_IP)

        assert first == second
        assert adapter.calls == 1

    @pytest.mark.asyncio
    async def test_threat_cache_is_per_user(self, cache):
        adapter = FakeThreatAdapter(ThreatIntelligenceResult(risk_score=5))
        composer = composer_for(cache, threat=adapter)

        await composer.check_threat_intelligence(1, CLEAN_IP)
        await composer.check_threat_intelligence(1, CLEAN_IP)
        await composer.check_threat_intelligence(2, CLEAN_IP)

        assert adapter.calls == 2

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, cache):
        adapter = FakeIPAdapter(error=RuntimeError("vendor down"))
        composer = composer_for(cache, ip=adapter)

        assert await composer.check_ip_reputation(CLEAN_IP) is None
        assert await composer.check_ip_reputation(CLEAN_IP) is None
        assert adapter.calls == 2

    @pytest.mark.asyncio
    async def test_invalid_ip_skips_vendor(self, cache):
        adapter = FakeIPAdapter(clean_ip_result())
        composer = composer_for(cache, ip=adapter)

        assert await composer.check_ip_reputation("") is None
        assert await composer.check_threat_intelligence(1, "unknown") is None
        assert adapter.calls == 0


class TestFailureHandling:
    """The composer never raises."""

    @pytest.mark.asyncio
    async def test_vendor_timeout_drops_component(self, cache):
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(clean_ip_result(), delay=1.0, timeout_seconds=0.05),
            threat=FakeThreatAdapter(ThreatIntelligenceResult(risk_score=30)),
        )

        assessment = await composer.assess(1, CLEAN_IP)

        assert assessment.ip_reputation is None
        assert assessment.overall_risk_score == 30

    @pytest.mark.asyncio
    async def test_device_store_failure_drops_component(self, cache):
        broken_history = DeviceHistoryStore(cache)
        broken_history.check = AsyncMock(side_effect=ConnectionError("down"))
        composer = composer_for(
            cache,
            ip=FakeIPAdapter(clean_ip_result(risk_score=20)),
            device_history=broken_history,
        )

        assessment = await composer.assess(1, CLEAN_IP, device_fingerprint="fp-1")

        assert assessment.device_fingerprint is None
        assert assessment.overall_risk_score == 20

    @pytest.mark.asyncio
    async def test_unexpected_error_yields_default(self, cache):
        def broken_compose(*args):
            raise RuntimeError("bug")

        composer = composer_for(cache)
        composer.compose = broken_compose

        assessment = await composer.assess(1, CLEAN_IP)

        assert assessment.overall_risk_score == 50
        assert assessment.risk_level == RiskLevel.MEDIUM
        assert assessment.flags == ["assessment_error"]
        assert assessment.recommendations == [Recommendations.ASSESSMENT_FAILED]

    @pytest.mark.asyncio
    async def test_cache_outage_still_assesses(self):
        backend = MemoryBackend()
        backend.get = AsyncMock(side_effect=ConnectionError("down"))
        backend.set = AsyncMock(side_effect=ConnectionError("down"))
        composer = composer_for(
            SignalCache(backend=backend),
            ip=FakeIPAdapter(clean_ip_result(risk_score=20)),
        )

        assessment = await composer.assess(1, CLEAN_IP, device_fingerprint="fp-1")

        assert assessment.ip_reputation is not None
        assert assessment.device_fingerprint.is_new_device is True
