"""
Signal Aggregation

Pure functions that turn a list of signals into a score, a risk level,
a confidence and a recommendation list. Kept free of I/O so they can be
tested exhaustively and reused by alternative engines.
"""

from typing import Iterable, Optional

from ..config import ConfidenceConfig, RiskThresholds
from ..schemas import (
    DeviceIPRiskAssessment,
    Recommendations,
    RiskLevel,
    Signal,
    SignalNames,
    SignalType,
)


def weighted_score(signals: Iterable[Signal]) -> float:
    """
    Weighted mean of signal scores.

    Weights are renormalized by their sum, so the result stays in
    [0, 100] whatever the weights add up to. No signals (or only
    zero-weight signals) scores 0.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for signal in signals:
        weighted_sum += signal.score * signal.weight
        total_weight += signal.weight

    if total_weight <= 0:
        return 0.0
    return round(max(0.0, min(100.0, weighted_sum / total_weight)), 2)


def classify(score: float, thresholds: RiskThresholds) -> RiskLevel:
    return RiskLevel(thresholds.classify(score))


def compute_confidence(signals: list[Signal], config: ConfidenceConfig) -> float:
    """
    Confidence from signal coverage.

    More signals raise confidence up to a cap; each vendor-sourced signal
    adds a further bonus on top of it.
    """
    if not signals:
        return 0.0

    coverage = min(config.base + config.per_signal * len(signals), config.signal_cap)
    vendor_count = sum(1 for s in signals if s.type == SignalType.VENDOR)
    confidence = coverage + config.per_vendor_signal * vendor_count
    return round(max(0.0, min(1.0, confidence)), 4)


def build_recommendations(
    risk_level: RiskLevel,
    signals: list[Signal],
    high_risk_score: float,
    device_ip_assessment: Optional[DeviceIPRiskAssessment] = None,
) -> list[str]:
    """
    Recommendations for a verdict, deduplicated in order of appearance.

    Args:
        risk_level: Verdict risk level
        signals: Contributing signals
        high_risk_score: Signal score above which targeted advice is added
        device_ip_assessment: Composite whose advice is appended

    Returns:
        Recommendation strings
    """
    recommendations: list[str] = []

    if risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
        recommendations.append(Recommendations.BLOCK_AND_REVIEW)
        recommendations.append(Recommendations.REQUIRE_IDENTITY_VERIFICATION)
    elif risk_level == RiskLevel.MEDIUM:
        recommendations.append(Recommendations.REQUIRE_VERIFICATION)
        recommendations.append(Recommendations.MONITOR_CLOSELY)

    targeted = {
        SignalNames.IP_REPUTATION: Recommendations.VERIFY_LOCATION,
        SignalNames.IDENTITY_VERIFICATION: Recommendations.REQUEST_KYC,
        SignalNames.VELOCITY_CHECKS: Recommendations.REVIEW_VELOCITY,
    }
    for signal in signals:
        if signal.score > high_risk_score and signal.name in targeted:
            recommendations.append(targeted[signal.name])

    if device_ip_assessment is not None:
        recommendations.extend(device_ip_assessment.recommendations)
        if device_ip_assessment.risk_level == RiskLevel.CRITICAL:
            recommendations.append(Recommendations.BLOCK_AND_REVIEW)

    return list(dict.fromkeys(recommendations))
