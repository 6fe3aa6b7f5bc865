"""
Fraud Detection Result Schemas

The top-level verdict returned for a transaction, plus the reason
strings used for recommendations.
"""

from datetime import datetime, UTC
from typing import Optional

from pydantic import BaseModel, Field

from .device import DeviceIPRiskAssessment
from .signals import RiskLevel, Signal
from .vendors import VendorResults


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class FraudDetectionResult(BaseModel):
    """
    Complete fraud verdict for a transaction.

    Callers should branch on ``confidence`` and ``risk_level`` rather
    than on exceptions: a verdict built from little data is returned
    with low confidence instead of failing.
    """
    transaction_id: int = Field(..., description="Transaction being assessed")
    user_id: int = Field(..., description="User who owns the transaction")

    overall_score: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Weighted composite risk score",
    )
    risk_level: RiskLevel = Field(..., description="Classification of overall_score")
    signals: list[Signal] = Field(
        default_factory=list,
        description="Signals that contributed, in collection order",
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Trust in the verdict based on signal coverage",
    )
    recommendations: list[str] = Field(default_factory=list)

    vendor_results: Optional[VendorResults] = Field(
        default=None,
        description="Raw vendor outputs (only when vendor APIs are enabled)",
    )
    device_ip_assessment: Optional[DeviceIPRiskAssessment] = Field(
        default=None,
        description="Composite device/IP assessment used for this verdict",
    )

    timestamp: datetime = Field(default_factory=_utc_now)
    is_cached: bool = Field(
        default=False,
        description="Whether the verdict was served from the result cache",
    )


class Recommendations:
    """Recommendation strings shared by the engine and the composer."""
    # Verdict-level
    BLOCK_AND_REVIEW = "Block transaction and flag for manual review"
    REQUIRE_IDENTITY_VERIFICATION = "Require additional identity verification"
    REQUIRE_VERIFICATION = "Require additional verification"
    MONITOR_CLOSELY = "Monitor transaction closely"
    VERIFY_LOCATION = "Verify user location"
    REQUEST_KYC = "Request KYC verification"
    REVIEW_VELOCITY = "Review transaction velocity"

    # Device/IP composite
    PROXY_OR_VPN = "Consider additional identity verification"
    TOR = "High risk: Tor network usage detected"
    IP_HIGH_THREAT = "IP address has high threat level"
    NEW_DEVICE = "New device detected - consider additional verification"
    SHARED_DEVICE = "Device shared across multiple accounts - high risk"
    THREAT_HIT = "Threat intelligence indicates potential security risk"
    ASSESSMENT_FAILED = "Unable to complete full risk assessment"

    @staticmethod
    def monitor_level(level: str) -> str:
        return f"Risk level: {level} - monitor transaction closely"
