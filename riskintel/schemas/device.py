"""
Device/IP Schemas

Device fingerprint history and the composite device/IP assessment.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from .signals import RiskLevel
from .vendors import IPReputationResult, ThreatIntelligenceResult


class DeviceFingerprintResult(BaseModel):
    """
    Outcome of one device-history check.

    ``is_new_device``, ``is_suspicious`` and ``risk_score`` judge the
    history as it stood before this observation. ``associated_users``
    and ``device_count`` include the current user, so repeat checks by
    the same user report a stable count.
    """
    device_id: str
    is_new_device: bool = Field(
        ...,
        description="Current user has not been seen on this device",
    )
    is_suspicious: bool = Field(
        ...,
        description="Device has been used by more than 3 distinct users",
    )
    device_count: int = Field(
        default=0,
        ge=0,
        description="Distinct users associated with the device, current user included",
    )
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    associated_users: list[int] = Field(default_factory=list)
    risk_score: float = Field(default=0.0, ge=0.0, le=100.0)
    flags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class DeviceIPRiskAssessment(BaseModel):
    """
    Composite of IP reputation, device history and threat intelligence.

    Recomputed on every request; only its inputs are cached.
    """
    overall_risk_score: float = Field(..., ge=0.0, le=100.0)
    risk_level: RiskLevel
    ip_reputation: Optional[IPReputationResult] = None
    device_fingerprint: Optional[DeviceFingerprintResult] = None
    threat_intelligence: Optional[ThreatIntelligenceResult] = None
    recommendations: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
