"""
Vendor Result Schemas

Normalized shapes every vendor adapter must return, regardless of the
provider behind it. Adapters return ``None`` when they have nothing to
say, which is a valid outcome rather than an error.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .signals import clamp_score


class _ScoredResult(BaseModel):
    risk_score: float = Field(
        ...,
        description="Provider risk score 0-100",
    )

    @field_validator("risk_score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_score(value)


class IdentityResult(_ScoredResult):
    """Identity-verification outcome."""
    provider: str = Field(default="unknown")
    verified: bool = Field(default=False)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    flags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class IPReputationResult(_ScoredResult):
    """IP reputation and network classification."""
    provider: str = Field(default="unknown")
    is_proxy: bool = Field(default=False)
    is_vpn: bool = Field(default=False)
    is_tor: bool = Field(default=False)
    country: str = Field(default="")
    city: Optional[str] = Field(default=None)
    isp: Optional[str] = Field(default=None)
    threat_level: Literal["low", "medium", "high"] = Field(default="low")
    flags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ThreatIntelligenceResult(_ScoredResult):
    """Threat-intelligence lookup outcome for a (user, ip) pair."""
    provider: str = Field(default="unknown")
    is_threat: bool = Field(default=False)
    threat_types: list[str] = Field(default_factory=list)
    last_seen: Optional[datetime] = Field(default=None)
    metadata: dict[str, Any] = Field(default_factory=dict)


class VendorResults(BaseModel):
    """Vendor outputs kept on the verdict for transparency."""
    identity: Optional[IdentityResult] = None
    ip: Optional[IPReputationResult] = None
    threat_intel: Optional[ThreatIntelligenceResult] = None
