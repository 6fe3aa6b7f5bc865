"""
Signal Schemas

A signal is one scored, weighted risk input to the aggregate verdict.
Every detector in the engine (internal history, vendor checks, the
anomaly heuristic) speaks this one shape so aggregation stays generic.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


def clamp_score(value: float) -> float:
    """Clamp a risk score onto the 0-100 scale."""
    return max(0.0, min(100.0, float(value)))


class SignalType(str, Enum):
    """Where a signal came from."""
    INTERNAL = "internal"
    VENDOR = "vendor"
    ML = "ml"


class RiskLevel(str, Enum):
    """Ordinal risk classification."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SignalNames:
    """Stable signal identifiers."""
    ACCOUNT_AGE = "account_age"
    TRANSACTION_HISTORY = "transaction_history"
    DEVICE_FINGERPRINT = "device_fingerprint"
    VELOCITY_CHECKS = "velocity_checks"
    BEHAVIOR_PATTERN = "behavior_pattern"
    IDENTITY_VERIFICATION = "identity_verification"
    IP_REPUTATION = "ip_reputation"
    THREAT_INTELLIGENCE = "threat_intelligence"
    ANOMALY_DETECTION = "anomaly_detection"


class Signal(BaseModel):
    """
    One atomic risk input.

    Scores are clamped into [0, 100] on construction, so aggregation
    never sees an out-of-range value.
    """
    type: SignalType = Field(
        ...,
        description="Signal source: internal, vendor or ml",
    )
    name: str = Field(
        ...,
        description="Stable identifier (e.g. 'account_age')",
    )
    score: float = Field(
        ...,
        description="Risk score 0-100, higher is riskier",
    )
    weight: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Relative importance; the engine renormalizes",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw inputs used to derive the score, for audit",
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the signal was produced",
    )

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return clamp_score(value)
