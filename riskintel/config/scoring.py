"""
Scoring Configuration

All weights, thresholds and TTLs used by the scoring engine live in one
immutable object that is handed to the engine at construction. Tuning or
A/B evaluation means loading a different YAML file, not editing code.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger("riskintel.config")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SignalWeights(_Frozen):
    """Relative importance of each named signal (need not sum to 1)."""

    # Internal signals
    account_age: float = Field(default=0.10, ge=0.0, le=1.0)
    transaction_history: float = Field(default=0.15, ge=0.0, le=1.0)
    device_fingerprint: float = Field(default=0.12, ge=0.0, le=1.0)
    behavior_pattern: float = Field(default=0.10, ge=0.0, le=1.0)
    velocity_checks: float = Field(default=0.08, ge=0.0, le=1.0)

    # Vendor signals
    identity_verification: float = Field(default=0.15, ge=0.0, le=1.0)
    ip_reputation: float = Field(default=0.12, ge=0.0, le=1.0)
    threat_intelligence: float = Field(default=0.10, ge=0.0, le=1.0)

    # Heuristic ("ml") signals
    anomaly_detection: float = Field(default=0.08, ge=0.0, le=1.0)


class RiskThresholds(_Frozen):
    """
    Lower bounds of each risk level on the 0-100 scale.

    Anything below ``medium`` is low. Bounds must be strictly increasing
    so the classification is monotonic and covers [0, 100] without gaps.
    """

    medium: float = Field(default=50.0, gt=0.0, le=100.0)
    high: float = Field(default=70.0, gt=0.0, le=100.0)
    critical: float = Field(default=85.0, gt=0.0, le=100.0)

    @model_validator(mode="after")
    def _check_monotonic(self) -> "RiskThresholds":
        if not (self.medium < self.high < self.critical):
            raise ValueError(
                "Risk thresholds must satisfy medium < high < critical "
                f"(got {self.medium}, {self.high}, {self.critical})"
            )
        return self

    def classify(self, score: float) -> str:
        """Map a 0-100 score onto low/medium/high/critical."""
        if score >= self.critical:
            return "critical"
        if score >= self.high:
            return "high"
        if score >= self.medium:
            return "medium"
        return "low"


class DeviceIPConfig(_Frozen):
    """Weights and thresholds for the device/IP composite assessment."""

    ip_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    device_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    threat_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    default_score: float = Field(default=50.0, ge=0.0, le=100.0)
    thresholds: RiskThresholds = Field(
        default_factory=lambda: RiskThresholds(medium=40.0, high=65.0, critical=85.0)
    )


class ConfidenceConfig(_Frozen):
    """Parameters of the signal-coverage confidence estimate."""

    base: float = Field(default=0.3, ge=0.0, le=1.0)
    per_signal: float = Field(default=0.05, ge=0.0, le=1.0)
    signal_cap: float = Field(default=0.9, ge=0.0, le=1.0)
    per_vendor_signal: float = Field(default=0.05, ge=0.0, le=1.0)


class CacheTTLs(_Frozen):
    """TTLs in seconds for each cached artifact."""

    ip_reputation: int = Field(default=3600, gt=0)
    threat_intel: int = Field(default=3600, gt=0)
    device_check: int = Field(default=3600, gt=0)
    device_history: int = Field(default=86400 * 30, gt=0)
    fraud_result: int = Field(default=86400, gt=0)


class ScoringConfig(_Frozen):
    """Complete, immutable scoring configuration."""

    signal_weights: SignalWeights = Field(default_factory=SignalWeights)
    risk_thresholds: RiskThresholds = Field(default_factory=RiskThresholds)
    device_ip: DeviceIPConfig = Field(default_factory=DeviceIPConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    ttls: CacheTTLs = Field(default_factory=CacheTTLs)

    # Score above which a signal counts as "high risk" for the anomaly
    # heuristic and for targeted recommendations.
    high_risk_signal_score: float = Field(default=60.0, ge=0.0, le=100.0)


DEFAULT_SCORING_CONFIG = ScoringConfig()


def load_scoring_config(path: Optional[Union[str, Path]] = None) -> ScoringConfig:
    """
    Load scoring configuration from YAML.

    Missing sections fall back to defaults. A missing file returns the
    default configuration; an invalid file raises, since silently scoring
    with the wrong weights is worse than failing at startup.

    Args:
        path: Path to YAML file (optional)

    Returns:
        ScoringConfig instance
    """
    if not path:
        return DEFAULT_SCORING_CONFIG

    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Scoring config %s not found, using defaults", config_path)
        return DEFAULT_SCORING_CONFIG

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    config = ScoringConfig(**data)
    logger.info("Loaded scoring config from %s", config_path)
    return config
