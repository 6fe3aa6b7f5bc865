# Configuration Module
from .settings import Settings, get_settings, settings
from .scoring import (
    ScoringConfig,
    SignalWeights,
    RiskThresholds,
    DeviceIPConfig,
    ConfidenceConfig,
    CacheTTLs,
    DEFAULT_SCORING_CONFIG,
    load_scoring_config,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "ScoringConfig",
    "SignalWeights",
    "RiskThresholds",
    "DeviceIPConfig",
    "ConfidenceConfig",
    "CacheTTLs",
    "DEFAULT_SCORING_CONFIG",
    "load_scoring_config",
]
