# Data schemas for the risk engine
from .signals import Signal, SignalType, SignalNames, RiskLevel, clamp_score
from .vendors import (
    IdentityResult,
    IPReputationResult,
    ThreatIntelligenceResult,
    VendorResults,
)
from .device import DeviceFingerprintResult, DeviceIPRiskAssessment
from .results import FraudDetectionResult, Recommendations
from .records import UserRecord, TransactionRecord, TransactionStatus
from .requests import AnalyzeRequest, DeviceIPAssessRequest

__all__ = [
    # Signals
    "Signal",
    "SignalType",
    "SignalNames",
    "RiskLevel",
    "clamp_score",
    # Vendors
    "IdentityResult",
    "IPReputationResult",
    "ThreatIntelligenceResult",
    "VendorResults",
    # Device/IP
    "DeviceFingerprintResult",
    "DeviceIPRiskAssessment",
    # Results
    "FraudDetectionResult",
    "Recommendations",
    # Records
    "UserRecord",
    "TransactionRecord",
    "TransactionStatus",
    # Requests
    "AnalyzeRequest",
    "DeviceIPAssessRequest",
]
