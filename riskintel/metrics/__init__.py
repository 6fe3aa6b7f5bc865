# Metrics Module
from .prometheus import metrics, RiskMetrics

__all__ = ["metrics", "RiskMetrics"]
