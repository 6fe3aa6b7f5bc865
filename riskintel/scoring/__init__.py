# Scoring Module
from .aggregation import weighted_score, classify, compute_confidence, build_recommendations
from .anomaly import AnomalyScorer, HeuristicAnomalyScorer
from .engine import FraudScoringEngine, InvalidRequestError

__all__ = [
    "weighted_score",
    "classify",
    "compute_confidence",
    "build_recommendations",
    "AnomalyScorer",
    "HeuristicAnomalyScorer",
    "FraudScoringEngine",
    "InvalidRequestError",
]
