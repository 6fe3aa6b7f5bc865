"""
Anomaly Scoring

The "ml" signal slot. The baseline is a heuristic over the other
signals; a model-backed scorer can replace it by implementing
``AnomalyScorer`` without touching aggregation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..schemas import Signal, SignalNames, SignalType


class AnomalyScorer(ABC):
    """Produces one ml-typed signal from the signals collected so far."""

    @abstractmethod
    async def score(self, signals: list[Signal]) -> Optional[Signal]:
        """
        Score a signal set.

        Args:
            signals: Internal and vendor signals for the transaction

        Returns:
            An ml signal, or None to abstain
        """
        pass


class HeuristicAnomalyScorer(AnomalyScorer):
    """
    Counts high-risk signals.

    More than 3 signals above the threshold scores 70, more than 1
    scores 40, otherwise 10.
    """

    def __init__(self, weight: float = 0.08, high_risk_score: float = 60.0):
        self.weight = weight
        self.high_risk_score = high_risk_score

    async def score(self, signals: list[Signal]) -> Optional[Signal]:
        high_risk_count = sum(1 for s in signals if s.score > self.high_risk_score)

        if high_risk_count > 3:
            score = 70
        elif high_risk_count > 1:
            score = 40
        else:
            score = 10

        return Signal(
            type=SignalType.ML,
            name=SignalNames.ANOMALY_DETECTION,
            score=score,
            weight=self.weight,
            metadata={
                "highRiskSignalCount": high_risk_count,
                "model": "heuristic",
            },
        )
