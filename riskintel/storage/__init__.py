# Storage Module
from .repository import (
    RiskDataRepository,
    InMemoryRiskDataRepository,
    SqlRiskDataRepository,
)

__all__ = [
    "RiskDataRepository",
    "InMemoryRiskDataRepository",
    "SqlRiskDataRepository",
]
