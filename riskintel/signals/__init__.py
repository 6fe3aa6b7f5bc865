# Internal Signals Module
from .internal import InternalSignalCollector

__all__ = ["InternalSignalCollector"]
