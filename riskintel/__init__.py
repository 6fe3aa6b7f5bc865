"""
riskintel - multi-signal fraud/risk scoring engine.

Combines internal behavioral history, device/IP reputation, vendor
identity checks and threat intelligence into one calibrated verdict.
"""

__version__ = "1.0.0"
