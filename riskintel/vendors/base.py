"""
Vendor Adapter Interfaces

The scoring engine depends only on these interfaces, never on a
concrete provider. Each adapter normalizes one kind of third-party
check into a fixed result shape:

- IdentityAdapter: identity/KYC verification
- IPReputationAdapter: proxy/VPN/Tor and reputation for an IP
- ThreatIntelAdapter: known-bad indicators for a (user, ip, email)

Returning ``None`` means "no opinion" and is not an error. Raising is
allowed; callers treat any exception or timeout as a missing signal.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..schemas import IdentityResult, IPReputationResult, ThreatIntelligenceResult

DEFAULT_TIMEOUT_SECONDS = 5.0


class VendorAdapter(ABC):
    """Common attributes of every adapter."""

    kind: str = "vendor"

    def __init__(self, provider: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize adapter.

        Args:
            provider: Provider name reported on results
            timeout_seconds: Budget callers enforce on each call
        """
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def close(self) -> None:
        """Release any held resources (HTTP clients)."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider!r})"


class IdentityAdapter(VendorAdapter):
    kind = "identity"

    @abstractmethod
    async def check_identity(
        self,
        user_id: int,
        email: Optional[str],
        phone: Optional[str] = None,
        document_data: Optional[dict[str, Any]] = None,
    ) -> Optional[IdentityResult]:
        """Verify a user's identity."""


class IPReputationAdapter(VendorAdapter):
    kind = "ip_reputation"

    @abstractmethod
    async def check_ip_reputation(self, ip_address: str) -> Optional[IPReputationResult]:
        """Look up reputation for an IP address."""


class ThreatIntelAdapter(VendorAdapter):
    kind = "threat_intel"

    @abstractmethod
    async def check_threat_intel(
        self,
        user_id: int,
        ip_address: str,
        email: Optional[str] = None,
    ) -> Optional[ThreatIntelligenceResult]:
        """Check threat-intelligence feeds for a user/IP pair."""


def is_valid_ip(ip_address: Optional[str]) -> bool:
    """Reject the placeholder values callers send when no IP is known."""
    return bool(ip_address) and ip_address.strip().lower() != "unknown"
