"""
Static Vendor Providers

Deterministic canned responses keyed by provider name. Used in
development, demos and tests, and as the default until a real
integration is configured. Profiles mirror what each provider's
production integration is expected to return for a clean subject.
"""

from typing import Any, Optional

from ..schemas import IdentityResult, IPReputationResult, ThreatIntelligenceResult
from .base import IdentityAdapter, IPReputationAdapter, ThreatIntelAdapter, is_valid_ip


IDENTITY_PROFILES: dict[str, dict[str, Any]] = {
    "jumio": {"confidence": 0.95, "risk_score": 15, "method": "document_verification"},
    "onfido": {"confidence": 0.92, "risk_score": 18, "method": "document_verification"},
    "trulioo": {"confidence": 0.90, "risk_score": 20, "method": "identity_verification"},
    "persona": {"confidence": 0.93, "risk_score": 17, "method": "identity_verification"},
}

IP_PROFILES: dict[str, dict[str, Any]] = {
    "maxmind": {"risk_score": 25, "city": "San Francisco", "isp": "Example ISP"},
    "ipqualityscore": {"risk_score": 30},
    "abuseipdb": {"risk_score": 20},
    "ipinfo": {"risk_score": 25, "city": "San Francisco", "isp": "Example ISP"},
}

THREAT_PROFILES: dict[str, dict[str, Any]] = {
    "recordedfuture": {"risk_score": 10, "vendor": "recordedfuture"},
    "threatconnect": {"risk_score": 10, "vendor": "threatconnect"},
    "alienvault": {"risk_score": 10, "vendor": "alienvault_otx"},
    "otx": {"risk_score": 10, "vendor": "alienvault_otx"},
}

PRIVATE_PREFIXES = ("10.", "192.168.")
PRIVATE_IP_RISK_SCORE = 20


class StaticIdentityAdapter(IdentityAdapter):
    """Canned identity verification."""

    def __init__(self, provider: str, **kwargs):
        if provider not in IDENTITY_PROFILES:
            raise ValueError(f"Unknown static identity provider: {provider}")
        super().__init__(provider, **kwargs)
        self.profile = IDENTITY_PROFILES[provider]

    async def check_identity(
        self,
        user_id: int,
        email: Optional[str],
        phone: Optional[str] = None,
        document_data: Optional[dict[str, Any]] = None,
    ) -> Optional[IdentityResult]:
        return IdentityResult(
            provider=self.provider,
            verified=True,
            confidence=self.profile["confidence"],
            risk_score=self.profile["risk_score"],
            flags=[],
            metadata={
                "vendor": self.provider,
                "verificationMethod": self.profile["method"],
            },
        )


class StaticIPReputationAdapter(IPReputationAdapter):
    """Canned IP reputation; private ranges score lower."""

    def __init__(self, provider: str, **kwargs):
        if provider not in IP_PROFILES:
            raise ValueError(f"Unknown static IP provider: {provider}")
        super().__init__(provider, **kwargs)
        self.profile = IP_PROFILES[provider]

    async def check_ip_reputation(self, ip_address: str) -> Optional[IPReputationResult]:
        if not is_valid_ip(ip_address):
            return None

        risk_score = self.profile["risk_score"]
        if ip_address.startswith(PRIVATE_PREFIXES):
            risk_score = PRIVATE_IP_RISK_SCORE

        return IPReputationResult(
            provider=self.provider,
            risk_score=risk_score,
            is_proxy=False,
            is_vpn=False,
            is_tor=False,
            country="US",
            city=self.profile.get("city"),
            isp=self.profile.get("isp"),
            threat_level="low",
            flags=[],
            metadata={"vendor": self.provider},
        )


class StaticThreatIntelAdapter(ThreatIntelAdapter):
    """Canned threat intelligence: nothing known about anyone."""

    def __init__(self, provider: str, **kwargs):
        if provider not in THREAT_PROFILES:
            raise ValueError(f"Unknown static threat intel provider: {provider}")
        super().__init__(provider, **kwargs)
        self.profile = THREAT_PROFILES[provider]

    async def check_threat_intel(
        self,
        user_id: int,
        ip_address: str,
        email: Optional[str] = None,
    ) -> Optional[ThreatIntelligenceResult]:
        return ThreatIntelligenceResult(
            provider=self.provider,
            is_threat=False,
            threat_types=[],
            risk_score=self.profile["risk_score"],
            metadata={"vendor": self.profile["vendor"]},
        )
