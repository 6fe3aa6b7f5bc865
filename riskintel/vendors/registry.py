"""
Vendor Provider Registry

Maps provider names from configuration onto adapter factories, so the
engine is wired to whatever vendors a deployment selects without ever
importing a concrete provider.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import Settings
from ..storage import RiskDataRepository
from .base import IdentityAdapter, IPReputationAdapter, ThreatIntelAdapter, VendorAdapter
from .http import (
    HttpVendorClient,
    HttpIdentityAdapter,
    HttpIPReputationAdapter,
    HttpThreatIntelAdapter,
)
from .records import RecordIdentityAdapter
from .static import (
    IDENTITY_PROFILES,
    IP_PROFILES,
    THREAT_PROFILES,
    StaticIdentityAdapter,
    StaticIPReputationAdapter,
    StaticThreatIntelAdapter,
)

logger = logging.getLogger("riskintel.vendors")

DISABLED = "none"

IDENTITY = "identity"
IP_REPUTATION = "ip_reputation"
THREAT_INTEL = "threat_intel"


@dataclass
class VendorContext:
    """Everything a factory may need to build an adapter."""
    settings: Settings
    repository: Optional[RiskDataRepository] = None


@dataclass
class VendorAdapters:
    """The adapter set handed to the engine; any kind may be absent."""
    identity: Optional[IdentityAdapter] = None
    ip_reputation: Optional[IPReputationAdapter] = None
    threat_intel: Optional[ThreatIntelAdapter] = None

    def all(self) -> list[VendorAdapter]:
        return [a for a in (self.identity, self.ip_reputation, self.threat_intel) if a]

    async def close(self) -> None:
        for adapter in self.all():
            await adapter.close()


Factory = Callable[[str, VendorContext], VendorAdapter]


@dataclass
class VendorRegistry:
    """Provider name → factory, per adapter kind."""
    factories: dict[str, dict[str, Factory]] = field(
        default_factory=lambda: {IDENTITY: {}, IP_REPUTATION: {}, THREAT_INTEL: {}}
    )

    def register(self, kind: str, name: str, factory: Factory) -> None:
        if kind not in self.factories:
            raise ValueError(f"Unknown adapter kind: {kind}")
        self.factories[kind][name.lower()] = factory

    def providers(self, kind: str) -> list[str]:
        return sorted(self.factories.get(kind, {}))

    def create(self, kind: str, name: str, context: VendorContext) -> Optional[VendorAdapter]:
        """
        Build the adapter for a provider name.

        Returns:
            Adapter instance, or None when the kind is disabled

        Raises:
            ValueError: if the provider name is not registered
        """
        provider = (name or DISABLED).lower()
        if provider == DISABLED:
            return None

        factory = self.factories.get(kind, {}).get(provider)
        if factory is None:
            raise ValueError(
                f"Unknown {kind} provider '{name}'. "
                f"Available: {', '.join(self.providers(kind))}"
            )
        return factory(provider, context)


# =============================================================================
# Built-in factories
# =============================================================================

def _timeout(context: VendorContext) -> float:
    return context.settings.vendor_timeout_seconds


def _record_identity(provider: str, context: VendorContext) -> VendorAdapter:
    if context.repository is None:
        raise ValueError("The 'records' identity provider requires a repository")
    return RecordIdentityAdapter(context.repository, provider, timeout_seconds=_timeout(context))


def _http_client(url: Optional[str], api_key: Optional[str], context: VendorContext, kind: str) -> HttpVendorClient:
    if not url:
        raise ValueError(f"The 'http' {kind} provider requires an API URL")
    return HttpVendorClient(url, api_key=api_key, timeout_seconds=_timeout(context))


def _http_identity(provider: str, context: VendorContext) -> VendorAdapter:
    s = context.settings
    http = _http_client(s.identity_vendor_api_url, s.identity_vendor_api_key, context, IDENTITY)
    return HttpIdentityAdapter(http, provider, timeout_seconds=_timeout(context))


def _http_ip(provider: str, context: VendorContext) -> VendorAdapter:
    s = context.settings
    http = _http_client(s.ip_vendor_api_url, s.ip_vendor_api_key, context, IP_REPUTATION)
    return HttpIPReputationAdapter(http, provider, timeout_seconds=_timeout(context))


def _http_threat(provider: str, context: VendorContext) -> VendorAdapter:
    s = context.settings
    http = _http_client(
        s.threat_intel_vendor_api_url, s.threat_intel_vendor_api_key, context, THREAT_INTEL
    )
    return HttpThreatIntelAdapter(http, provider, timeout_seconds=_timeout(context))


def default_registry() -> VendorRegistry:
    """Registry pre-populated with every built-in provider."""
    registry = VendorRegistry()

    registry.register(IDENTITY, "records", _record_identity)
    registry.register(IDENTITY, "http", _http_identity)
    for name in IDENTITY_PROFILES:
        registry.register(
            IDENTITY, name,
            lambda p, c: StaticIdentityAdapter(p, timeout_seconds=_timeout(c)),
        )

    registry.register(IP_REPUTATION, "http", _http_ip)
    for name in IP_PROFILES:
        registry.register(
            IP_REPUTATION, name,
            lambda p, c: StaticIPReputationAdapter(p, timeout_seconds=_timeout(c)),
        )

    registry.register(THREAT_INTEL, "http", _http_threat)
    for name in THREAT_PROFILES:
        registry.register(
            THREAT_INTEL, name,
            lambda p, c: StaticThreatIntelAdapter(p, timeout_seconds=_timeout(c)),
        )

    return registry


def build_vendor_adapters(
    settings: Settings,
    repository: Optional[RiskDataRepository] = None,
    registry: Optional[VendorRegistry] = None,
) -> VendorAdapters:
    """
    Build the configured adapter set.

    Args:
        settings: Application settings (provider names, keys, URLs)
        repository: Repository for record-backed providers
        registry: Custom registry (defaults to built-ins)

    Returns:
        VendorAdapters with each configured kind populated
    """
    registry = registry or default_registry()
    context = VendorContext(settings=settings, repository=repository)

    adapters = VendorAdapters(
        identity=registry.create(IDENTITY, settings.identity_vendor, context),
        ip_reputation=registry.create(IP_REPUTATION, settings.ip_vendor, context),
        threat_intel=registry.create(THREAT_INTEL, settings.threat_intel_vendor, context),
    )
    logger.info("Vendor adapters configured: %s", adapters.all())
    return adapters
