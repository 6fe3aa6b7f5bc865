# Vendor Adapters Module
from .base import (
    VendorAdapter,
    IdentityAdapter,
    IPReputationAdapter,
    ThreatIntelAdapter,
    DEFAULT_TIMEOUT_SECONDS,
    is_valid_ip,
)
from .static import StaticIdentityAdapter, StaticIPReputationAdapter, StaticThreatIntelAdapter
from .records import RecordIdentityAdapter
from .calls import guarded_call
from .http import (
    HttpVendorClient,
    HttpIdentityAdapter,
    HttpIPReputationAdapter,
    HttpThreatIntelAdapter,
)
from .registry import (
    VendorAdapters,
    VendorRegistry,
    VendorContext,
    default_registry,
    build_vendor_adapters,
)

__all__ = [
    "VendorAdapter",
    "IdentityAdapter",
    "IPReputationAdapter",
    "ThreatIntelAdapter",
    "DEFAULT_TIMEOUT_SECONDS",
    "is_valid_ip",
    "StaticIdentityAdapter",
    "StaticIPReputationAdapter",
    "StaticThreatIntelAdapter",
    "RecordIdentityAdapter",
    "guarded_call",
    "HttpVendorClient",
    "HttpIdentityAdapter",
    "HttpIPReputationAdapter",
    "HttpThreatIntelAdapter",
    "VendorAdapters",
    "VendorRegistry",
    "VendorContext",
    "default_registry",
    "build_vendor_adapters",
]
