"""
HTTP Vendor Providers

Generic adapters for vendor gateways that already speak the normalized
result shapes over JSON. Each request carries a bearer API key and an
explicit timeout; a 404 means "no record" and maps to ``None``. Any
other failure raises and is handled by the caller as a dropped signal.

Endpoints (relative to the configured base URL):
- POST /identity/verify
- GET  /ip/{ip_address}
- POST /threat-intel/check
"""

from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..schemas import IdentityResult, IPReputationResult, ThreatIntelligenceResult
from .base import (
    DEFAULT_TIMEOUT_SECONDS,
    IdentityAdapter,
    IPReputationAdapter,
    ThreatIntelAdapter,
    is_valid_ip,
)

ResultT = TypeVar("ResultT", bound=BaseModel)


class HttpVendorClient:
    """Thin wrapper over ``httpx.AsyncClient`` shared by the HTTP adapters."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
        )

    async def request(
        self,
        method: str,
        path: str,
        result_type: Type[ResultT],
        provider: str,
        json: Optional[dict[str, Any]] = None,
    ) -> Optional[ResultT]:
        response = await self.client.request(method, path, json=json)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()

        data = response.json()
        if not data:
            return None
        data.setdefault("provider", provider)
        return result_type.model_validate(data)

    async def close(self) -> None:
        await self.client.aclose()


class HttpIdentityAdapter(IdentityAdapter):
    def __init__(self, http: HttpVendorClient, provider: str = "http", **kwargs):
        super().__init__(provider, **kwargs)
        self.http = http

    async def check_identity(
        self,
        user_id: int,
        email: Optional[str],
        phone: Optional[str] = None,
        document_data: Optional[dict[str, Any]] = None,
    ) -> Optional[IdentityResult]:
        payload = {
            "user_id": user_id,
            "email": email,
            "phone": phone,
            "document": document_data,
        }
        return await self.http.request(
            "POST", "/identity/verify", IdentityResult, self.provider, json=payload
        )

    async def close(self) -> None:
        await self.http.close()


class HttpIPReputationAdapter(IPReputationAdapter):
    def __init__(self, http: HttpVendorClient, provider: str = "http", **kwargs):
        super().__init__(provider, **kwargs)
        self.http = http

    async def check_ip_reputation(self, ip_address: str) -> Optional[IPReputationResult]:
        if not is_valid_ip(ip_address):
            return None
        return await self.http.request(
            "GET", f"/ip/{ip_address}", IPReputationResult, self.provider
        )

    async def close(self) -> None:
        await self.http.close()


class HttpThreatIntelAdapter(ThreatIntelAdapter):
    def __init__(self, http: HttpVendorClient, provider: str = "http", **kwargs):
        super().__init__(provider, **kwargs)
        self.http = http

    async def check_threat_intel(
        self,
        user_id: int,
        ip_address: str,
        email: Optional[str] = None,
    ) -> Optional[ThreatIntelligenceResult]:
        payload = {"user_id": user_id, "ip_address": ip_address, "email": email}
        return await self.http.request(
            "POST", "/threat-intel/check", ThreatIntelligenceResult, self.provider, json=payload
        )

    async def close(self) -> None:
        await self.http.close()
