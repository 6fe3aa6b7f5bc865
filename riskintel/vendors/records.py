"""
Record-backed identity provider.

Derives an identity result from the verification state already stored
on the user record, for deployments without a KYC vendor.
"""

from typing import Any, Optional

from ..schemas import IdentityResult
from ..storage import RiskDataRepository
from .base import IdentityAdapter


class RecordIdentityAdapter(IdentityAdapter):
    """Identity verdict from the user's stored KYC status."""

    VERIFIED_RISK = 20
    UNVERIFIED_RISK = 60

    def __init__(self, repository: RiskDataRepository, provider: str = "records", **kwargs):
        super().__init__(provider, **kwargs)
        self.repository = repository

    async def check_identity(
        self,
        user_id: int,
        email: Optional[str],
        phone: Optional[str] = None,
        document_data: Optional[dict[str, Any]] = None,
    ) -> Optional[IdentityResult]:
        user = await self.repository.get_user(user_id)
        if user is None:
            return None

        verified = user.is_verified
        return IdentityResult(
            provider=self.provider,
            verified=verified,
            confidence=0.9 if verified else 0.3,
            risk_score=self.VERIFIED_RISK if verified else self.UNVERIFIED_RISK,
            flags=[] if verified else ["unverified_identity"],
            metadata={
                "verificationLevel": user.verification_level or "none",
                "kycStatus": "verified" if verified else "unverified",
            },
        )
