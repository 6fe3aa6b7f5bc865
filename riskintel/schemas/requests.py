"""
API Request Schemas

Bodies accepted by the HTTP layer. Ids are validated here so malformed
requests are rejected with 422 before reaching the engine.
"""

from typing import Optional

from pydantic import BaseModel, Field, PositiveInt


class AnalyzeRequest(BaseModel):
    """Request to score a transaction."""
    transaction_id: PositiveInt = Field(..., description="Transaction to assess")
    user_id: PositiveInt = Field(..., description="Transaction owner")
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    device_fingerprint: Optional[str] = Field(default=None, max_length=256)
    email: Optional[str] = Field(default=None, max_length=320)


class DeviceIPAssessRequest(BaseModel):
    """Request for a standalone device/IP assessment."""
    user_id: PositiveInt
    ip_address: Optional[str] = Field(default=None, max_length=64)
    device_fingerprint: Optional[str] = Field(default=None, max_length=256)
    email: Optional[str] = Field(default=None, max_length=320)
