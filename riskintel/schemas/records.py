"""
Persistence Record Schemas

The read-only view of users and transactions the engine consumes.
Only the fields needed for signal derivation are modelled.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TransactionStatus:
    """Transaction statuses the engine distinguishes."""
    COMPLETED = "completed"
    DISPUTED = "disputed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class UserRecord(BaseModel):
    """Stored user account."""
    id: int = Field(..., gt=0)
    created_at: datetime
    email: Optional[str] = None
    phone: Optional[str] = None
    is_verified: bool = False
    verification_level: Optional[str] = None


class TransactionRecord(BaseModel):
    """Stored transaction."""
    id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)
    amount: float = Field(default=0.0, ge=0.0)
    status: str = Field(default=TransactionStatus.PENDING)
    created_at: datetime
