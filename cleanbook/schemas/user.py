"""Customer account schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from cleanbook.schemas.common import NormalizedEmail, PhoneNumber


class UserUpdate(BaseModel):
    """Self-service profile update. Omitted or null fields are left unchanged."""

    name: Optional[str] = Field(None, max_length=255)
    email: Optional[NormalizedEmail] = None
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = None
    password: Optional[str] = None  # Applied only when long enough


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    email_verified: bool
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
