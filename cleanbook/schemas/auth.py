"""Authentication request/response schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from cleanbook.schemas.common import NormalizedEmail, PhoneNumber
from cleanbook.security import Role


class AdminLoginRequest(BaseModel):
    """Admin login with the configured credentials."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Email/password login request (staff and customers)."""
    email: NormalizedEmail
    password: str = Field(..., min_length=1)


class CustomerRegisterRequest(BaseModel):
    """Customer self-registration."""
    email: NormalizedEmail
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = None


class VerifyBookingRequest(BaseModel):
    """Set the account password for a verified booking."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class SessionInfo(BaseModel):
    """Who am I."""
    role: Role
    id: str
    email: str
    name: str
