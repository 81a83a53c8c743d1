"""Staff-related Pydantic schemas."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from cleanbook.models.staff import StaffRole, StaffStatus, ApprovalStatus
from cleanbook.schemas.common import NormalizedEmail, PhoneNumber


class StaffCreate(BaseModel):
    """Schema for creating a staff member (admin)."""

    name: str = Field(..., min_length=1, max_length=255)
    email: NormalizedEmail
    phone: PhoneNumber
    address: str = Field(..., min_length=1)
    role: StaffRole
    status: StaffStatus = StaffStatus.ACTIVE
    password: Optional[str] = None  # Defaults to the configured starter password
    specialization: Optional[str] = Field(None, max_length=255)
    experience_years: int = Field(0, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)


class StaffUpdate(BaseModel):
    """Schema for updating a staff member (admin). Null means unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[NormalizedEmail] = None
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = None
    role: Optional[StaffRole] = None
    status: Optional[StaffStatus] = None
    password: Optional[str] = None
    specialization: Optional[str] = Field(None, max_length=255)
    experience_years: Optional[int] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)


class StaffSelfUpdate(BaseModel):
    """Fields a staff member may change on their own profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = None
    specialization: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = None  # Applied only when long enough


class StaffRegisterRequest(BaseModel):
    """Staff self-registration."""

    name: str = Field(..., min_length=1, max_length=255)
    email: NormalizedEmail
    phone: PhoneNumber
    address: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class CompleteProfileRequest(BaseModel):
    """Onboarding details submitted after email verification."""

    staff_id: int = Field(..., alias="staffId")
    zzp_number: Optional[str] = Field(None, max_length=64)
    kvk_number: Optional[str] = Field(None, max_length=64)
    bsn_number: Optional[str] = Field(None, max_length=64)
    brp_number: Optional[str] = Field(None, max_length=64)
    car_type: Optional[str] = Field(None, max_length=100)
    bhv_certificate: bool = False
    identity_document: Optional[str] = Field(None, max_length=255)
    passport_number: Optional[str] = Field(None, max_length=64)
    bank_account: Optional[str] = Field(None, max_length=64)

    class Config:
        populate_by_name = True


class StaffApprovalRequest(BaseModel):
    """Admin decision on a staff application."""

    staff_id: int = Field(..., alias="staffId")
    action: Literal["approve", "reject"]
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")

    class Config:
        populate_by_name = True


class StaffResponse(BaseModel):
    """Schema for staff response. Never includes credentials or tokens."""

    id: int
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]
    role: StaffRole
    status: StaffStatus
    approval_status: ApprovalStatus
    email_verified: bool
    verified_at: Optional[datetime]
    approved_at: Optional[datetime]
    rejection_reason: Optional[str]
    specialization: Optional[str]
    experience_years: Optional[int]
    hourly_rate: Optional[float]
    zzp_number: Optional[str]
    kvk_number: Optional[str]
    bsn_number: Optional[str]
    brp_number: Optional[str]
    car_type: Optional[str]
    bhv_certificate: Optional[bool]
    identity_document: Optional[str]
    passport_number: Optional[str]
    bank_account: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
