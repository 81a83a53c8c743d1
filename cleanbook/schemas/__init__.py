"""Pydantic schemas for API request/response validation."""

from cleanbook.schemas.common import ok, NormalizedEmail, PhoneNumber
from cleanbook.schemas.auth import (
    AdminLoginRequest,
    LoginRequest,
    CustomerRegisterRequest,
    VerifyBookingRequest,
    SessionInfo,
)
from cleanbook.schemas.user import UserUpdate, UserResponse
from cleanbook.schemas.staff import (
    StaffCreate,
    StaffUpdate,
    StaffSelfUpdate,
    StaffRegisterRequest,
    VerifyEmailRequest,
    CompleteProfileRequest,
    StaffApprovalRequest,
    StaffResponse,
)
from cleanbook.schemas.team import (
    TeamCreate,
    TeamUpdate,
    TeamMemberCreate,
    TeamMemberUpdate,
    TeamMemberResponse,
    TeamResponse,
)
from cleanbook.schemas.booking import (
    BookingCreate,
    BookingUpdate,
    BookingConfirmRequest,
    BookingResponse,
)
from cleanbook.schemas.assignment import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentResponse,
    AssignmentHistoryResponse,
)
from cleanbook.schemas.notification import NotificationMarkRequest, NotificationResponse
from cleanbook.schemas.service import ServiceCreate, ServiceUpdate, ServiceResponse

__all__ = [
    "ok",
    "NormalizedEmail",
    "PhoneNumber",
    "AdminLoginRequest",
    "LoginRequest",
    "CustomerRegisterRequest",
    "VerifyBookingRequest",
    "SessionInfo",
    "UserUpdate",
    "UserResponse",
    "StaffCreate",
    "StaffUpdate",
    "StaffSelfUpdate",
    "StaffRegisterRequest",
    "VerifyEmailRequest",
    "CompleteProfileRequest",
    "StaffApprovalRequest",
    "StaffResponse",
    "TeamCreate",
    "TeamUpdate",
    "TeamMemberCreate",
    "TeamMemberUpdate",
    "TeamMemberResponse",
    "TeamResponse",
    "BookingCreate",
    "BookingUpdate",
    "BookingConfirmRequest",
    "BookingResponse",
    "AssignmentCreate",
    "AssignmentUpdate",
    "AssignmentResponse",
    "AssignmentHistoryResponse",
    "NotificationMarkRequest",
    "NotificationResponse",
    "ServiceCreate",
    "ServiceUpdate",
    "ServiceResponse",
]
