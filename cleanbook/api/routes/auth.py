"""Authentication endpoints for admin, staff and customers."""

import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import NO_STORE, apply_cache_policy
from cleanbook.api.deps import get_db, get_email_service, get_sessions
from cleanbook.config import get_settings
from cleanbook.errors import UnauthorizedError
from cleanbook.schemas.auth import (
    AdminLoginRequest,
    CustomerRegisterRequest,
    LoginRequest,
    SessionInfo,
    VerifyBookingRequest,
)
from cleanbook.schemas.booking import BookingResponse
from cleanbook.schemas.common import ok
from cleanbook.security import ADMIN_ID, ADMIN_NAME, RESOLUTION_ORDER, Role, SessionManager
from cleanbook.services.booking_service import BookingService
from cleanbook.services.email_service import EmailService
from cleanbook.services.staff_service import StaffService
from cleanbook.services.user_service import UserService

settings = get_settings()
router = APIRouter()


def _account(id, email: str, name: str, **extra) -> dict:
    account = {"id": str(id), "email": email, "name": name}
    account.update(extra)
    return account


# =============================================================================
# Admin
# =============================================================================

@router.post("/admin-login")
async def admin_login(
    data: AdminLoginRequest,
    response: Response,
    sessions: SessionManager = Depends(get_sessions),
):
    """Log in with the configured admin credentials."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        raise UnauthorizedError("Invalid credentials")

    email_ok = secrets.compare_digest(data.email.strip().lower(), settings.ADMIN_EMAIL.strip().lower())
    password_ok = secrets.compare_digest(data.password, settings.ADMIN_PASSWORD)
    if not (email_ok and password_ok):
        raise UnauthorizedError("Invalid credentials")

    sessions.start_session(response, Role.ADMIN, id=ADMIN_ID, email=settings.ADMIN_EMAIL, name=ADMIN_NAME)
    return ok(user=_account(ADMIN_ID, settings.ADMIN_EMAIL, ADMIN_NAME, role=Role.ADMIN.value))


@router.post("/logout")
async def logout(
    response: Response,
    role: Optional[Role] = Query(None, description="Clear only this role's session"),
    sessions: SessionManager = Depends(get_sessions),
):
    """Clear one session cookie, or all of them."""
    for session_role in ([role] if role else RESOLUTION_ORDER):
        sessions.clear_cookie(response, session_role)
    return ok(message="Logged out successfully")


@router.get("/check")
async def check(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_sessions),
):
    """Who am I: the highest-precedence valid session."""
    apply_cache_policy(response, NO_STORE)
    resolved = sessions.resolve(request)
    if resolved is None:
        raise UnauthorizedError("Not authenticated")

    payload = resolved.payload
    info = SessionInfo(role=resolved.role, id=payload.id, email=payload.email, name=payload.name)
    return ok(user=info.model_dump(mode="json"))


# =============================================================================
# Customers
# =============================================================================

@router.post("/register")
async def register_customer(
    data: CustomerRegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
    email_service: EmailService = Depends(get_email_service),
):
    """Create a customer account and log it in."""
    user = await UserService(db).register(data)
    sessions.start_session(response, Role.CUSTOMER, id=user.id, email=user.email, name=user.name)

    await email_service.notify_admin_new_customer(user)
    return ok(
        user=_account(user.id, user.email, user.name, phone=user.phone, address=user.address),
        message="Account created successfully",
    )


@router.post("/customer-login")
async def customer_login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
):
    user = await UserService(db).authenticate(data.email, data.password)
    sessions.start_session(response, Role.CUSTOMER, id=user.id, email=user.email, name=user.name)
    return ok(user=_account(user.id, user.email, user.name, role=Role.CUSTOMER.value))


# =============================================================================
# Staff
# =============================================================================

@router.post("/staff-login")
async def staff_login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
):
    """Password login through the approval gate."""
    staff = await StaffService(db).authenticate(data.email, data.password)
    sessions.start_session(response, Role.STAFF, id=staff.id, email=staff.email, name=staff.name)
    return ok(user=_account(staff.id, staff.email, staff.name, role=Role.STAFF.value))


# =============================================================================
# Booking Verification
# =============================================================================

@router.get("/verify-booking")
async def verify_booking_email(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Link from the verification email: confirms the address."""
    booking = await BookingService(db).verify_email(token)
    return ok(
        data=BookingResponse.model_validate(booking).model_dump(mode="json"),
        message="Email verified. Please set a password to confirm your booking.",
        requiresPassword=True,
    )


@router.post("/verify-booking")
async def complete_booking_verification(
    data: VerifyBookingRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_sessions),
    email_service: EmailService = Depends(get_email_service),
):
    """Set the account password; the booking is confirmed and the customer logged in."""
    booking, user = await BookingService(db).complete_verification(data.token, data.password, email_service)
    sessions.start_session(response, Role.CUSTOMER, id=user.id, email=user.email, name=user.name)
    return ok(
        data=BookingResponse.model_validate(booking).model_dump(mode="json"),
        user=_account(user.id, user.email, user.name),
        message="Booking confirmed",
    )
