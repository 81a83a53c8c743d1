"""Staff endpoints: onboarding, self-service and admin management."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import NO_STORE, PRIVATE, apply_cache_policy
from cleanbook.api.deps import (
    AdminOrStaff,
    get_db,
    get_email_service,
    require_admin,
    require_admin_or_staff,
    require_staff,
)
from cleanbook.errors import BadRequestError, ForbiddenError, NotFoundError
from cleanbook.models.staff import ApprovalStatus, Staff, StaffRole, StaffStatus
from cleanbook.schemas.common import ok
from cleanbook.schemas.staff import (
    CompleteProfileRequest,
    StaffApprovalRequest,
    StaffCreate,
    StaffRegisterRequest,
    StaffResponse,
    StaffSelfUpdate,
    StaffUpdate,
    VerifyEmailRequest,
)
from cleanbook.security import SessionPayload
from cleanbook.services.analytics_service import AnalyticsService, DEFAULT_PERIOD
from cleanbook.services.email_service import EmailService
from cleanbook.services.staff_service import StaffService

router = APIRouter()


def _dump(staff: Staff) -> dict:
    return StaffResponse.model_validate(staff).model_dump(mode="json")


# =============================================================================
# Admin: list / create
# =============================================================================

@router.get("")
async def list_staff(
    role: Optional[StaffRole] = Query(None),
    staff_status: Optional[StaffStatus] = Query(None, alias="status"),
    approval_status: Optional[ApprovalStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    staff = await StaffService(db).list_staff(role=role, status=staff_status, approval_status=approval_status)
    return ok(data=[_dump(s) for s in staff])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_staff(
    data: StaffCreate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    staff = await StaffService(db).create(data)
    return ok(data=_dump(staff), message="Staff member created successfully")


# =============================================================================
# Onboarding
# =============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_staff(
    data: StaffRegisterRequest,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Self-registration; the account stays locked until the email is verified."""
    staff = await StaffService(db).register(data, email_service)
    return ok(
        data={"id": staff.id, "email": staff.email},
        message="Registration successful. Please check your email to verify your account.",
        requiresVerification=True,
    )


@router.post("/verify-email")
async def verify_staff_email(data: VerifyEmailRequest, db: AsyncSession = Depends(get_db)):
    staff, already_verified = await StaffService(db).verify_email(data.token)
    message = "Email already verified" if already_verified else "Email verified successfully"
    return ok(
        data={"staffId": staff.id, "approvalStatus": staff.approval_status.value},
        message=message,
        alreadyVerified=already_verified,
    )


@router.post("/complete-profile")
async def complete_profile(
    data: CompleteProfileRequest,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    staff = await StaffService(db).complete_profile(data, email_service)
    return ok(
        data={"staffId": staff.id, "approvalStatus": staff.approval_status.value},
        message="Profile submitted. An administrator will review your application.",
    )


@router.post("/approve")
async def decide_application(
    data: StaffApprovalRequest,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    approve = data.action == "approve"
    staff = await StaffService(db).decide_application(
        data.staff_id, approve, data.rejection_reason, email_service
    )
    return ok(
        data=_dump(staff),
        message="Staff member approved" if approve else "Staff member rejected",
    )


# =============================================================================
# Self-service
# =============================================================================

@router.get("/me")
async def get_me(response: Response, staff: Staff = Depends(require_staff)):
    apply_cache_policy(response, PRIVATE)
    return ok(data=_dump(staff))


@router.put("/me")
async def update_me(
    data: StaffSelfUpdate,
    db: AsyncSession = Depends(get_db),
    staff: Staff = Depends(require_staff),
):
    staff = await StaffService(db).update_self(staff, data)
    return ok(data=_dump(staff), message="Profile updated successfully")


@router.get("/performance")
async def staff_performance(
    response: Response,
    staff_id: Optional[int] = Query(None),
    period: str = Query(DEFAULT_PERIOD),
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    """Performance report. Staff may only see their own."""
    apply_cache_policy(response, NO_STORE)
    if not caller.is_admin:
        if staff_id is not None and staff_id != caller.staff.id:
            raise ForbiddenError("You can only view your own performance")
        staff_id = caller.staff.id
    if staff_id is None:
        raise BadRequestError("Staff ID is required")
    if not await StaffService(db).get_by_id(staff_id):
        raise NotFoundError("Staff not found")

    report = await AnalyticsService(db).staff_report(staff_id, period)
    return ok(data=report)


# =============================================================================
# Admin: single staff member
# =============================================================================

@router.get("/{staff_id}")
async def get_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    staff = await StaffService(db).get_by_id(staff_id)
    if not staff:
        raise NotFoundError("Staff not found")
    return ok(data=_dump(staff))


@router.put("/{staff_id}")
async def update_staff(
    staff_id: int,
    data: StaffUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    staff = await StaffService(db).update(staff_id, data)
    return ok(data=_dump(staff), message="Staff member updated successfully")


@router.delete("/{staff_id}")
async def delete_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await StaffService(db).delete(staff_id)
    return ok(message="Staff member deleted successfully")
