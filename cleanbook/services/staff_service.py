"""Staff service - onboarding, the login gate, and staff administration."""

import secrets
from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.config import get_settings
from cleanbook.errors import ApiError, BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from cleanbook.integrations.smtp_client import EmailDeliveryError
from cleanbook.models.assignment import Assignment
from cleanbook.models.staff import Staff, StaffRole, StaffStatus, ApprovalStatus
from cleanbook.models.team import TeamMember
from cleanbook.schemas.staff import (
    StaffCreate,
    StaffUpdate,
    StaffSelfUpdate,
    StaffRegisterRequest,
    CompleteProfileRequest,
)
from cleanbook.security import hash_password, verify_password
from cleanbook.services.email_service import EmailService

settings = get_settings()
logger = structlog.get_logger(__name__)

APPROVAL_MESSAGES = {
    ApprovalStatus.PENDING_INFO: "Please complete your profile before logging in",
    ApprovalStatus.PENDING_APPROVAL: "Your application is pending admin approval",
    ApprovalStatus.REJECTED: "Your application has been rejected",
}

STATUS_MESSAGES = {
    StaffStatus.INACTIVE: "Your account is inactive. Please contact the administrator",
    StaffStatus.ON_LEAVE: "Your account is on leave. Please contact the administrator",
}


def generate_verification_token() -> str:
    return secrets.token_hex(32)


# =============================================================================
# Login Gate
# =============================================================================

def require_verified_email(staff: Staff) -> None:
    if not staff.email_verified:
        raise ForbiddenError(
            "Please verify your email address before logging in",
            requiresVerification=True,
            code="email_not_verified",
        )


def require_approved_and_active(staff: Staff) -> None:
    if staff.approval_status != ApprovalStatus.APPROVED:
        extra = {"approvalStatus": staff.approval_status.value, "code": staff.approval_status.value}
        if staff.approval_status == ApprovalStatus.PENDING_INFO:
            extra["staffId"] = staff.id
        if staff.approval_status == ApprovalStatus.REJECTED and staff.rejection_reason:
            extra["rejectionReason"] = staff.rejection_reason
        raise ForbiddenError(APPROVAL_MESSAGES[staff.approval_status], **extra)

    if staff.status != StaffStatus.ACTIVE:
        raise ForbiddenError(
            STATUS_MESSAGES.get(staff.status, "Your account is not active"),
            code="account_inactive",
            staffStatus=staff.status.value,
        )


def check_login_gate(staff: Staff) -> None:
    """email_verified, then approval_status, then status. Raises ForbiddenError."""
    require_verified_email(staff)
    require_approved_and_active(staff)


class StaffService:
    """Service for staff operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, staff_id: int) -> Optional[Staff]:
        return await self.db.get(Staff, staff_id)

    async def get_by_email(self, email: str) -> Optional[Staff]:
        result = await self.db.execute(select(Staff).where(Staff.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def list_staff(
        self,
        role: Optional[StaffRole] = None,
        status: Optional[StaffStatus] = None,
        approval_status: Optional[ApprovalStatus] = None,
    ) -> List[Staff]:
        """List staff with filters."""
        query = select(Staff)
        if role:
            query = query.where(Staff.role == role)
        if status:
            query = query.where(Staff.status == status)
        if approval_status:
            query = query.where(Staff.approval_status == approval_status)
        result = await self.db.execute(query.order_by(Staff.created_at.desc()))
        return list(result.scalars())

    async def _ensure_email_free(self, email: str, exclude_id: Optional[int] = None) -> None:
        existing = await self.get_by_email(email)
        if existing and existing.id != exclude_id:
            raise BadRequestError("Email already exists")

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, email: str, password: str) -> Staff:
        """Password login.

        An unverified email is reported whether or not the password is right;
        approval and status are only revealed to the account owner.
        """
        staff = await self.get_by_email(email)
        if not staff:
            raise UnauthorizedError("Invalid credentials")

        require_verified_email(staff)
        if not verify_password(password, staff.password_hash):
            raise UnauthorizedError("Invalid credentials")
        require_approved_and_active(staff)
        return staff

    async def upsert_from_google(self, email: str, name: str) -> Staff:
        """Find or create the staff record for a Google sign-in.

        Google has verified the address, so new records start verified but
        still go through profile completion and approval.
        """
        staff = await self.get_by_email(email)
        if staff:
            if not staff.email_verified:
                staff.email_verified = True
                staff.verified_at = datetime.utcnow()
                staff.verification_token = None
                await self.db.commit()
            return staff

        staff = Staff(
            name=name,
            email=email.strip().lower(),
            role=StaffRole.CLEANER,
            status=StaffStatus.ACTIVE,
            approval_status=ApprovalStatus.PENDING_INFO,
            email_verified=True,
            verified_at=datetime.utcnow(),
        )
        self.db.add(staff)
        await self.db.commit()
        await self.db.refresh(staff)
        logger.info("staff_created_from_google", staff_id=staff.id)
        return staff

    # =========================================================================
    # Self-service onboarding
    # =========================================================================

    async def register(self, data: StaffRegisterRequest, email_service: EmailService) -> Staff:
        """Create an unverified application and send the verification email.

        The verification email is required: if it cannot be sent nothing is
        stored.
        """
        await self._ensure_email_free(data.email)

        token = generate_verification_token()
        staff = Staff(
            name=data.name,
            email=data.email,
            phone=data.phone,
            address=data.address,
            password_hash=hash_password(data.password),
            role=StaffRole.CLEANER,
            status=StaffStatus.ACTIVE,
            approval_status=ApprovalStatus.PENDING_INFO,
            email_verified=False,
            verification_token=token,
        )
        self.db.add(staff)
        await self.db.flush()

        try:
            await email_service.send_staff_verification(staff, token)
        except EmailDeliveryError:
            await self.db.rollback()
            raise ApiError("Failed to send verification email. Please try again.", status_code=500)

        await self.db.commit()
        await self.db.refresh(staff)
        logger.info("staff_registered", staff_id=staff.id)
        return staff

    async def verify_email(self, token: str) -> tuple:
        """Mark the email verified. Returns (staff, already_verified)."""
        result = await self.db.execute(select(Staff).where(Staff.verification_token == token))
        staff = result.scalar_one_or_none()
        if not staff:
            raise BadRequestError("Invalid or expired verification token")
        if staff.email_verified:
            return staff, True

        staff.email_verified = True
        staff.verified_at = datetime.utcnow()
        staff.verification_token = None
        await self.db.commit()
        await self.db.refresh(staff)
        return staff, False

    async def complete_profile(self, data: CompleteProfileRequest, email_service: EmailService) -> Staff:
        staff = await self.get_by_id(data.staff_id)
        if not staff:
            raise NotFoundError("Staff not found")
        if not staff.email_verified:
            raise BadRequestError("Please verify your email first", requiresVerification=True)
        if staff.approval_status == ApprovalStatus.APPROVED:
            raise BadRequestError("Profile has already been approved")

        profile = data.model_dump(exclude={"staff_id"})
        for field, value in profile.items():
            setattr(staff, field, value)
        staff.approval_status = ApprovalStatus.PENDING_APPROVAL
        staff.rejection_reason = None

        await self.db.commit()
        await self.db.refresh(staff)

        await email_service.notify_admin_staff_profile(staff)
        return staff

    async def decide_application(
        self,
        staff_id: int,
        approve: bool,
        rejection_reason: Optional[str],
        email_service: EmailService,
    ) -> Staff:
        """Approve or reject an application and tell the applicant."""
        staff = await self.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff not found")

        if approve:
            staff.approval_status = ApprovalStatus.APPROVED
            staff.status = StaffStatus.ACTIVE
            staff.approved_at = datetime.utcnow()
            staff.rejection_reason = None
        else:
            staff.approval_status = ApprovalStatus.REJECTED
            staff.status = StaffStatus.INACTIVE
            staff.rejection_reason = rejection_reason or "Application rejected"

        await self.db.commit()
        await self.db.refresh(staff)
        logger.info("staff_application_decided", staff_id=staff.id, approved=approve)

        if approve:
            await email_service.send_staff_approved(staff)
        else:
            await email_service.send_staff_rejected(staff)
        return staff

    # =========================================================================
    # Administration
    # =========================================================================

    async def create(self, data: StaffCreate) -> Staff:
        """Create a staff member (admin). Admin-created accounts are pre-approved."""
        await self._ensure_email_free(data.email)

        staff = Staff(
            name=data.name,
            email=data.email,
            phone=data.phone,
            address=data.address,
            password_hash=hash_password(data.password or settings.DEFAULT_STAFF_PASSWORD),
            role=data.role,
            status=data.status,
            approval_status=ApprovalStatus.APPROVED,
            approved_at=datetime.utcnow(),
            email_verified=True,
            verified_at=datetime.utcnow(),
            specialization=data.specialization,
            experience_years=data.experience_years,
            hourly_rate=data.hourly_rate,
        )
        self.db.add(staff)
        await self.db.commit()
        await self.db.refresh(staff)
        return staff

    async def update(self, staff_id: int, data: StaffUpdate) -> Staff:
        """COALESCE-style update: null or omitted fields keep their value."""
        staff = await self.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff not found")

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        password = update_data.pop("password", None)
        if "email" in update_data and update_data["email"] != staff.email:
            await self._ensure_email_free(update_data["email"], exclude_id=staff.id)

        for field, value in update_data.items():
            setattr(staff, field, value)
        if password:
            staff.password_hash = hash_password(password)

        await self.db.commit()
        await self.db.refresh(staff)
        return staff

    async def update_self(self, staff: Staff, data: StaffSelfUpdate) -> Staff:
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        password = update_data.pop("password", None)

        for field, value in update_data.items():
            setattr(staff, field, value)
        if password and len(password) >= settings.MIN_PASSWORD_LENGTH:
            staff.password_hash = hash_password(password)

        await self.db.commit()
        await self.db.refresh(staff)
        return staff

    async def delete(self, staff_id: int) -> None:
        """Delete a staff member who is in no team and holds no assignments."""
        staff = await self.get_by_id(staff_id)
        if not staff:
            raise NotFoundError("Staff not found")

        memberships = await self.db.scalar(
            select(func.count()).select_from(TeamMember).where(TeamMember.staff_id == staff_id)
        )
        if memberships:
            raise BadRequestError("Cannot delete staff who is a member of a team. Remove from teams first.")

        assignments = await self.db.scalar(
            select(func.count()).select_from(Assignment).where(Assignment.staff_id == staff_id)
        )
        if assignments:
            raise BadRequestError("Cannot delete staff with existing assignments")

        await self.db.delete(staff)
        await self.db.commit()
