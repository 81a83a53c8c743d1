"""Booking service - the booking lifecycle up to assignment."""

import secrets
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.config import get_settings
from cleanbook.errors import ApiError, BadRequestError, NotFoundError
from cleanbook.integrations.smtp_client import EmailDeliveryError
from cleanbook.models.assignment import (
    ACTIVE_ASSIGNMENT_STATUSES,
    Assignment,
    AssignmentStatus,
    AssignmentStatusHistory,
)
from cleanbook.models.booking import Booking, BookingStatus
from cleanbook.models.user import User
from cleanbook.schemas.booking import BookingCreate, BookingUpdate
from cleanbook.security import hash_password
from cleanbook.services.email_service import EmailService

settings = get_settings()
logger = structlog.get_logger(__name__)

VERIFICATION_EMAIL_FAILED = "Failed to send verification email. Please try again."

# Statuses a customer may set on their own booking
CUSTOMER_SETTABLE_STATUSES = (BookingStatus.CANCELLED,)

# Assignments can no longer move a booking out of these
CLOSED_BOOKING_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)


def generate_booking_token() -> str:
    return secrets.token_hex(32)


class BookingService:
    """Service for booking operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, booking_id: int) -> Optional[Booking]:
        return await self.db.get(Booking, booking_id)

    async def get_or_404(self, booking_id: int) -> Booking:
        booking = await self.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    async def list_bookings(
        self,
        email: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        user_id: Optional[int] = None,
    ) -> List[Booking]:
        """List bookings, newest first."""
        query = select(Booking)
        if email:
            query = query.where(Booking.email == email.strip().lower())
        if status:
            query = query.where(Booking.status == status)
        if user_id is not None:
            query = query.where(Booking.user_id == user_id)
        result = await self.db.execute(query.order_by(Booking.created_at.desc(), Booking.id.desc()))
        return list(result.scalars())

    async def list_for_customer(self, user: User) -> List[Booking]:
        """Bookings linked to the account, or placed with its email once that is verified."""
        condition = Booking.user_id == user.id
        if user.email_verified:
            condition = condition | (Booking.email == user.email)
        result = await self.db.execute(
            select(Booking)
            .where(condition)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return list(result.scalars())

    async def _find_user(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    # =========================================================================
    # Creation
    # =========================================================================

    async def create(self, data: BookingCreate, email_service: EmailService) -> Booking:
        """Create a confirmed booking, linked to the verified account with that email if any."""
        user = await self._find_user(data.email)
        booking = Booking(
            **data.model_dump(),
            status=BookingStatus.CONFIRMED,
            user_id=user.id if user and user.email_verified else None,
        )
        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)
        logger.info("booking_created", booking_id=booking.id, flow="direct")

        await email_service.notify_admin_new_booking(booking)
        return booking

    async def create_with_verification(self, data: BookingCreate, email_service: EmailService) -> Booking:
        """Create a booking that waits for email verification.

        All-or-nothing with the verification email: the insert is only
        committed once the email has been handed to the mail server.
        """
        user = await self._find_user(data.email)
        if user and user.email_verified:
            raise BadRequestError(
                "An account with this email already exists. Please log in to book.",
                code="account_exists",
            )

        token = generate_booking_token()
        booking = Booking(
            **data.model_dump(),
            status=BookingStatus.PENDING_VERIFICATION,
            verification_token=token,
            verification_expires_at=datetime.utcnow() + timedelta(hours=settings.BOOKING_VERIFICATION_HOURS),
        )
        self.db.add(booking)
        await self.db.flush()

        try:
            await email_service.send_booking_verification(booking, token)
        except EmailDeliveryError:
            await self.db.rollback()
            raise ApiError(VERIFICATION_EMAIL_FAILED, status_code=500)

        await self.db.commit()
        await self.db.refresh(booking)
        logger.info("booking_created", booking_id=booking.id, flow="verification")
        return booking

    # =========================================================================
    # Verification
    # =========================================================================

    async def _get_by_token(self, token: str, status: BookingStatus) -> Booking:
        result = await self.db.execute(
            select(Booking).where(Booking.verification_token == token, Booking.status == status)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise BadRequestError("Invalid or expired verification link")
        if booking.verification_expires_at and booking.verification_expires_at < datetime.utcnow():
            raise BadRequestError("Invalid or expired verification link", code="token_expired")
        return booking

    async def verify_email(self, token: str) -> Booking:
        """First click on the emailed link: the address is confirmed."""
        booking = await self._get_by_token(token, BookingStatus.PENDING_VERIFICATION)
        booking.status = BookingStatus.PENDING_PASSWORD
        booking.verified_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(booking)
        return booking

    async def complete_verification(
        self,
        token: str,
        password: str,
        email_service: EmailService,
    ) -> Tuple[Booking, User]:
        """Set the account password and confirm the booking in one transaction."""
        booking = await self._get_by_token(token, BookingStatus.PENDING_PASSWORD)

        user = await self._find_user(booking.email)
        if user:
            user.password_hash = hash_password(password)
            user.email_verified = True
            user.name = user.name or booking.name
            user.phone = user.phone or booking.phone
            user.address = user.address or booking.address
        else:
            user = User(
                name=booking.name,
                email=booking.email,
                phone=booking.phone,
                address=booking.address,
                password_hash=hash_password(password),
                email_verified=True,
            )
            self.db.add(user)
            await self.db.flush()

        booking.user_id = user.id
        booking.status = BookingStatus.CONFIRMED
        booking.verification_token = None
        booking.verification_expires_at = None

        await self.db.commit()
        await self.db.refresh(booking)
        await self.db.refresh(user)
        logger.info("booking_verified", booking_id=booking.id, user_id=user.id)

        await email_service.send_welcome(user)
        return booking, user

    # =========================================================================
    # Changes
    # =========================================================================

    async def confirm(self, booking_id: int, email_service: EmailService) -> Booking:
        """Admin confirmation; the confirmation email is best effort."""
        booking = await self.get_or_404(booking_id)
        booking.status = BookingStatus.CONFIRMED
        await self.db.commit()
        await self.db.refresh(booking)

        await email_service.send_booking_confirmation(booking)
        return booking

    async def update(
        self,
        booking_id: int,
        data: BookingUpdate,
        as_customer: bool = False,
        changed_by_id: Optional[int] = None,
    ) -> Booking:
        """Partial update.

        A missing preferred date/time is filled with today / the default
        morning slot; a missing status keeps the current one. Cancelling
        also cancels the booking's active assignment.
        """
        booking = await self.get_or_404(booking_id)
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if as_customer:
            status = update_data.get("status")
            if status is not None and status not in CUSTOMER_SETTABLE_STATUSES:
                raise BadRequestError("Customers can only cancel a booking")
            update_data.pop("email", None)

        update_data.setdefault("preferred_date", date.today())
        update_data.setdefault("preferred_time", settings.DEFAULT_PREFERRED_TIME)

        cancelling = (
            update_data.get("status") == BookingStatus.CANCELLED
            and booking.status != BookingStatus.CANCELLED
        )
        for field, value in update_data.items():
            setattr(booking, field, value)
        if cancelling:
            await self._cancel_active_assignment(booking, "customer" if as_customer else "admin", changed_by_id)
        await self.db.commit()
        await self.db.refresh(booking)
        return booking

    async def _cancel_active_assignment(self, booking: Booking, role: str, changed_by_id: Optional[int]) -> None:
        result = await self.db.execute(
            select(Assignment).where(
                Assignment.booking_id == booking.id,
                Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
            )
        )
        assignment = result.scalar_one_or_none()
        if not assignment:
            return

        old_status = assignment.status
        assignment.status = AssignmentStatus.CANCELLED
        assignment.cancelled_at = datetime.utcnow()
        self.db.add(AssignmentStatusHistory(
            assignment_id=assignment.id,
            old_status=old_status.value,
            new_status=AssignmentStatus.CANCELLED.value,
            changed_by_role=role,
            changed_by_id=str(changed_by_id) if changed_by_id is not None else None,
            change_reason="Booking cancelled",
        ))
        logger.info("assignment_cancelled_with_booking", assignment_id=assignment.id, booking_id=booking.id)

    async def set_status(self, booking_id: int, status: BookingStatus) -> None:
        """Set status without loading; used to keep bookings in step with assignments.

        A completed or cancelled booking is left alone and the call fails.
        """
        result = await self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status.notin_(CLOSED_BOOKING_STATUSES))
            .values(status=status, updated_at=datetime.utcnow())
        )
        if result.rowcount == 0:
            raise BadRequestError("Booking is closed", code="booking_closed")

    async def delete(self, booking_id: int) -> None:
        """Delete a booking; its assignments go with it (ON DELETE CASCADE)."""
        booking = await self.get_or_404(booking_id)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info("booking_deleted", booking_id=booking_id)
