"""Booking endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.deps import (
    AdminOrCustomer,
    get_db,
    get_email_service,
    require_admin,
    require_admin_or_customer,
)
from cleanbook.errors import ForbiddenError
from cleanbook.models.booking import Booking, BookingStatus
from cleanbook.models.user import User
from cleanbook.schemas.booking import (
    BookingConfirmRequest,
    BookingCreate,
    BookingResponse,
    BookingUpdate,
)
from cleanbook.schemas.common import ok
from cleanbook.security import SessionPayload
from cleanbook.services.booking_service import BookingService
from cleanbook.services.email_service import EmailService

router = APIRouter()


def _dump(booking: Booking) -> dict:
    return BookingResponse.model_validate(booking).model_dump(mode="json")


def _owns(user: User, booking: Booking) -> bool:
    if booking.user_id == user.id:
        return True
    # An unverified account has not proven it holds the address
    return user.email_verified and booking.email == user.email


@router.get("")
async def list_bookings(
    email: Optional[str] = Query(None),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    caller: AdminOrCustomer = Depends(require_admin_or_customer),
):
    """Admins see every booking; customers see their own."""
    service = BookingService(db)
    if caller.is_admin:
        bookings = await service.list_bookings(email=email, status=booking_status)
    else:
        bookings = await service.list_for_customer(caller.customer)
    return ok(data=[_dump(b) for b in bookings])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    _caller: AdminOrCustomer = Depends(require_admin_or_customer),
    email_service: EmailService = Depends(get_email_service),
):
    """Direct booking by a logged-in customer or an admin."""
    booking = await BookingService(db).create(data, email_service)
    return ok(data=_dump(booking), message="Booking created successfully")


@router.post("/create-with-verification", status_code=status.HTTP_201_CREATED)
async def create_booking_with_verification(
    data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """Public booking; confirmed once the customer follows the emailed link."""
    booking = await BookingService(db).create_with_verification(data, email_service)
    return ok(
        data={"id": booking.id, "status": booking.status.value, "email": booking.email},
        message="Please check your email to verify your booking",
    )


@router.post("/confirm")
async def confirm_booking(
    data: BookingConfirmRequest,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    booking = await BookingService(db).confirm(data.booking_id, email_service)
    return ok(data=_dump(booking), message="Booking confirmed")


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    caller: AdminOrCustomer = Depends(require_admin_or_customer),
):
    booking = await BookingService(db).get_or_404(booking_id)
    if not caller.is_admin and not _owns(caller.customer, booking):
        raise ForbiddenError("You can only view your own bookings")
    return ok(data=_dump(booking))


@router.put("/{booking_id}")
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    db: AsyncSession = Depends(get_db),
    caller: AdminOrCustomer = Depends(require_admin_or_customer),
):
    """Partial update by an admin or the booking's customer."""
    service = BookingService(db)
    if not caller.is_admin:
        booking = await service.get_or_404(booking_id)
        if not _owns(caller.customer, booking):
            raise ForbiddenError("You can only change your own bookings")

    booking = await service.update(
        booking_id,
        data,
        as_customer=not caller.is_admin,
        changed_by_id=None if caller.is_admin else caller.customer.id,
    )
    return ok(data=_dump(booking), message="Booking updated successfully")


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await BookingService(db).delete(booking_id)
    return ok(message="Booking deleted successfully")
