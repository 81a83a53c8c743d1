"""Booking schemas.

Request fields accept both the camelCase names used by the web client
(``serviceType``) and snake_case.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from cleanbook.models.booking import BookingStatus
from cleanbook.schemas.common import NormalizedEmail, PhoneNumber


class BookingCreate(BaseModel):
    """Schema for creating a booking (both direct and email-verified flows)."""

    name: str = Field(..., min_length=1, max_length=255)
    email: NormalizedEmail
    phone: PhoneNumber
    address: str = Field(..., min_length=1)
    service_type: str = Field(..., min_length=1, max_length=255, alias="serviceType")
    preferred_date: date = Field(..., alias="preferredDate")
    preferred_time: str = Field(..., min_length=1, max_length=100, alias="preferredTime")
    notes: Optional[str] = None

    class Config:
        populate_by_name = True


class BookingUpdate(BaseModel):
    """Partial booking update.

    ``preferred_date`` / ``preferred_time`` fall back to today and the default
    morning slot when missing; a missing status keeps the current one.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[NormalizedEmail] = None
    phone: Optional[PhoneNumber] = None
    address: Optional[str] = Field(None, min_length=1)
    service_type: Optional[str] = Field(None, min_length=1, max_length=255, alias="serviceType")
    preferred_date: Optional[date] = Field(None, alias="preferredDate")
    preferred_time: Optional[str] = Field(None, min_length=1, max_length=100, alias="preferredTime")
    notes: Optional[str] = None
    status: Optional[BookingStatus] = None

    class Config:
        populate_by_name = True


class BookingConfirmRequest(BaseModel):
    booking_id: int = Field(..., alias="bookingId")

    class Config:
        populate_by_name = True


class BookingResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    address: str
    service_type: str
    preferred_date: date
    preferred_time: str
    notes: Optional[str]
    status: BookingStatus
    user_id: Optional[int]
    verified_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
