"""Booking model - a customer's request for a cleaning."""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text, Enum
from cleanbook.database import Base


class BookingStatus(str, PyEnum):
    """Booking lifecycle."""
    PENDING_VERIFICATION = "pending_verification"  # Waiting for the email link
    PENDING_PASSWORD = "pending_password"          # Email verified, account password not set
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base):
    """Booking entity."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Customer contact
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)  # Stored lowercased
    phone = Column(String(32), nullable=False)
    address = Column(Text, nullable=False)

    # What and when
    service_type = Column(String(255), nullable=False)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(String(100), nullable=False)
    notes = Column(Text)

    status = Column(Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False, index=True)

    # Email verification (create-with-verification flow)
    verification_token = Column(String(128), unique=True)
    verification_expires_at = Column(DateTime)
    verified_at = Column(DateTime)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Booking {self.id} {self.status.value}>"
