"""Staff models - cleaners, supervisors and managers."""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Float, Enum
from cleanbook.database import Base


class StaffRole(str, PyEnum):
    """Job role of a staff member."""
    CLEANER = "cleaner"
    SUPERVISOR = "supervisor"
    MANAGER = "manager"


class StaffStatus(str, PyEnum):
    """Employment status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


class ApprovalStatus(str, PyEnum):
    """Onboarding progress of a self-registered staff member."""
    PENDING_INFO = "pending_info"          # Registered, profile not completed
    PENDING_APPROVAL = "pending_approval"  # Profile submitted, waiting for admin
    APPROVED = "approved"
    REJECTED = "rejected"


# Roles allowed to lead a team
LEADER_ROLES = (StaffRole.SUPERVISOR, StaffRole.MANAGER)


class Staff(Base):
    """Staff entity - the people who perform cleanings."""

    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Basic Info
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)  # Stored lowercased
    phone = Column(String(32))
    address = Column(Text)
    password_hash = Column(String(255))  # NULL for accounts created through Google sign-in

    # Role & Status
    role = Column(Enum(StaffRole), default=StaffRole.CLEANER, nullable=False)
    status = Column(Enum(StaffStatus), default=StaffStatus.ACTIVE, nullable=False)
    approval_status = Column(Enum(ApprovalStatus), default=ApprovalStatus.PENDING_INFO, nullable=False)

    # Email verification
    email_verified = Column(Boolean, default=False, nullable=False)
    verification_token = Column(String(128), unique=True)
    verified_at = Column(DateTime)

    # Approval
    approved_at = Column(DateTime)
    rejection_reason = Column(Text)

    # Work profile
    specialization = Column(String(255))
    experience_years = Column(Integer, default=0)
    hourly_rate = Column(Float)

    # Onboarding profile (Dutch self-employed registration details)
    zzp_number = Column(String(64))
    kvk_number = Column(String(64))
    bsn_number = Column(String(64))
    brp_number = Column(String(64))
    car_type = Column(String(100))
    bhv_certificate = Column(Boolean, default=False)
    identity_document = Column(String(255))
    passport_number = Column(String(64))
    bank_account = Column(String(64))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Staff {self.email} ({self.role.value})>"
