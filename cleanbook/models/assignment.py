"""Assignment models - who performs a booking, and how it progresses."""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from cleanbook.database import Base


class AssignmentType(str, PyEnum):
    TEAM = "team"
    INDIVIDUAL = "individual"


class AssignmentStatus(str, PyEnum):
    """Assignment lifecycle."""
    ASSIGNED = "assigned"        # Waiting for the assignee to respond
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"        # Declined by the assignee, can be re-assigned


class AssignmentPriority(str, PyEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


# Statuses that still tie up the assignee
ACTIVE_ASSIGNMENT_STATUSES = (
    AssignmentStatus.ASSIGNED,
    AssignmentStatus.ACCEPTED,
    AssignmentStatus.IN_PROGRESS,
)


class Assignment(Base):
    """Assignment entity - a booking handed to a team or a single staff member.

    Exactly one of ``team_id`` / ``staff_id`` is set, matching
    ``assignment_type``. One assignment per booking.
    """

    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    assignment_type = Column(Enum(AssignmentType), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), index=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"), index=True)
    assigned_by = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"))

    status = Column(Enum(AssignmentStatus), default=AssignmentStatus.ASSIGNED, nullable=False, index=True)
    priority = Column(Enum(AssignmentPriority), default=AssignmentPriority.NORMAL, nullable=False)

    # Transition timestamps
    assigned_at = Column(DateTime, default=datetime.utcnow)
    accepted_at = Column(DateTime)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    rejected_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    rejection_reason = Column(Text)

    # Notes
    notes = Column(Text)
    admin_notes = Column(Text)
    staff_notes = Column(Text)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    booking = relationship("Booking")
    team = relationship("Team")
    staff = relationship("Staff", foreign_keys=[staff_id])
    assigner = relationship("Staff", foreign_keys=[assigned_by])

    def __repr__(self):
        return f"<Assignment {self.id} booking={self.booking_id} {self.status.value}>"


class AssignmentStatusHistory(Base):
    """Audit trail of assignment status changes."""

    __tablename__ = "assignment_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    old_status = Column(String(50))
    new_status = Column(String(50), nullable=False)
    changed_by_role = Column(String(20), nullable=False)  # 'admin', 'staff', 'system'
    changed_by_id = Column(String(50))
    change_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<AssignmentStatusHistory {self.old_status} -> {self.new_status}>"
