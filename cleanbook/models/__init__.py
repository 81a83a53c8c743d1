"""SQLAlchemy models."""

from cleanbook.models.user import User
from cleanbook.models.staff import Staff, StaffRole, StaffStatus, ApprovalStatus, LEADER_ROLES
from cleanbook.models.team import Team, TeamMember, TeamStatus, TeamRole
from cleanbook.models.booking import Booking, BookingStatus
from cleanbook.models.assignment import (
    Assignment,
    AssignmentType,
    AssignmentStatus,
    AssignmentPriority,
    AssignmentStatusHistory,
    ACTIVE_ASSIGNMENT_STATUSES,
)
from cleanbook.models.notification import AssignmentNotification, NotificationType
from cleanbook.models.service import Service

__all__ = [
    "User",
    "Staff",
    "StaffRole",
    "StaffStatus",
    "ApprovalStatus",
    "LEADER_ROLES",
    "Team",
    "TeamMember",
    "TeamStatus",
    "TeamRole",
    "Booking",
    "BookingStatus",
    "Assignment",
    "AssignmentType",
    "AssignmentStatus",
    "AssignmentPriority",
    "AssignmentStatusHistory",
    "ACTIVE_ASSIGNMENT_STATUSES",
    "AssignmentNotification",
    "NotificationType",
    "Service",
]
