"""Assignment schemas."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from cleanbook.models.assignment import (
    Assignment,
    AssignmentPriority,
    AssignmentStatus,
    AssignmentType,
)
from cleanbook.models.booking import BookingStatus


def _check_assignee(assignment_type: AssignmentType, team_id, staff_id) -> None:
    if assignment_type == AssignmentType.TEAM:
        if not team_id or staff_id:
            raise ValueError("Team assignments need team_id and no staff_id")
    elif not staff_id or team_id:
        raise ValueError("Individual assignments need staff_id and no team_id")


class AssignmentCreate(BaseModel):
    """Schema for assigning a booking to a team or a staff member (admin)."""

    booking_id: int
    assignment_type: AssignmentType
    team_id: Optional[int] = None
    staff_id: Optional[int] = None
    assigned_by: Optional[int] = None
    priority: AssignmentPriority = AssignmentPriority.NORMAL
    notes: Optional[str] = None
    admin_notes: Optional[str] = None

    @model_validator(mode="after")
    def check_assignee(self):
        _check_assignee(self.assignment_type, self.team_id, self.staff_id)
        return self


class AssignmentUpdate(BaseModel):
    """Status change and/or note edits. Null means unchanged.

    When re-assigning (``status=assigned``) an admin may also point the
    assignment at a different team or staff member.
    """

    status: Optional[AssignmentStatus] = None
    priority: Optional[AssignmentPriority] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    staff_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    change_reason: Optional[str] = None
    assignment_type: Optional[AssignmentType] = None
    team_id: Optional[int] = None
    staff_id: Optional[int] = None

    @model_validator(mode="after")
    def check_assignee(self):
        if self.assignment_type is not None:
            _check_assignee(self.assignment_type, self.team_id, self.staff_id)
        elif self.team_id is not None or self.staff_id is not None:
            raise ValueError("assignment_type is required when changing the assignee")
        return self


class AssignmentResponse(BaseModel):
    id: int
    booking_id: int
    assignment_type: AssignmentType
    team_id: Optional[int]
    staff_id: Optional[int]
    assigned_by: Optional[int]
    status: AssignmentStatus
    priority: AssignmentPriority
    assigned_at: Optional[datetime]
    accepted_at: Optional[datetime]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    rejected_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    rejection_reason: Optional[str]
    notes: Optional[str]
    admin_notes: Optional[str]
    staff_notes: Optional[str]

    # Joined details
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    service_type: Optional[str] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    booking_status: Optional[BookingStatus] = None
    staff_name: Optional[str] = None
    staff_email: Optional[str] = None
    team_name: Optional[str] = None
    assigned_by_name: Optional[str] = None

    @classmethod
    def from_assignment(cls, assignment: Assignment) -> "AssignmentResponse":
        """Build from an assignment loaded with booking, staff, team and assigner."""
        booking = assignment.booking
        staff = assignment.staff
        team = assignment.team
        assigner = assignment.assigner
        return cls(
            id=assignment.id,
            booking_id=assignment.booking_id,
            assignment_type=assignment.assignment_type,
            team_id=assignment.team_id,
            staff_id=assignment.staff_id,
            assigned_by=assignment.assigned_by,
            status=assignment.status,
            priority=assignment.priority,
            assigned_at=assignment.assigned_at,
            accepted_at=assignment.accepted_at,
            started_at=assignment.started_at,
            completed_at=assignment.completed_at,
            rejected_at=assignment.rejected_at,
            cancelled_at=assignment.cancelled_at,
            rejection_reason=assignment.rejection_reason,
            notes=assignment.notes,
            admin_notes=assignment.admin_notes,
            staff_notes=assignment.staff_notes,
            customer_name=booking.name if booking else None,
            customer_email=booking.email if booking else None,
            customer_phone=booking.phone if booking else None,
            address=booking.address if booking else None,
            service_type=booking.service_type if booking else None,
            preferred_date=booking.preferred_date if booking else None,
            preferred_time=booking.preferred_time if booking else None,
            booking_status=booking.status if booking else None,
            staff_name=staff.name if staff else None,
            staff_email=staff.email if staff else None,
            team_name=team.name if team else None,
            assigned_by_name=assigner.name if assigner else None,
        )


class AssignmentHistoryResponse(BaseModel):
    id: int
    assignment_id: int
    old_status: Optional[str]
    new_status: str
    changed_by_role: str
    changed_by_id: Optional[str]
    change_reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
