"""Assignment notification schemas."""

from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from cleanbook.models.assignment import AssignmentStatus, AssignmentType
from cleanbook.models.notification import AssignmentNotification, NotificationType


class NotificationMarkRequest(BaseModel):
    notification_ids: List[int] = Field(..., min_length=1)
    is_read: bool = True


class NotificationResponse(BaseModel):
    id: int
    assignment_id: int
    staff_id: Optional[int]
    team_id: Optional[int]
    notification_type: NotificationType
    message: str
    is_read: bool
    created_at: datetime

    # Joined from the assignment and its booking
    booking_id: Optional[int] = None
    assignment_type: Optional[AssignmentType] = None
    assignment_status: Optional[AssignmentStatus] = None
    service_type: Optional[str] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None

    @classmethod
    def from_notification(cls, notification: AssignmentNotification) -> "NotificationResponse":
        assignment = notification.assignment
        booking = assignment.booking if assignment else None
        return cls(
            id=notification.id,
            assignment_id=notification.assignment_id,
            staff_id=notification.staff_id,
            team_id=notification.team_id,
            notification_type=notification.notification_type,
            message=notification.message,
            is_read=notification.is_read,
            created_at=notification.created_at,
            booking_id=assignment.booking_id if assignment else None,
            assignment_type=assignment.assignment_type if assignment else None,
            assignment_status=assignment.status if assignment else None,
            service_type=booking.service_type if booking else None,
            preferred_date=booking.preferred_date if booking else None,
            preferred_time=booking.preferred_time if booking else None,
        )
