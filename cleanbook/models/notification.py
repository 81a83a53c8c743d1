"""In-app notifications for staff about their assignments."""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from cleanbook.database import Base


class NotificationType(str, PyEnum):
    NEW_ASSIGNMENT = "new_assignment"
    STATUS_UPDATE = "status_update"
    ADMIN_MESSAGE = "admin_message"
    REMINDER = "reminder"


class AssignmentNotification(Base):
    """Informational record shown on the staff dashboard. No delivery retries."""

    __tablename__ = "assignment_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Recipient: a staff member, a team, or both
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), index=True)

    notification_type = Column(Enum(NotificationType), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assignment = relationship("Assignment")

    def __repr__(self):
        return f"<AssignmentNotification {self.notification_type.value} staff={self.staff_id}>"
