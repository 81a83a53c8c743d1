"""Notification service - in-app assignment notifications for staff."""

from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleanbook.models.assignment import Assignment, AssignmentType
from cleanbook.models.notification import AssignmentNotification, NotificationType
from cleanbook.models.staff import Staff
from cleanbook.models.team import TeamMember

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for creating and reading assignment notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify_assignment(
        self,
        assignment: Assignment,
        recipients: List[Staff],
        notification_type: NotificationType,
        message: str,
    ) -> List[AssignmentNotification]:
        """Add one notification per recipient. Caller commits.

        A team with no members still gets a single team-level row so the
        assignment shows up once someone joins.
        """
        team_id = assignment.team_id if assignment.assignment_type == AssignmentType.TEAM else None
        notifications = [
            AssignmentNotification(
                assignment_id=assignment.id,
                staff_id=staff.id,
                team_id=team_id,
                notification_type=notification_type,
                message=message,
            )
            for staff in recipients
        ]
        if not notifications and team_id:
            notifications.append(AssignmentNotification(
                assignment_id=assignment.id,
                team_id=team_id,
                notification_type=notification_type,
                message=message,
            ))

        self.db.add_all(notifications)
        logger.info(
            "notifications_created",
            assignment_id=assignment.id,
            notification_type=notification_type.value,
            count=len(notifications),
        )
        return notifications

    def _visible_to(self, query, staff_id: int, team_id: Optional[int]):
        condition = AssignmentNotification.staff_id == staff_id
        if team_id:
            condition = condition | (
                (AssignmentNotification.team_id == team_id) & AssignmentNotification.staff_id.is_(None)
            )
        return query.where(condition)

    async def _team_of(self, staff_id: int) -> Optional[int]:
        return await self.db.scalar(select(TeamMember.team_id).where(TeamMember.staff_id == staff_id))

    async def list_notifications(
        self,
        staff_id: Optional[int] = None,
        team_id: Optional[int] = None,
        is_read: Optional[bool] = None,
        visible_to_staff: Optional[int] = None,
    ) -> List[AssignmentNotification]:
        """List notifications, newest first, with assignment and booking details."""
        query = select(AssignmentNotification).options(
            selectinload(AssignmentNotification.assignment).selectinload(Assignment.booking)
        )
        if staff_id:
            query = query.where(AssignmentNotification.staff_id == staff_id)
        if team_id:
            query = query.where(AssignmentNotification.team_id == team_id)
        if is_read is not None:
            query = query.where(AssignmentNotification.is_read == is_read)
        if visible_to_staff is not None:
            query = self._visible_to(query, visible_to_staff, await self._team_of(visible_to_staff))

        result = await self.db.execute(
            query.order_by(AssignmentNotification.created_at.desc(), AssignmentNotification.id.desc())
        )
        return list(result.scalars())

    async def mark(
        self,
        notification_ids: List[int],
        is_read: bool = True,
        visible_to_staff: Optional[int] = None,
    ) -> int:
        """Set ``is_read`` on the given notifications. Returns the number updated.

        Staff can only touch notifications addressed to them; other ids are
        ignored.
        """
        query = select(AssignmentNotification.id).where(AssignmentNotification.id.in_(notification_ids))
        if visible_to_staff is not None:
            query = self._visible_to(query, visible_to_staff, await self._team_of(visible_to_staff))
        ids = list((await self.db.execute(query)).scalars())

        if ids:
            await self.db.execute(
                update(AssignmentNotification)
                .where(AssignmentNotification.id.in_(ids))
                .values(is_read=is_read, updated_at=datetime.utcnow())
            )
        await self.db.commit()
        logger.info("notifications_marked", count=len(ids), is_read=is_read)
        return len(ids)
