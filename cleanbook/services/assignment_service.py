"""Assignment service - handing bookings to staff and moving them through their lifecycle.

Every status change is validated against ``ALLOWED_TRANSITIONS``, recorded
in the status history and mirrored onto the booking in the same transaction.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleanbook.errors import BadRequestError, ForbiddenError, NotFoundError
from cleanbook.models.assignment import (
    Assignment,
    AssignmentStatus,
    AssignmentStatusHistory,
    AssignmentType,
)
from cleanbook.models.booking import Booking, BookingStatus
from cleanbook.models.notification import NotificationType
from cleanbook.models.staff import Staff, StaffStatus
from cleanbook.models.team import Team, TeamMember, TeamStatus
from cleanbook.schemas.assignment import AssignmentCreate, AssignmentUpdate
from cleanbook.security import Role
from cleanbook.services.booking_service import CLOSED_BOOKING_STATUSES, BookingService
from cleanbook.services.email_service import EmailService
from cleanbook.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


ALLOWED_TRANSITIONS: Dict[AssignmentStatus, FrozenSet[AssignmentStatus]] = {
    AssignmentStatus.ASSIGNED: frozenset({
        AssignmentStatus.ACCEPTED,
        AssignmentStatus.REJECTED,
        AssignmentStatus.CANCELLED,
    }),
    AssignmentStatus.ACCEPTED: frozenset({AssignmentStatus.IN_PROGRESS, AssignmentStatus.CANCELLED}),
    AssignmentStatus.IN_PROGRESS: frozenset({AssignmentStatus.COMPLETED, AssignmentStatus.CANCELLED}),
    AssignmentStatus.REJECTED: frozenset({AssignmentStatus.ASSIGNED}),
    AssignmentStatus.COMPLETED: frozenset(),
    AssignmentStatus.CANCELLED: frozenset(),
}

# Booking status that corresponds to each assignment status
BOOKING_STATUS_FOR: Dict[AssignmentStatus, BookingStatus] = {
    AssignmentStatus.ASSIGNED: BookingStatus.ASSIGNED,
    AssignmentStatus.ACCEPTED: BookingStatus.ASSIGNED,
    AssignmentStatus.IN_PROGRESS: BookingStatus.IN_PROGRESS,
    AssignmentStatus.COMPLETED: BookingStatus.COMPLETED,
    AssignmentStatus.CANCELLED: BookingStatus.CANCELLED,
    AssignmentStatus.REJECTED: BookingStatus.CONFIRMED,  # Back in the queue for re-assignment
}

# What an assignee (as opposed to an admin) may do
STAFF_TRANSITIONS = frozenset({
    AssignmentStatus.ACCEPTED,
    AssignmentStatus.REJECTED,
    AssignmentStatus.IN_PROGRESS,
    AssignmentStatus.COMPLETED,
})

# Bookings in these states cannot be handed out
UNASSIGNABLE_BOOKING_STATUSES = (
    BookingStatus.PENDING_VERIFICATION,
    BookingStatus.PENDING_PASSWORD,
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
)


def can_transition(old: AssignmentStatus, new: AssignmentStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[old]


@dataclass(frozen=True)
class Actor:
    """Who is making a change."""
    role: Role
    id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


ADMIN_ACTOR = Actor(role=Role.ADMIN)


class AssignmentService:
    """Service for assignment operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifications = NotificationService(db)

    def _assignment_query(self):
        return select(Assignment).options(
            selectinload(Assignment.booking),
            selectinload(Assignment.staff),
            selectinload(Assignment.team),
            selectinload(Assignment.assigner),
        )

    async def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        """Get assignment with booking, assignee and assigner."""
        result = await self.db.execute(
            self._assignment_query()
            .where(Assignment.id == assignment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_404(self, assignment_id: int) -> Assignment:
        assignment = await self.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment not found")
        return assignment

    async def team_id_for_staff(self, staff_id: int) -> Optional[int]:
        return await self.db.scalar(select(TeamMember.team_id).where(TeamMember.staff_id == staff_id))

    async def list_assignments(
        self,
        staff_id: Optional[int] = None,
        team_id: Optional[int] = None,
        status: Optional[AssignmentStatus] = None,
        booking_id: Optional[int] = None,
        visible_to_staff: Optional[int] = None,
    ) -> List[Assignment]:
        """List assignments with filters.

        ``visible_to_staff`` limits the result to assignments of that staff
        member or of their team.
        """
        query = self._assignment_query()
        if staff_id:
            query = query.where(Assignment.staff_id == staff_id)
        if team_id:
            query = query.where(Assignment.team_id == team_id)
        if status:
            query = query.where(Assignment.status == status)
        if booking_id:
            query = query.where(Assignment.booking_id == booking_id)
        if visible_to_staff is not None:
            own_team = await self.team_id_for_staff(visible_to_staff)
            condition = Assignment.staff_id == visible_to_staff
            if own_team:
                condition = condition | (Assignment.team_id == own_team)
            query = query.where(condition)

        result = await self.db.execute(query.order_by(Assignment.assigned_at.desc(), Assignment.id.desc()))
        return list(result.scalars())

    async def list_history(self, assignment_id: int) -> List[AssignmentStatusHistory]:
        await self.get_or_404(assignment_id)
        result = await self.db.execute(
            select(AssignmentStatusHistory)
            .where(AssignmentStatusHistory.assignment_id == assignment_id)
            .order_by(AssignmentStatusHistory.created_at, AssignmentStatusHistory.id)
        )
        return list(result.scalars())

    # =========================================================================
    # Assignees
    # =========================================================================

    async def _validate_assignee(
        self,
        assignment_type: AssignmentType,
        team_id: Optional[int],
        staff_id: Optional[int],
    ) -> None:
        if assignment_type == AssignmentType.TEAM:
            team = await self.db.get(Team, team_id)
            if not team:
                raise NotFoundError("Team not found")
            if team.status != TeamStatus.ACTIVE:
                raise BadRequestError("Team is not active")
        else:
            staff = await self.db.get(Staff, staff_id)
            if not staff:
                raise NotFoundError("Staff not found")
            if staff.status != StaffStatus.ACTIVE:
                raise BadRequestError("Staff is not active")

    async def _recipients(self, assignment: Assignment) -> List[Staff]:
        """Staff who should hear about this assignment."""
        if assignment.assignment_type == AssignmentType.INDIVIDUAL:
            staff = await self.db.get(Staff, assignment.staff_id) if assignment.staff_id else None
            return [staff] if staff else []

        result = await self.db.execute(
            select(Staff)
            .join(TeamMember, TeamMember.staff_id == Staff.id)
            .where(TeamMember.team_id == assignment.team_id)
            .order_by(Staff.id)
        )
        return list(result.scalars())

    async def is_assignee(self, assignment: Assignment, staff_id: int) -> bool:
        if assignment.staff_id == staff_id:
            return True
        if assignment.team_id:
            return await self.team_id_for_staff(staff_id) == assignment.team_id
        return False

    def _record_history(
        self,
        assignment: Assignment,
        old_status: Optional[AssignmentStatus],
        new_status: AssignmentStatus,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> None:
        self.db.add(AssignmentStatusHistory(
            assignment_id=assignment.id,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            changed_by_role=actor.role.value,
            changed_by_id=str(actor.id) if actor.id is not None else None,
            change_reason=reason,
        ))

    async def _send_assignment_emails(self, recipients: List[Staff], booking: Booking, email_service: EmailService):
        for staff in recipients:
            await email_service.send_assignment(staff, booking)

    # =========================================================================
    # Create
    # =========================================================================

    async def create(self, data: AssignmentCreate, email_service: EmailService) -> Assignment:
        """Assign a booking (admin)."""
        booking = await self.db.get(Booking, data.booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        existing = await self.db.scalar(select(Assignment.id).where(Assignment.booking_id == data.booking_id))
        if existing:
            raise BadRequestError("Booking already has an assignment")
        if booking.status in UNASSIGNABLE_BOOKING_STATUSES:
            raise BadRequestError(f"A {booking.status.value} booking cannot be assigned")

        await self._validate_assignee(data.assignment_type, data.team_id, data.staff_id)
        if data.assigned_by and not await self.db.get(Staff, data.assigned_by):
            raise BadRequestError("assigned_by does not reference a staff member")

        assignment = Assignment(
            booking_id=data.booking_id,
            assignment_type=data.assignment_type,
            team_id=data.team_id,
            staff_id=data.staff_id,
            assigned_by=data.assigned_by,
            priority=data.priority,
            notes=data.notes,
            admin_notes=data.admin_notes,
            status=AssignmentStatus.ASSIGNED,
            assigned_at=datetime.utcnow(),
        )
        self.db.add(assignment)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Booking already has an assignment")

        self._record_history(assignment, None, AssignmentStatus.ASSIGNED, ADMIN_ACTOR, "Assignment created")
        booking.status = BookingStatus.ASSIGNED

        recipients = await self._recipients(assignment)
        await self.notifications.notify_assignment(
            assignment,
            recipients,
            NotificationType.NEW_ASSIGNMENT,
            f"New assignment: {booking.service_type} on {booking.preferred_date} ({booking.preferred_time})",
        )

        await self.db.commit()
        logger.info(
            "assignment_created",
            assignment_id=assignment.id,
            booking_id=booking.id,
            assignment_type=assignment.assignment_type.value,
        )

        await self._send_assignment_emails(recipients, booking, email_service)
        return await self.get_or_404(assignment.id)

    # =========================================================================
    # Update
    # =========================================================================

    async def update(
        self,
        assignment_id: int,
        data: AssignmentUpdate,
        actor: Actor,
        email_service: EmailService,
    ) -> Assignment:
        """Apply a status transition and/or note changes."""
        assignment = await self.get_or_404(assignment_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if not actor.is_admin:
            if not await self.is_assignee(assignment, actor.id):
                raise ForbiddenError("This assignment is not assigned to you")
            admin_only = set(changes) - {"status", "staff_notes", "rejection_reason", "change_reason"}
            if admin_only:
                raise ForbiddenError(f"Staff cannot change: {', '.join(sorted(admin_only))}")
            if data.status is not None and data.status not in STAFF_TRANSITIONS:
                raise ForbiddenError(f"Staff cannot set status to {data.status.value}")

        new_status = data.status
        old_status = assignment.status
        reassigned = False
        if new_status is not None and new_status != old_status:
            if assignment.booking and assignment.booking.status in CLOSED_BOOKING_STATUSES:
                raise BadRequestError(
                    f"Booking is {assignment.booking.status.value}; its assignment can no longer change",
                    code="booking_closed",
                )
            if not can_transition(old_status, new_status):
                raise BadRequestError(
                    f"Invalid status transition from {old_status.value} to {new_status.value}",
                    code="invalid_transition",
                )
            reassigned = await self._apply_transition(assignment, new_status, data)
            self._record_history(assignment, old_status, new_status, actor, data.change_reason)
            await BookingService(self.db).set_status(assignment.booking_id, BOOKING_STATUS_FOR[new_status])
        elif data.assignment_type is not None:
            raise BadRequestError("The assignee can only change when re-assigning")

        for field in ("priority", "notes", "admin_notes", "staff_notes"):
            if field in changes:
                setattr(assignment, field, changes[field])

        recipients: List[Staff] = []
        if new_status is not None and new_status != old_status:
            recipients = await self._recipients(assignment)
            if reassigned:
                message = f"You have been assigned booking #{assignment.booking_id}"
                kind = NotificationType.NEW_ASSIGNMENT
            else:
                message = f"Assignment #{assignment.id} is now {new_status.value}"
                kind = NotificationType.STATUS_UPDATE
            await self.notifications.notify_assignment(assignment, recipients, kind, message)

        await self.db.commit()
        logger.info(
            "assignment_updated",
            assignment_id=assignment.id,
            old_status=old_status.value,
            new_status=assignment.status.value,
            actor=actor.role.value,
        )

        assignment = await self.get_or_404(assignment_id)
        if reassigned:
            await self._send_assignment_emails(recipients, assignment.booking, email_service)
        return assignment

    async def _apply_transition(
        self,
        assignment: Assignment,
        new_status: AssignmentStatus,
        data: AssignmentUpdate,
    ) -> bool:
        """Set status and its timestamp. Returns True for a re-assignment."""
        if new_status == AssignmentStatus.ASSIGNED and data.assignment_type is not None:
            await self._validate_assignee(data.assignment_type, data.team_id, data.staff_id)

        now = datetime.utcnow()
        assignment.status = new_status

        if new_status == AssignmentStatus.ACCEPTED:
            assignment.accepted_at = now
        elif new_status == AssignmentStatus.IN_PROGRESS:
            assignment.started_at = now
        elif new_status == AssignmentStatus.COMPLETED:
            assignment.completed_at = now
        elif new_status == AssignmentStatus.CANCELLED:
            assignment.cancelled_at = now
        elif new_status == AssignmentStatus.REJECTED:
            assignment.rejected_at = now
            assignment.rejection_reason = data.rejection_reason
        elif new_status == AssignmentStatus.ASSIGNED:
            if data.assignment_type is not None:
                assignment.assignment_type = data.assignment_type
                assignment.team_id = data.team_id
                assignment.staff_id = data.staff_id
            assignment.assigned_at = now
            assignment.accepted_at = None
            assignment.rejected_at = None
            assignment.rejection_reason = None
            return True
        return False

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete(self, assignment_id: int) -> None:
        """Remove an assignment; the booking goes back to confirmed."""
        assignment = await self.get_or_404(assignment_id)
        booking = assignment.booking
        if booking and booking.status not in CLOSED_BOOKING_STATUSES:
            booking.status = BookingStatus.CONFIRMED
        await self.db.delete(assignment)
        await self.db.commit()
        logger.info("assignment_deleted", assignment_id=assignment_id)
