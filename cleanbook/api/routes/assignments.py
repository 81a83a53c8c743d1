"""Assignment endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.deps import AdminOrStaff, get_db, get_email_service, require_admin, require_admin_or_staff
from cleanbook.errors import ForbiddenError
from cleanbook.models.assignment import Assignment, AssignmentStatus
from cleanbook.schemas.assignment import (
    AssignmentCreate,
    AssignmentHistoryResponse,
    AssignmentResponse,
    AssignmentUpdate,
)
from cleanbook.schemas.common import ok
from cleanbook.security import Role, SessionPayload
from cleanbook.services.assignment_service import ADMIN_ACTOR, Actor, AssignmentService
from cleanbook.services.email_service import EmailService

router = APIRouter()


def _dump(assignment: Assignment) -> dict:
    return AssignmentResponse.from_assignment(assignment).model_dump(mode="json")


def _actor(caller: AdminOrStaff) -> Actor:
    if caller.is_admin:
        return ADMIN_ACTOR
    return Actor(role=Role.STAFF, id=caller.staff.id)


@router.get("")
async def list_assignments(
    staff_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None),
    assignment_status: Optional[AssignmentStatus] = Query(None, alias="status"),
    booking_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    """Admins see all assignments; staff see their own and their team's."""
    assignments = await AssignmentService(db).list_assignments(
        staff_id=staff_id,
        team_id=team_id,
        status=assignment_status,
        booking_id=booking_id,
        visible_to_staff=None if caller.is_admin else caller.staff.id,
    )
    return ok(data=[_dump(a) for a in assignments])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
    email_service: EmailService = Depends(get_email_service),
):
    assignment = await AssignmentService(db).create(data, email_service)
    return ok(data=_dump(assignment), message="Assignment created successfully")


@router.get("/{assignment_id}")
async def get_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    service = AssignmentService(db)
    assignment = await service.get_or_404(assignment_id)
    if not caller.is_admin and not await service.is_assignee(assignment, caller.staff.id):
        raise ForbiddenError("This assignment is not assigned to you")
    return ok(data=_dump(assignment))


@router.get("/{assignment_id}/history")
async def get_assignment_history(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    history = await AssignmentService(db).list_history(assignment_id)
    return ok(data=[AssignmentHistoryResponse.model_validate(h).model_dump(mode="json") for h in history])


@router.put("/{assignment_id}")
async def update_assignment(
    assignment_id: int,
    data: AssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
    email_service: EmailService = Depends(get_email_service),
):
    assignment = await AssignmentService(db).update(assignment_id, data, _actor(caller), email_service)
    return ok(data=_dump(assignment), message="Assignment updated successfully")


@router.delete("/{assignment_id}")
async def delete_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await AssignmentService(db).delete(assignment_id)
    return ok(message="Assignment deleted successfully")
