"""Team and team membership endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.deps import AdminOrStaff, get_db, require_admin, require_admin_or_staff
from cleanbook.errors import NotFoundError
from cleanbook.models.team import TeamStatus
from cleanbook.schemas.common import ok
from cleanbook.schemas.team import (
    TeamCreate,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamMemberUpdate,
    TeamResponse,
    TeamUpdate,
)
from cleanbook.security import SessionPayload
from cleanbook.services.team_service import TeamService

router = APIRouter()


def _dump(team) -> dict:
    return TeamResponse.from_team(team).model_dump(mode="json")


def _dump_member(member) -> dict:
    return TeamMemberResponse.from_member(member).model_dump(mode="json")


# =============================================================================
# Teams
# =============================================================================

@router.get("")
async def list_teams(
    team_status: Optional[TeamStatus] = Query(None, alias="status"),
    staff_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    _caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    teams = await TeamService(db).list_teams(status=team_status, staff_id=staff_id)
    return ok(data=[_dump(t) for t in teams])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    data: TeamCreate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    team = await TeamService(db).create(data)
    return ok(data=_dump(team), message="Team created successfully")


@router.get("/{team_id}")
async def get_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    team = await TeamService(db).get_by_id(team_id)
    if not team:
        raise NotFoundError("Team not found")
    return ok(data=_dump(team))


@router.put("/{team_id}")
async def update_team(
    team_id: int,
    data: TeamUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    team = await TeamService(db).update(team_id, data)
    return ok(data=_dump(team), message="Team updated successfully")


@router.delete("/{team_id}")
async def delete_team(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await TeamService(db).delete(team_id)
    return ok(message="Team deleted successfully")


# =============================================================================
# Members
# =============================================================================

@router.get("/{team_id}/members")
async def list_members(
    team_id: int,
    db: AsyncSession = Depends(get_db),
    _caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    members = await TeamService(db).list_members(team_id)
    return ok(data=[_dump_member(m) for m in members])


@router.post("/{team_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    team_id: int,
    data: TeamMemberCreate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    member = await TeamService(db).add_member(team_id, data)
    return ok(data=_dump_member(member), message="Team member added successfully")


@router.put("/{team_id}/members/{member_id}")
async def update_member(
    team_id: int,
    member_id: int,
    data: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    member = await TeamService(db).update_member(team_id, member_id, data)
    return ok(data=_dump_member(member), message="Team member updated successfully")


@router.delete("/{team_id}/members/{member_id}")
async def remove_member(
    team_id: int,
    member_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await TeamService(db).remove_member(team_id, member_id)
    return ok(message="Team member removed successfully")
