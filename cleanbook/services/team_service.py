"""Team service - teams and the one-team-per-staff membership rule."""

from typing import List, Optional

import structlog
from sqlalchemy import select, func, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cleanbook.errors import BadRequestError, NotFoundError
from cleanbook.models.assignment import Assignment, ACTIVE_ASSIGNMENT_STATUSES
from cleanbook.models.staff import Staff, StaffStatus, LEADER_ROLES
from cleanbook.models.team import Team, TeamMember, TeamStatus
from cleanbook.schemas.team import TeamCreate, TeamUpdate, TeamMemberCreate, TeamMemberUpdate

logger = structlog.get_logger(__name__)

ALREADY_IN_TEAM = "Staff is already a member of this team"
ALREADY_IN_OTHER_TEAM = "Staff is already a member of another team"


class TeamService:
    """Service for team operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _team_query(self):
        return select(Team).options(
            selectinload(Team.leader),
            selectinload(Team.members).selectinload(TeamMember.staff),
        )

    async def get_by_id(self, team_id: int) -> Optional[Team]:
        """Get team with leader and members."""
        result = await self.db.execute(self._team_query().where(Team.id == team_id))
        return result.scalar_one_or_none()

    async def _get_team_or_404(self, team_id: int) -> Team:
        team = await self.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team not found")
        return team

    async def list_teams(
        self,
        status: Optional[TeamStatus] = None,
        staff_id: Optional[int] = None,
    ) -> List[Team]:
        """List teams; ``staff_id`` narrows to the team that staff member is in."""
        query = self._team_query()
        if status:
            query = query.where(Team.status == status)
        if staff_id:
            query = query.where(
                exists().where(TeamMember.team_id == Team.id, TeamMember.staff_id == staff_id)
            )
        result = await self.db.execute(query.order_by(Team.name))
        return list(result.scalars().unique())

    async def _validate_leader(self, leader_id: int) -> None:
        leader = await self.db.get(Staff, leader_id)
        if not leader or leader.status != StaffStatus.ACTIVE or leader.role not in LEADER_ROLES:
            raise BadRequestError("Team leader must be an active supervisor or manager")

    async def _ensure_name_free(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = select(Team.id).where(Team.name == name)
        if exclude_id is not None:
            query = query.where(Team.id != exclude_id)
        if await self.db.scalar(query):
            raise BadRequestError("Team name already exists")

    async def create(self, data: TeamCreate) -> Team:
        await self._ensure_name_free(data.name)
        if data.team_leader_id:
            await self._validate_leader(data.team_leader_id)

        team = Team(**data.model_dump())
        self.db.add(team)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Team name already exists")

        team_id = team.id
        logger.info("team_created", team_id=team_id)
        self.db.expire(team)
        return await self.get_by_id(team_id)

    async def update(self, team_id: int, data: TeamUpdate) -> Team:
        """COALESCE-style update."""
        team = await self._get_team_or_404(team_id)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in update_data:
            await self._ensure_name_free(update_data["name"], exclude_id=team_id)
        if "team_leader_id" in update_data:
            await self._validate_leader(update_data["team_leader_id"])

        for field, value in update_data.items():
            setattr(team, field, value)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Team name already exists")

        self.db.expire(team)
        return await self.get_by_id(team_id)

    async def _count_active_assignments(self, *conditions) -> int:
        return await self.db.scalar(
            select(func.count())
            .select_from(Assignment)
            .where(Assignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES), *conditions)
        )

    async def delete(self, team_id: int) -> None:
        team = await self._get_team_or_404(team_id)
        if await self._count_active_assignments(Assignment.team_id == team_id):
            raise BadRequestError("Cannot delete team with active assignments")
        await self.db.delete(team)
        await self.db.commit()
        logger.info("team_deleted", team_id=team_id)

    # =========================================================================
    # Membership
    # =========================================================================

    async def list_members(self, team_id: int) -> List[TeamMember]:
        await self._get_team_or_404(team_id)
        result = await self.db.execute(
            select(TeamMember)
            .options(selectinload(TeamMember.staff))
            .where(TeamMember.team_id == team_id)
            .order_by(TeamMember.joined_at)
        )
        return list(result.scalars())

    async def _get_member(self, team_id: int, member_id: int) -> TeamMember:
        result = await self.db.execute(
            select(TeamMember)
            .options(selectinload(TeamMember.staff))
            .where(TeamMember.id == member_id, TeamMember.team_id == team_id)
        )
        member = result.scalar_one_or_none()
        if not member:
            raise NotFoundError("Team member not found")
        return member

    async def add_member(self, team_id: int, data: TeamMemberCreate) -> TeamMember:
        """Add a staff member to a team.

        Checks run in order inside one transaction; the unique constraint on
        ``team_members.staff_id`` rejects a concurrent insert that slipped
        past the checks.
        """
        team = await self.db.get(Team, team_id)
        if not team:
            raise NotFoundError("Team not found")

        staff = await self.db.get(Staff, data.staff_id)
        if not staff:
            raise NotFoundError("Staff not found")
        if staff.status != StaffStatus.ACTIVE:
            raise BadRequestError("Staff is not active")

        result = await self.db.execute(select(TeamMember).where(TeamMember.staff_id == data.staff_id))
        existing = result.scalar_one_or_none()
        if existing and existing.team_id == team_id:
            raise BadRequestError(ALREADY_IN_TEAM)
        if existing:
            raise BadRequestError(ALREADY_IN_OTHER_TEAM)

        member = TeamMember(team_id=team_id, staff_id=data.staff_id, role_in_team=data.role_in_team)
        self.db.add(member)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError(ALREADY_IN_OTHER_TEAM)

        logger.info("team_member_added", team_id=team_id, staff_id=data.staff_id)
        return await self._get_member(team_id, member.id)

    async def update_member(self, team_id: int, member_id: int, data: TeamMemberUpdate) -> TeamMember:
        """COALESCE on role_in_team: null leaves the role unchanged."""
        member = await self._get_member(team_id, member_id)
        if data.role_in_team is not None:
            member.role_in_team = data.role_in_team
            await self.db.commit()
        return member

    async def remove_member(self, team_id: int, member_id: int) -> None:
        member = await self._get_member(team_id, member_id)
        if await self._count_active_assignments(Assignment.staff_id == member.staff_id):
            raise BadRequestError("Cannot remove member with active assignments")
        await self.db.delete(member)
        await self.db.commit()
        logger.info("team_member_removed", team_id=team_id, staff_id=member.staff_id)
