"""Team and team membership schemas."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from cleanbook.models.staff import StaffRole, StaffStatus
from cleanbook.models.team import Team, TeamMember, TeamRole, TeamStatus


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    team_leader_id: Optional[int] = None
    status: TeamStatus = TeamStatus.ACTIVE


class TeamUpdate(BaseModel):
    """Null means unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    team_leader_id: Optional[int] = None
    status: Optional[TeamStatus] = None


class TeamMemberCreate(BaseModel):
    staff_id: int
    role_in_team: TeamRole


class TeamMemberUpdate(BaseModel):
    """Null means unchanged."""
    role_in_team: Optional[TeamRole] = None


class TeamMemberResponse(BaseModel):
    id: int
    team_id: int
    staff_id: int
    role_in_team: TeamRole
    joined_at: Optional[datetime]
    staff_name: Optional[str] = None
    staff_email: Optional[str] = None
    staff_phone: Optional[str] = None
    staff_role: Optional[StaffRole] = None
    staff_status: Optional[StaffStatus] = None

    @classmethod
    def from_member(cls, member: TeamMember) -> "TeamMemberResponse":
        staff = member.staff
        return cls(
            id=member.id,
            team_id=member.team_id,
            staff_id=member.staff_id,
            role_in_team=member.role_in_team,
            joined_at=member.joined_at,
            staff_name=staff.name if staff else None,
            staff_email=staff.email if staff else None,
            staff_phone=staff.phone if staff else None,
            staff_role=staff.role if staff else None,
            staff_status=staff.status if staff else None,
        )


class TeamResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    team_leader_id: Optional[int]
    leader_name: Optional[str] = None
    leader_email: Optional[str] = None
    status: TeamStatus
    member_count: int = 0
    members: List[TeamMemberResponse] = []
    created_at: datetime
    updated_at: Optional[datetime]

    @classmethod
    def from_team(cls, team: Team) -> "TeamResponse":
        """Build from a team loaded with ``leader`` and ``members.staff``."""
        members = [TeamMemberResponse.from_member(m) for m in team.members]
        return cls(
            id=team.id,
            name=team.name,
            description=team.description,
            team_leader_id=team.team_leader_id,
            leader_name=team.leader.name if team.leader else None,
            leader_email=team.leader.email if team.leader else None,
            status=team.status,
            member_count=len(members),
            members=members,
            created_at=team.created_at,
            updated_at=team.updated_at,
        )
