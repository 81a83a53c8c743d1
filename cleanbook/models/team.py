"""Team models."""

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from cleanbook.database import Base


class TeamStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TeamRole(str, PyEnum):
    """Role of a staff member inside a team."""
    LEADER = "leader"
    MEMBER = "member"
    SPECIALIST = "specialist"


class Team(Base):
    """Team entity - a group of staff assigned to bookings together."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    team_leader_id = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"))
    status = Column(Enum(TeamStatus), default=TeamStatus.ACTIVE, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    leader = relationship("Staff", foreign_keys=[team_leader_id])
    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TeamMember.joined_at",
    )

    def __repr__(self):
        return f"<Team {self.name}>"


class TeamMember(Base):
    """Membership of a staff member in a team.

    ``staff_id`` is unique: a staff member belongs to at most one team.
    """

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, unique=True)
    role_in_team = Column(Enum(TeamRole), default=TeamRole.MEMBER, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    team = relationship("Team", back_populates="members")
    staff = relationship("Staff")

    def __repr__(self):
        return f"<TeamMember team={self.team_id} staff={self.staff_id}>"
