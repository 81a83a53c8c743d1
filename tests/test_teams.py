import pytest
from sqlalchemy import func, select

from cleanbook.errors import BadRequestError
from cleanbook.models import (
    Assignment,
    AssignmentStatus,
    AssignmentType,
    StaffRole,
    StaffStatus,
    Team,
    TeamMember,
    TeamRole,
)
from cleanbook.schemas.team import TeamMemberCreate
from cleanbook.services.team_service import TeamService

from conftest import make_booking, make_staff, make_team, staff_headers


async def add_member(client, headers, team_id, staff_id, role="member"):
    return await client.post(
        f"/api/teams/{team_id}/members",
        json={"staff_id": staff_id, "role_in_team": role},
        headers=headers,
    )


# =============================================================================
# Teams
# =============================================================================

async def test_create_team_with_leader(client, db, admin_headers):
    leader = await make_staff(db, email="lead@cleanoo.nl", name="Lea Leader", role=StaffRole.SUPERVISOR)

    response = await client.post(
        "/api/teams",
        json={"name": "Team North", "description": "Amsterdam Noord", "team_leader_id": leader.id},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["leader_name"] == "Lea Leader"
    assert data["status"] == "active"
    assert data["member_count"] == 0


@pytest.mark.parametrize("overrides", [
    {"role": StaffRole.CLEANER},
    {"role": StaffRole.MANAGER, "status": StaffStatus.INACTIVE},
])
async def test_team_leader_must_be_active_supervisor_or_manager(client, db, admin_headers, overrides):
    candidate = await make_staff(db, **overrides)

    response = await client.post(
        "/api/teams", json={"name": "Team South", "team_leader_id": candidate.id}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Team leader must be an active supervisor or manager"


async def test_team_names_are_unique(client, db, admin_headers):
    await make_team(db, name="Team North")
    other = await make_team(db, name="Team South")

    created = await client.post("/api/teams", json={"name": "Team North"}, headers=admin_headers)
    renamed = await client.put(f"/api/teams/{other.id}", json={"name": "Team North"}, headers=admin_headers)

    assert created.status_code == 400
    assert renamed.status_code == 400
    assert renamed.json()["error"] == "Team name already exists"


async def test_update_is_coalescing_and_idempotent(client, db, admin_headers):
    team = await make_team(db, name="Team North", description="Noord")

    first = await client.put(f"/api/teams/{team.id}", json={"status": "inactive", "name": None}, headers=admin_headers)
    second = await client.put(f"/api/teams/{team.id}", json={"status": "inactive"}, headers=admin_headers)

    for response in (first, second):
        data = response.json()["data"]
        assert data["name"] == "Team North"
        assert data["description"] == "Noord"
        assert data["status"] == "inactive"


async def test_staff_can_read_teams_but_not_change_them(client, db):
    staff = await make_staff(db)
    team = await make_team(db, members=[staff])
    await make_team(db, name="Team South")
    headers = staff_headers(staff)

    mine = await client.get("/api/teams", params={"staff_id": staff.id}, headers=headers)
    assert [t["id"] for t in mine.json()["data"]] == [team.id]
    assert mine.json()["data"][0]["members"][0]["staff_email"] == staff.email

    everything = await client.get("/api/teams", headers=headers)
    assert len(everything.json()["data"]) == 2

    forbidden = await client.post("/api/teams", json={"name": "Mine"}, headers=headers)
    assert forbidden.status_code == 403


async def test_get_missing_team(client, admin_headers):
    response = await client.get("/api/teams/42", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Team not found"


async def test_delete_team_removes_memberships(client, db, admin_headers):
    staff = await make_staff(db)
    team = await make_team(db, members=[staff])

    response = await client.delete(f"/api/teams/{team.id}", headers=admin_headers)

    assert response.status_code == 200
    assert await db.scalar(select(func.count()).select_from(Team)) == 0
    assert await db.scalar(select(func.count()).select_from(TeamMember)) == 0


async def test_delete_team_refused_with_active_assignments(client, db, admin_headers):
    team = await make_team(db)
    booking = await make_booking(db)
    db.add(Assignment(booking_id=booking.id, assignment_type=AssignmentType.TEAM, team_id=team.id))
    await db.commit()

    response = await client.delete(f"/api/teams/{team.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete team with active assignments"


async def test_delete_team_allowed_once_assignments_are_finished(client, db, admin_headers):
    team = await make_team(db)
    booking = await make_booking(db)
    db.add(Assignment(
        booking_id=booking.id,
        assignment_type=AssignmentType.TEAM,
        team_id=team.id,
        status=AssignmentStatus.COMPLETED,
    ))
    await db.commit()

    response = await client.delete(f"/api/teams/{team.id}", headers=admin_headers)

    assert response.status_code == 200


# =============================================================================
# Members
# =============================================================================

async def test_add_and_list_members(client, db, admin_headers):
    team = await make_team(db)
    staff = await make_staff(db)

    response = await add_member(client, admin_headers, team.id, staff.id, role="specialist")

    assert response.status_code == 201
    member = response.json()["data"]
    assert member["role_in_team"] == "specialist"
    assert member["staff_name"] == "Sam Cleaner"

    listed = await client.get(f"/api/teams/{team.id}/members", headers=admin_headers)
    assert [m["staff_id"] for m in listed.json()["data"]] == [staff.id]


async def test_add_member_checks_in_order(client, db, admin_headers):
    team = await make_team(db)
    other_team = await make_team(db, name="Team South")
    staff = await make_staff(db)
    inactive = await make_staff(db, email="away@cleanoo.nl", status=StaffStatus.INACTIVE)

    no_team = await add_member(client, admin_headers, 999, 999)
    assert (no_team.status_code, no_team.json()["error"]) == (404, "Team not found")

    no_staff = await add_member(client, admin_headers, team.id, 999)
    assert (no_staff.status_code, no_staff.json()["error"]) == (404, "Staff not found")

    not_active = await add_member(client, admin_headers, team.id, inactive.id)
    assert (not_active.status_code, not_active.json()["error"]) == (400, "Staff is not active")

    assert (await add_member(client, admin_headers, team.id, staff.id)).status_code == 201

    again = await add_member(client, admin_headers, team.id, staff.id)
    assert again.json()["error"] == "Staff is already a member of this team"

    elsewhere = await add_member(client, admin_headers, other_team.id, staff.id)
    assert elsewhere.json()["error"] == "Staff is already a member of another team"


class NoMembership:
    def scalar_one_or_none(self):
        return None


async def test_concurrent_membership_is_caught_by_unique_constraint(db, monkeypatch):
    staff = await make_staff(db)
    await make_team(db, name="Team South", members=[staff])
    north = await make_team(db)

    async def membership_not_yet_visible(*args, **kwargs):
        return NoMembership()

    monkeypatch.setattr(db, "execute", membership_not_yet_visible)
    with pytest.raises(BadRequestError) as excinfo:
        await TeamService(db).add_member(north.id, TeamMemberCreate(staff_id=staff.id, role_in_team=TeamRole.MEMBER))
    monkeypatch.undo()

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "Staff is already a member of another team"
    memberships = await db.scalar(
        select(func.count()).select_from(TeamMember).where(TeamMember.staff_id == staff.id)
    )
    assert memberships == 1


async def test_update_member_role(client, db, admin_headers):
    staff = await make_staff(db)
    team = await make_team(db, members=[staff])
    member_id = await db.scalar(select(TeamMember.id).where(TeamMember.staff_id == staff.id))

    changed = await client.put(
        f"/api/teams/{team.id}/members/{member_id}", json={"role_in_team": "leader"}, headers=admin_headers
    )
    unchanged = await client.put(
        f"/api/teams/{team.id}/members/{member_id}", json={"role_in_team": None}, headers=admin_headers
    )

    assert changed.json()["data"]["role_in_team"] == "leader"
    assert unchanged.json()["data"]["role_in_team"] == "leader"


async def test_member_must_belong_to_team(client, db, admin_headers):
    staff = await make_staff(db)
    await make_team(db, members=[staff])
    other_team = await make_team(db, name="Team South")
    member_id = await db.scalar(select(TeamMember.id).where(TeamMember.staff_id == staff.id))

    response = await client.delete(f"/api/teams/{other_team.id}/members/{member_id}", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "Team member not found"


async def test_remove_member_refused_with_active_assignments(client, db, admin_headers):
    staff = await make_staff(db)
    team = await make_team(db, members=[staff])
    booking = await make_booking(db)
    db.add(Assignment(
        booking_id=booking.id,
        assignment_type=AssignmentType.INDIVIDUAL,
        staff_id=staff.id,
        status=AssignmentStatus.IN_PROGRESS,
    ))
    await db.commit()
    member_id = await db.scalar(select(TeamMember.id).where(TeamMember.staff_id == staff.id))

    response = await client.delete(f"/api/teams/{team.id}/members/{member_id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot remove member with active assignments"


async def test_removed_member_can_join_another_team(client, db, admin_headers):
    staff = await make_staff(db)
    team = await make_team(db, members=[staff])
    other_team = await make_team(db, name="Team South")
    member_id = await db.scalar(select(TeamMember.id).where(TeamMember.staff_id == staff.id))

    removed = await client.delete(f"/api/teams/{team.id}/members/{member_id}", headers=admin_headers)
    joined = await add_member(client, admin_headers, other_team.id, staff.id)

    assert removed.status_code == 200
    assert joined.status_code == 201
