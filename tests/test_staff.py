import re

import pytest
from sqlalchemy import func, select

from cleanbook.models import (
    ApprovalStatus,
    Assignment,
    AssignmentType,
    Staff,
    StaffStatus,
)
from cleanbook.security import verify_password

from conftest import (
    PHONE,
    STAFF_PASSWORD,
    make_booking,
    make_staff,
    make_team,
    staff_headers,
)


def registration(**overrides) -> dict:
    payload = {
        "name": "Nina Nieuw",
        "email": "Nina@Cleanoo.nl",
        "phone": PHONE,
        "address": "Oudegracht 10, Utrecht",
        "password": "secret1",
    }
    payload.update(overrides)
    return payload


def token_from(html: str) -> str:
    return re.search(r"/staff/verify-email\?token=([0-9a-f]+)", html).group(1)


# =============================================================================
# Onboarding
# =============================================================================

async def test_register_sends_verification_and_locks_login(client, db, mailer):
    response = await client.post("/api/staff/register", json=registration())

    assert response.status_code == 201
    body = response.json()
    assert body["requiresVerification"] is True
    assert body["data"]["email"] == "nina@cleanoo.nl"

    staff = await db.get(Staff, body["data"]["id"])
    assert staff.email_verified is False
    assert staff.approval_status == ApprovalStatus.PENDING_INFO
    [email] = mailer.to("nina@cleanoo.nl")
    assert email.subject == "Verify your email address"

    login = await client.post("/api/auth/staff-login", json={"email": "nina@cleanoo.nl", "password": "secret1"})
    assert login.status_code == 403
    assert login.json()["requiresVerification"] is True


async def test_register_is_all_or_nothing_with_verification_email(client, db, mailer):
    mailer.fail = True

    response = await client.post("/api/staff/register", json=registration())

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to send verification email. Please try again."
    assert await db.scalar(select(func.count()).select_from(Staff)) == 0


async def test_register_rejects_taken_email(client, db):
    await make_staff(db, email="nina@cleanoo.nl")
    response = await client.post("/api/staff/register", json=registration())
    assert response.status_code == 400
    assert response.json()["error"] == "Email already exists"


async def test_verify_email_is_idempotent(client, mailer):
    await client.post("/api/staff/register", json=registration())
    token = token_from(mailer.sent[0].html)

    first = await client.post("/api/staff/verify-email", json={"token": token})

    assert first.status_code == 200
    assert first.json()["alreadyVerified"] is False
    assert first.json()["data"]["approvalStatus"] == "pending_info"

    # The token is consumed on first use
    second = await client.post("/api/staff/verify-email", json={"token": token})
    assert second.status_code == 400


async def test_verify_email_reports_already_verified(client, db):
    await make_staff(db, verification_token="abc123")

    response = await client.post("/api/staff/verify-email", json={"token": "abc123"})

    assert response.json()["alreadyVerified"] is True
    assert response.json()["message"] == "Email already verified"


async def test_complete_profile_moves_to_pending_approval(client, db, mailer):
    staff = await make_staff(db, approval_status=ApprovalStatus.PENDING_INFO)

    response = await client.post(
        "/api/staff/complete-profile",
        json={"staffId": staff.id, "kvk_number": "12345678", "bhv_certificate": True, "car_type": "Hatchback"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["approvalStatus"] == "pending_approval"
    await db.refresh(staff)
    assert staff.kvk_number == "12345678"
    assert staff.bhv_certificate is True
    [alert] = mailer.to("alerts@cleanoo.nl")
    assert alert.subject == "Staff application: Sam Cleaner"


async def test_complete_profile_requires_verified_email(client, db):
    staff = await make_staff(db, email_verified=False, approval_status=ApprovalStatus.PENDING_INFO)

    response = await client.post("/api/staff/complete-profile", json={"staffId": staff.id})

    assert response.status_code == 400
    assert response.json()["requiresVerification"] is True


async def test_complete_profile_refused_once_approved(client, db):
    staff = await make_staff(db)
    response = await client.post("/api/staff/complete-profile", json={"staffId": staff.id})
    assert response.status_code == 400


async def test_rejected_applicant_can_resubmit(client, db):
    staff = await make_staff(
        db, approval_status=ApprovalStatus.REJECTED, rejection_reason="Missing KvK", status=StaffStatus.INACTIVE
    )

    response = await client.post("/api/staff/complete-profile", json={"staffId": staff.id, "kvk_number": "1"})

    assert response.status_code == 200
    await db.refresh(staff)
    assert staff.approval_status == ApprovalStatus.PENDING_APPROVAL
    assert staff.rejection_reason is None


async def test_admin_approves_application(client, db, mailer, admin_headers):
    staff = await make_staff(db, approval_status=ApprovalStatus.PENDING_APPROVAL)

    response = await client.post(
        "/api/staff/approve", json={"staffId": staff.id, "action": "approve"}, headers=admin_headers
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["approval_status"] == "approved"
    assert data["approved_at"] is not None
    assert mailer.to(staff.email)[0].subject == "Your application has been approved"

    login = await client.post("/api/auth/staff-login", json={"email": staff.email, "password": STAFF_PASSWORD})
    assert login.status_code == 200


async def test_admin_rejects_application(client, db, mailer, admin_headers):
    staff = await make_staff(db, approval_status=ApprovalStatus.PENDING_APPROVAL)

    response = await client.post(
        "/api/staff/approve",
        json={"staffId": staff.id, "action": "reject", "rejectionReason": "Incomplete documents"},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["approval_status"] == "rejected"
    assert data["status"] == "inactive"
    assert data["rejection_reason"] == "Incomplete documents"
    assert "Incomplete documents" in mailer.to(staff.email)[0].html


async def test_approve_rejects_unknown_action(client, db, admin_headers):
    staff = await make_staff(db)
    response = await client.post(
        "/api/staff/approve", json={"staffId": staff.id, "action": "maybe"}, headers=admin_headers
    )
    assert response.status_code == 400


# =============================================================================
# Administration
# =============================================================================

async def test_admin_created_staff_is_ready_to_work(client, admin_headers):
    response = await client.post(
        "/api/staff",
        json={
            "name": "Piet Planner",
            "email": "piet@cleanoo.nl",
            "phone": PHONE,
            "address": "Markt 1, Delft",
            "role": "supervisor",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["approval_status"] == "approved"
    assert data["email_verified"] is True
    assert data["status"] == "active"
    assert "password_hash" not in data

    login = await client.post("/api/auth/staff-login", json={"email": "piet@cleanoo.nl", "password": "welcome"})
    assert login.status_code == 200


async def test_admin_lists_staff_with_filters(client, db, admin_headers):
    await make_staff(db)
    await make_staff(db, email="pending@cleanoo.nl", approval_status=ApprovalStatus.PENDING_APPROVAL)

    everyone = await client.get("/api/staff", headers=admin_headers)
    pending = await client.get("/api/staff", params={"approval_status": "pending_approval"}, headers=admin_headers)

    assert len(everyone.json()["data"]) == 2
    assert [s["email"] for s in pending.json()["data"]] == ["pending@cleanoo.nl"]


async def test_staff_cannot_use_admin_endpoints(client, db):
    staff = await make_staff(db)
    response = await client.get("/api/staff", headers=staff_headers(staff))
    assert response.status_code == 403


async def test_update_keeps_omitted_and_null_fields(client, db, admin_headers):
    staff = await make_staff(db, specialization="Windows")

    response = await client.put(
        f"/api/staff/{staff.id}",
        json={"name": "Sam Senior", "specialization": None, "hourly_rate": 22.5},
        headers=admin_headers,
    )

    data = response.json()["data"]
    assert data["name"] == "Sam Senior"
    assert data["specialization"] == "Windows"
    assert data["hourly_rate"] == 22.5
    assert data["phone"] == PHONE


async def test_update_rejects_email_of_another_staff_member(client, db, admin_headers):
    staff = await make_staff(db)
    await make_staff(db, email="other@cleanoo.nl")

    response = await client.put(f"/api/staff/{staff.id}", json={"email": "OTHER@cleanoo.nl"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Email already exists"


async def test_get_missing_staff(client, admin_headers):
    response = await client.get("/api/staff/999", headers=admin_headers)
    assert response.status_code == 404


async def test_delete_refused_while_in_team(client, db, admin_headers):
    staff = await make_staff(db)
    await make_team(db, members=[staff])

    response = await client.delete(f"/api/staff/{staff.id}", headers=admin_headers)

    assert response.status_code == 400
    assert "Remove from teams first" in response.json()["error"]


async def test_delete_refused_with_assignments(client, db, admin_headers):
    staff = await make_staff(db)
    booking = await make_booking(db)
    db.add(Assignment(booking_id=booking.id, assignment_type=AssignmentType.INDIVIDUAL, staff_id=staff.id))
    await db.commit()

    response = await client.delete(f"/api/staff/{staff.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "Cannot delete staff with existing assignments"


async def test_delete_staff(client, db, admin_headers):
    staff = await make_staff(db)

    response = await client.delete(f"/api/staff/{staff.id}", headers=admin_headers)

    assert response.status_code == 200
    assert await db.scalar(select(func.count()).select_from(Staff)) == 0


# =============================================================================
# Self-service
# =============================================================================

async def test_me_is_privately_cacheable(client, db):
    staff = await make_staff(db)

    response = await client.get("/api/staff/me", headers=staff_headers(staff))

    assert response.status_code == 200
    assert response.json()["data"]["email"] == staff.email
    assert response.headers["cache-control"] == "private, max-age=300, must-revalidate"


@pytest.mark.parametrize("password,changed", [("abc", False), ("long-enough", True)])
async def test_me_update_applies_password_only_when_long_enough(client, db, password, changed):
    staff = await make_staff(db)

    response = await client.put(
        "/api/staff/me",
        json={"address": "Nieuwe Gracht 2", "password": password},
        headers=staff_headers(staff),
    )

    assert response.status_code == 200
    assert response.json()["data"]["address"] == "Nieuwe Gracht 2"
    await db.refresh(staff)
    assert verify_password(password, staff.password_hash) is changed
    assert verify_password(STAFF_PASSWORD, staff.password_hash) is not changed


async def test_me_update_ignores_admin_fields(client, db):
    staff = await make_staff(db)

    await client.put("/api/staff/me", json={"role": "manager", "status": "inactive"}, headers=staff_headers(staff))

    await db.refresh(staff)
    assert staff.role.value == "cleaner"
    assert staff.status == StaffStatus.ACTIVE


# =============================================================================
# Performance
# =============================================================================

async def test_staff_sees_own_performance(client, db):
    staff = await make_staff(db)

    response = await client.get("/api/staff/performance", headers=staff_headers(staff))

    assert response.status_code == 200
    assert response.json()["data"]["overview"]["total_assignments"] == 0


async def test_staff_cannot_see_someone_elses_performance(client, db):
    staff = await make_staff(db)
    other = await make_staff(db, email="other@cleanoo.nl")

    response = await client.get(
        "/api/staff/performance", params={"staff_id": other.id}, headers=staff_headers(staff)
    )

    assert response.status_code == 403


async def test_admin_performance_requires_staff_id(client, db, admin_headers):
    missing_id = await client.get("/api/staff/performance", headers=admin_headers)
    unknown = await client.get("/api/staff/performance", params={"staff_id": 999}, headers=admin_headers)

    assert missing_id.status_code == 400
    assert missing_id.json()["error"] == "Staff ID is required"
    assert unknown.status_code == 404
