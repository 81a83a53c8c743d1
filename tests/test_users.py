from sqlalchemy import func, select

from cleanbook.models import User
from cleanbook.security import verify_password

from conftest import CUSTOMER_PASSWORD, customer_headers, make_user


async def test_profile_requires_customer_session(client, db):
    user = await make_user(db)
    response = await client.get(f"/api/users/{user.id}")
    assert response.status_code == 401


async def test_customer_reads_own_profile(client, db):
    user = await make_user(db)

    response = await client.get(f"/api/users/{user.id}", headers=customer_headers(user))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "customer@example.com"
    assert "password_hash" not in data
    assert response.headers["cache-control"] == "private, max-age=300, must-revalidate"


async def test_customer_cannot_reach_another_profile(client, db):
    user = await make_user(db)
    other = await make_user(db, email="other@example.com")

    for method in ("get", "put", "delete"):
        kwargs = {"json": {"name": "Hijack"}} if method == "put" else {}
        response = await getattr(client, method)(
            f"/api/users/{other.id}", headers=customer_headers(user), **kwargs
        )
        assert response.status_code == 403


async def test_update_profile_is_coalescing(client, db):
    user = await make_user(db)

    response = await client.put(
        f"/api/users/{user.id}",
        json={"name": "Casey C.", "address": None, "password": "abc"},
        headers=customer_headers(user),
    )

    data = response.json()["data"]
    assert data["name"] == "Casey C."
    assert data["address"] == "Coolsingel 40, Rotterdam"
    await db.refresh(user)
    assert verify_password(CUSTOMER_PASSWORD, user.password_hash)


async def test_update_password_and_email(client, db):
    user = await make_user(db)

    response = await client.put(
        f"/api/users/{user.id}",
        json={"email": "Casey@Example.com", "password": "new-secret"},
        headers=customer_headers(user),
    )

    assert response.json()["data"]["email"] == "casey@example.com"
    await db.refresh(user)
    assert verify_password("new-secret", user.password_hash)


async def test_update_rejects_email_in_use(client, db):
    user = await make_user(db)
    await make_user(db, email="taken@example.com")

    response = await client.put(
        f"/api/users/{user.id}", json={"email": "taken@example.com"}, headers=customer_headers(user)
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Email already in use"


async def test_delete_account_clears_session(client, db):
    user = await make_user(db)

    response = await client.delete(f"/api/users/{user.id}", headers=customer_headers(user))

    assert response.status_code == 200
    assert response.headers["set-cookie"].startswith("userToken=")
    assert await db.scalar(select(func.count()).select_from(User)) == 0


async def test_admin_lists_customers(client, db, admin_headers):
    await make_user(db)
    await make_user(db, email="other@example.com")

    response = await client.get("/api/users", headers=admin_headers)

    assert {u["email"] for u in response.json()["data"]} == {"customer@example.com", "other@example.com"}
