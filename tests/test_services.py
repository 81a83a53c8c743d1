import pytest
from sqlalchemy import func, select

from cleanbook.models import Service
from cleanbook.seed import DEFAULT_SERVICES, seed_services

from conftest import make_staff, staff_headers


async def make_service(db, title="Home Cleaning", **overrides):
    service = Service(title=title, description="Kitchen, bathrooms and living areas.", price="80", **overrides)
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


async def count_services(db) -> int:
    return await db.scalar(select(func.count()).select_from(Service))


async def test_catalog_is_public_and_never_cached(client, db):
    await make_service(db)
    await make_service(db, title="Window Cleaning")

    response = await client.get("/api/services")

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    assert [s["title"] for s in response.json()["data"]] == ["Home Cleaning", "Window Cleaning"]


async def test_admin_creates_service(client, admin_headers):
    response = await client.post(
        "/api/services",
        json={"title": "Deep Cleaning", "description": "Seasonal deep clean.", "icon": "Broom", "price": "150"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["title"] == "Deep Cleaning"
    assert body["data"]["duration"] is None


async def test_create_requires_title_and_description(client, admin_headers):
    response = await client.post("/api/services", json={"title": ""}, headers=admin_headers)

    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert {"title", "description"} <= fields


async def test_staff_cannot_edit_catalog(client, db):
    staff = await make_staff(db)

    response = await client.post(
        "/api/services", json={"title": "Mine", "description": "Mine"}, headers=staff_headers(staff)
    )

    assert response.status_code == 403


async def test_anonymous_cannot_edit_catalog(client):
    response = await client.post("/api/services", json={"title": "Mine", "description": "Mine"})
    assert response.status_code == 401


async def test_update_leaves_missing_fields_alone(client, db, admin_headers):
    service = await make_service(db, icon="Home")

    response = await client.put(
        f"/api/services/{service.id}", json={"price": "from 85", "icon": None}, headers=admin_headers
    )

    data = response.json()["data"]
    assert data["price"] == "from 85"
    assert data["icon"] == "Home"
    assert data["title"] == "Home Cleaning"


async def test_delete_service(client, db, admin_headers):
    service = await make_service(db)

    response = await client.delete(f"/api/services/{service.id}", headers=admin_headers)

    assert response.status_code == 200
    assert await count_services(db) == 0


@pytest.mark.parametrize("method", ["get", "put", "delete"])
async def test_missing_service(client, admin_headers, method):
    kwargs = {"json": {"price": "1"}} if method == "put" else {}

    response = await getattr(client, method)("/api/services/404", headers=admin_headers, **kwargs)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Service not found"}


# =============================================================================
# Seeding
# =============================================================================

async def test_seed_fills_empty_catalog(db):
    assert await seed_services(db) == len(DEFAULT_SERVICES) == 12
    assert await count_services(db) == 12


async def test_seed_skips_existing_catalog(db):
    await make_service(db)

    assert await seed_services(db) == 0
    assert await count_services(db) == 1


async def test_seed_append_and_replace(db):
    await make_service(db, title="Custom")

    await seed_services(db, "append")
    assert await count_services(db) == 13

    await seed_services(db, "replace")
    assert await count_services(db) == 12
    titles = set(await db.scalars(select(Service.title)))
    assert "Custom" not in titles
