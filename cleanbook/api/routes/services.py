"""Service catalog endpoints. Reads are public, writes need an admin."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import NO_STORE, apply_cache_policy
from cleanbook.api.deps import get_db, require_admin
from cleanbook.schemas.common import ok
from cleanbook.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from cleanbook.security import SessionPayload
from cleanbook.services.catalog_service import CatalogService

router = APIRouter()


def _dump(service) -> dict:
    return ServiceResponse.model_validate(service).model_dump(mode="json")


@router.get("")
async def list_services(response: Response, db: AsyncSession = Depends(get_db)):
    # Admin edits must show up immediately
    apply_cache_policy(response, NO_STORE)
    services = await CatalogService(db).list_services()
    return ok(data=[_dump(s) for s in services])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    service = await CatalogService(db).create(data)
    return ok(data=_dump(service), message="Service created successfully")


@router.get("/{service_id}")
async def get_service(service_id: int, response: Response, db: AsyncSession = Depends(get_db)):
    apply_cache_policy(response, NO_STORE)
    service = await CatalogService(db).get_or_404(service_id)
    return ok(data=_dump(service))


@router.put("/{service_id}")
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    service = await CatalogService(db).update(service_id, data)
    return ok(data=_dump(service), message="Service updated successfully")


@router.delete("/{service_id}")
async def delete_service(
    service_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    await CatalogService(db).delete(service_id)
    return ok(message="Service deleted successfully")
