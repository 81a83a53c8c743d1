"""Catalog service - the public list of cleaning services."""

from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.errors import NotFoundError
from cleanbook.models.service import Service
from cleanbook.schemas.service import ServiceCreate, ServiceUpdate

logger = structlog.get_logger(__name__)


class CatalogService:
    """Service for catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_services(self) -> List[Service]:
        result = await self.db.execute(select(Service).order_by(Service.id))
        return list(result.scalars())

    async def get_by_id(self, service_id: int) -> Optional[Service]:
        return await self.db.get(Service, service_id)

    async def get_or_404(self, service_id: int) -> Service:
        service = await self.get_by_id(service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    async def create(self, data: ServiceCreate) -> Service:
        service = Service(**data.model_dump())
        self.db.add(service)
        await self.db.commit()
        await self.db.refresh(service)
        logger.info("service_created", service_id=service.id)
        return service

    async def update(self, service_id: int, data: ServiceUpdate) -> Service:
        service = await self.get_or_404(service_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(service, field, value)
        await self.db.commit()
        await self.db.refresh(service)
        return service

    async def delete(self, service_id: int) -> None:
        service = await self.get_or_404(service_id)
        await self.db.delete(service)
        await self.db.commit()
        logger.info("service_deleted", service_id=service_id)
