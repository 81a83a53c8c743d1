"""Admin analytics endpoint."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import NO_STORE, apply_cache_policy
from cleanbook.api.deps import get_db, require_admin
from cleanbook.schemas.common import ok
from cleanbook.security import SessionPayload
from cleanbook.services.analytics_service import AnalyticsService, DEFAULT_PERIOD

router = APIRouter()


@router.get("")
async def get_analytics(
    response: Response,
    period: str = Query(DEFAULT_PERIOD, description="day, week, month or year"),
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    apply_cache_policy(response, NO_STORE)
    return ok(data=await AnalyticsService(db).dashboard(period))
