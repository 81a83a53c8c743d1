"""Assignment notification endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import NO_STORE, apply_cache_policy
from cleanbook.api.deps import AdminOrStaff, get_db, require_admin_or_staff
from cleanbook.schemas.common import ok
from cleanbook.schemas.notification import NotificationMarkRequest, NotificationResponse
from cleanbook.services.notification_service import NotificationService

router = APIRouter()


@router.get("")
async def list_notifications(
    response: Response,
    staff_id: Optional[int] = Query(None),
    team_id: Optional[int] = Query(None),
    is_read: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    """Staff only ever see notifications addressed to them or their team."""
    apply_cache_policy(response, NO_STORE)
    notifications = await NotificationService(db).list_notifications(
        staff_id=staff_id,
        team_id=team_id,
        is_read=is_read,
        visible_to_staff=None if caller.is_admin else caller.staff.id,
    )
    return ok(data=[NotificationResponse.from_notification(n).model_dump(mode="json") for n in notifications])


@router.put("")
async def mark_notifications(
    data: NotificationMarkRequest,
    db: AsyncSession = Depends(get_db),
    caller: AdminOrStaff = Depends(require_admin_or_staff),
):
    updated = await NotificationService(db).mark(
        data.notification_ids,
        is_read=data.is_read,
        visible_to_staff=None if caller.is_admin else caller.staff.id,
    )
    return ok(message="Notifications updated successfully", updated=updated)
