"""Customer account endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.cache import PRIVATE, apply_cache_policy
from cleanbook.api.deps import get_db, get_sessions, require_admin, require_customer
from cleanbook.errors import ForbiddenError
from cleanbook.models.user import User
from cleanbook.schemas.common import ok
from cleanbook.schemas.user import UserResponse, UserUpdate
from cleanbook.security import Role, SessionManager, SessionPayload
from cleanbook.services.user_service import UserService

router = APIRouter()


def _dump(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


def _require_self(user: User, user_id: int) -> None:
    if user.id != user_id:
        raise ForbiddenError("Forbidden")


@router.get("")
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: SessionPayload = Depends(require_admin),
):
    users = await UserService(db).list_users()
    return ok(data=[_dump(u) for u in users])


@router.get("/{user_id}")
async def get_user(user_id: int, response: Response, user: User = Depends(require_customer)):
    _require_self(user, user_id)
    apply_cache_policy(response, PRIVATE)
    return ok(data=_dump(user))


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_customer),
):
    _require_self(user, user_id)
    user = await UserService(db).update(user_id, data)
    return ok(data=_dump(user), message="Profile updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    response: Response,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_customer),
    sessions: SessionManager = Depends(get_sessions),
):
    """Delete the account; bookings stay but are unlinked."""
    _require_self(user, user_id)
    await UserService(db).delete(user_id)
    sessions.clear_cookie(response, Role.CUSTOMER)
    return ok(message="Account deleted successfully")
