"""API dependencies for dependency injection and authentication."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.database import get_db
from cleanbook.errors import ForbiddenError, UnauthorizedError
from cleanbook.integrations.google_oauth import GoogleOAuthClient
from cleanbook.integrations.smtp_client import SMTPMailer
from cleanbook.models.staff import Staff
from cleanbook.models.user import User
from cleanbook.security import ResolvedSession, Role, SessionManager, SessionPayload, get_session_manager
from cleanbook.services.email_service import EmailService

__all__ = [
    "get_db",
    "get_sessions",
    "get_mailer",
    "get_email_service",
    "get_google_client",
    "get_resolved_session",
    "require_admin",
    "require_staff",
    "require_customer",
    "get_optional_admin",
    "get_optional_staff",
    "get_optional_customer",
    "AdminOrCustomer",
    "AdminOrStaff",
    "require_admin_or_customer",
    "require_admin_or_staff",
]


# =============================================================================
# Collaborators
# =============================================================================

def get_sessions() -> SessionManager:
    return get_session_manager()


@lru_cache()
def get_mailer() -> SMTPMailer:
    return SMTPMailer()


def get_email_service(mailer=Depends(get_mailer)) -> EmailService:
    return EmailService(mailer)


@lru_cache()
def get_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


# =============================================================================
# Session Resolution
# =============================================================================

async def get_resolved_session(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
) -> Optional[ResolvedSession]:
    """The highest-precedence valid session on the request, if any."""
    return sessions.resolve(request)


def _require_role(request: Request, sessions: SessionManager, role: Role) -> SessionPayload:
    """401 with no session at all, 403 when the session belongs to another role."""
    payload = sessions.from_request(request, role)
    if payload is not None:
        return payload
    if sessions.resolve(request) is not None:
        raise ForbiddenError(f"{role.value.capitalize()} access required")
    raise UnauthorizedError()


def _row_id(payload: SessionPayload) -> int:
    try:
        return int(payload.id)
    except ValueError:
        raise UnauthorizedError()


async def require_admin(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
) -> SessionPayload:
    """Admin session. The admin has no database row."""
    return _require_role(request, sessions, Role.ADMIN)


async def require_staff(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    db: AsyncSession = Depends(get_db),
) -> Staff:
    """Staff session, resolved to the current staff row."""
    payload = _require_role(request, sessions, Role.STAFF)
    staff = await db.get(Staff, _row_id(payload))
    if staff is None:
        raise UnauthorizedError("Staff not found")
    return staff


async def require_customer(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Customer session, resolved to the current user row."""
    payload = _require_role(request, sessions, Role.CUSTOMER)
    user = await db.get(User, _row_id(payload))
    if user is None:
        raise UnauthorizedError("User not found")
    return user


# =============================================================================
# Optional Auth Dependencies
# =============================================================================

async def get_optional_admin(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
) -> Optional[SessionPayload]:
    return sessions.from_request(request, Role.ADMIN)


async def get_optional_staff(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    db: AsyncSession = Depends(get_db),
) -> Optional[Staff]:
    payload = sessions.from_request(request, Role.STAFF)
    if payload is None or not payload.id.isdigit():
        return None
    return await db.get(Staff, int(payload.id))


async def get_optional_customer(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    payload = sessions.from_request(request, Role.CUSTOMER)
    if payload is None or not payload.id.isdigit():
        return None
    return await db.get(User, int(payload.id))


# =============================================================================
# Combined Guards
# =============================================================================

@dataclass(frozen=True)
class AdminOrCustomer:
    """Either an admin session or a customer's user row."""
    admin: Optional[SessionPayload] = None
    customer: Optional[User] = None

    @property
    def is_admin(self) -> bool:
        return self.admin is not None


async def require_admin_or_customer(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    admin: Optional[SessionPayload] = Depends(get_optional_admin),
    customer: Optional[User] = Depends(get_optional_customer),
) -> AdminOrCustomer:
    if admin is None and customer is None:
        if sessions.resolve(request) is not None:
            raise ForbiddenError("Admin or customer access required")
        raise UnauthorizedError()
    return AdminOrCustomer(admin=admin, customer=customer)


@dataclass(frozen=True)
class AdminOrStaff:
    """Either an admin session or a staff member's row."""
    admin: Optional[SessionPayload] = None
    staff: Optional[Staff] = None

    @property
    def is_admin(self) -> bool:
        return self.admin is not None


async def require_admin_or_staff(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    admin: Optional[SessionPayload] = Depends(get_optional_admin),
    staff: Optional[Staff] = Depends(get_optional_staff),
) -> AdminOrStaff:
    if admin is None and staff is None:
        if sessions.resolve(request) is not None:
            raise ForbiddenError("Admin or staff access required")
        raise UnauthorizedError()
    return AdminOrStaff(admin=admin, staff=staff)
