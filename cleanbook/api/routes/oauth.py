"""Google sign-in for the admin and staff."""

import secrets
from typing import Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.api.deps import get_db, get_google_client, get_sessions
from cleanbook.config import get_settings
from cleanbook.errors import BadRequestError, ForbiddenError
from cleanbook.integrations.google_oauth import GoogleOAuthClient, GoogleOAuthError
from cleanbook.models.staff import ApprovalStatus
from cleanbook.security import ADMIN_ID, ADMIN_NAME, Role, SessionManager
from cleanbook.services.email_service import app_link
from cleanbook.services.staff_service import StaffService, check_login_gate

settings = get_settings()
logger = structlog.get_logger(__name__)
router = APIRouter()

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 600  # 10 minutes


def remediation_url(error: ForbiddenError) -> str:
    """Where a staff member who fails the login gate is sent."""
    code = error.extra.get("code")
    if code == ApprovalStatus.PENDING_INFO.value:
        return app_link(f"/staff/complete-profile?{urlencode({'staffId': error.extra.get('staffId')})}")
    if code in (ApprovalStatus.PENDING_APPROVAL.value, ApprovalStatus.REJECTED.value):
        return app_link(f"/staff/pending-approval?{urlencode({'status': code})}")
    if code == "email_not_verified":
        return app_link("/staff/verify-email")
    return app_link(f"/staff/login?{urlencode({'error': code or 'access_denied'})}")


@router.get("/google")
async def google_login(google: GoogleOAuthClient = Depends(get_google_client)):
    """Redirect to Google's consent screen."""
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(google.authorization_url(state), status_code=302)
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=STATE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    google: GoogleOAuthClient = Depends(get_google_client),
    sessions: SessionManager = Depends(get_sessions),
):
    """Finish the flow: admin email gets the admin session, anyone else is staff."""
    expected_state = request.cookies.get(STATE_COOKIE)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise BadRequestError("Invalid OAuth state")
    if not code:
        raise BadRequestError("Missing authorization code")

    try:
        identity = await google.authenticate(code)
    except GoogleOAuthError as e:
        raise BadRequestError(str(e))
    if not identity.email_verified:
        raise BadRequestError("Google account email is not verified")

    if settings.ADMIN_EMAIL and identity.email == settings.ADMIN_EMAIL.strip().lower():
        response = RedirectResponse(app_link("/admin"), status_code=302)
        sessions.start_session(response, Role.ADMIN, id=ADMIN_ID, email=settings.ADMIN_EMAIL, name=ADMIN_NAME)
        logger.info("google_login", role=Role.ADMIN.value)
    else:
        staff = await StaffService(db).upsert_from_google(identity.email, identity.name)
        try:
            check_login_gate(staff)
        except ForbiddenError as e:
            logger.info("google_login_gated", staff_id=staff.id, code=e.extra.get("code"))
            response = RedirectResponse(remediation_url(e), status_code=302)
        else:
            response = RedirectResponse(app_link("/staff/dashboard"), status_code=302)
            sessions.start_session(response, Role.STAFF, id=staff.id, email=staff.email, name=staff.name)
            logger.info("google_login", role=Role.STAFF.value, staff_id=staff.id)

    response.delete_cookie(STATE_COOKIE, path="/")
    return response
