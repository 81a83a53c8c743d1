import time
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse
from unittest.mock import AsyncMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt
from sqlalchemy import select

from cleanbook.config import get_settings
from cleanbook.integrations.google_oauth import GoogleIdentity, GoogleOAuthClient, GoogleOAuthError
from cleanbook.models import ApprovalStatus, Staff, StaffStatus
from cleanbook.security import Role, get_session_manager

from conftest import make_staff

CLIENT_ID = "test-client-id.apps.googleusercontent.com"


def _rsa_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="module")
def signing_key():
    return _rsa_pem()


@pytest.fixture(scope="module")
def jwks(signing_key):
    public = jwk.construct(signing_key, "RS256").public_key().to_dict()
    public["kid"] = "key-1"
    return {"keys": [public]}


@pytest.fixture
def google_client(jwks):
    client = GoogleOAuthClient()
    client._jwks = jwks
    client._jwks_fetched_at = time.monotonic()
    return client


def id_token(signing_key, kid="key-1", **overrides) -> str:
    now = datetime.utcnow()
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "1234567890",
        "email": "Sam@Gmail.com",
        "email_verified": True,
        "name": "Sam Google",
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    claims.update(overrides)
    return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": kid} if kid else None)


# =============================================================================
# Client
# =============================================================================

def test_authorization_url_carries_state_and_scopes(google_client):
    url = urlparse(google_client.authorization_url("xyz"))
    params = parse_qs(url.query)

    assert url.netloc == "accounts.google.com"
    assert params["state"] == ["xyz"]
    assert params["client_id"] == [CLIENT_ID]
    assert params["scope"] == ["openid email profile"]
    assert params["redirect_uri"] == ["http://test/api/auth/google/callback"]


async def test_valid_id_token(google_client, signing_key):
    claims = await google_client.verify_id_token(id_token(signing_key))
    assert claims["sub"] == "1234567890"


@pytest.mark.parametrize("overrides", [
    {"aud": "someone-else.apps.googleusercontent.com"},
    {"iss": "https://evil.example.com"},
    {"exp": datetime.utcnow() - timedelta(minutes=5)},
])
async def test_rejects_wrong_audience_issuer_or_expiry(google_client, signing_key, overrides):
    with pytest.raises(GoogleOAuthError):
        await google_client.verify_id_token(id_token(signing_key, **overrides))


async def test_rejects_token_signed_by_another_key(google_client):
    forged = id_token(_rsa_pem())
    with pytest.raises(GoogleOAuthError):
        await google_client.verify_id_token(forged)


async def test_unknown_key_refreshes_jwks_once(google_client, signing_key, jwks, monkeypatch):
    download = AsyncMock(return_value=jwks)
    monkeypatch.setattr(google_client, "_download_jwks", download)

    with pytest.raises(GoogleOAuthError, match="unknown key"):
        await google_client.verify_id_token(id_token(signing_key, kid="rotated"))

    assert download.await_count == 1


async def test_token_without_key_id_is_rejected(google_client, signing_key, jwks, monkeypatch):
    download = AsyncMock(return_value=jwks)
    monkeypatch.setattr(google_client, "_download_jwks", download)

    with pytest.raises(GoogleOAuthError, match="no key id"):
        await google_client.verify_id_token(id_token(signing_key, kid=None))

    assert download.await_count == 0


async def test_malformed_token(google_client):
    with pytest.raises(GoogleOAuthError, match="Malformed"):
        await google_client.verify_id_token("not-a-token")


async def test_authenticate_returns_normalized_identity(google_client, signing_key, monkeypatch):
    monkeypatch.setattr(google_client, "exchange_code", AsyncMock(return_value={"id_token": id_token(signing_key)}))

    identity = await google_client.authenticate("auth-code")

    assert identity == GoogleIdentity(
        subject="1234567890", email="sam@gmail.com", name="Sam Google", email_verified=True
    )


# =============================================================================
# Callback Route
# =============================================================================

async def start_flow(client) -> str:
    response = await client.get("/api/auth/google")
    assert response.status_code == 302
    assert response.headers["location"].startswith("https://accounts.google.com/")
    return response.cookies["oauth_state"]


async def callback(client, state, code="auth-code"):
    return await client.get("/api/auth/google/callback", params={"code": code, "state": state})


async def test_callback_rejects_mismatched_state(client, google):
    await start_flow(client)

    response = await callback(client, state="forged")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid OAuth state"
    assert google.codes == []


async def test_callback_reports_google_errors(client, google):
    google.error = GoogleOAuthError("Token error: invalid_grant")
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.status_code == 400
    assert response.json()["error"] == "Token error: invalid_grant"


async def test_callback_requires_verified_google_email(client, google):
    google.identity = GoogleIdentity(subject="1", email="x@gmail.com", name="X", email_verified=False)
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.status_code == 400


async def test_admin_email_gets_admin_session(client, google):
    google.identity = GoogleIdentity(
        subject="1", email=get_settings().ADMIN_EMAIL, name="Admin", email_verified=True
    )
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.status_code == 302
    assert response.headers["location"] == "http://app.test/admin"
    token = response.cookies.get("adminToken")
    assert get_session_manager().verify(Role.ADMIN, token) is not None


async def test_new_google_user_is_sent_to_complete_profile(client, db, google):
    google.identity = GoogleIdentity(subject="1", email="new@gmail.com", name="New Person", email_verified=True)
    state = await start_flow(client)

    response = await callback(client, state)

    staff = await db.scalar(select(Staff).where(Staff.email == "new@gmail.com"))
    assert staff.email_verified is True
    assert staff.approval_status == ApprovalStatus.PENDING_INFO
    assert staff.password_hash is None
    assert response.status_code == 302
    assert response.headers["location"] == f"http://app.test/staff/complete-profile?staffId={staff.id}"
    assert "staffToken" not in response.cookies


@pytest.mark.parametrize("approval", [ApprovalStatus.PENDING_APPROVAL, ApprovalStatus.REJECTED])
async def test_waiting_applicant_is_sent_to_pending_page(client, db, google, approval):
    await make_staff(db, email="sam@gmail.com", approval_status=approval)
    google.identity = GoogleIdentity(subject="1", email="sam@gmail.com", name="Sam", email_verified=True)
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.headers["location"] == f"http://app.test/staff/pending-approval?status={approval.value}"


async def test_inactive_staff_is_sent_to_login_with_error(client, db, google):
    await make_staff(db, email="sam@gmail.com", status=StaffStatus.INACTIVE)
    google.identity = GoogleIdentity(subject="1", email="sam@gmail.com", name="Sam", email_verified=True)
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.headers["location"] == "http://app.test/staff/login?error=account_inactive"


async def test_approved_staff_lands_on_dashboard(client, db, google):
    staff = await make_staff(db, email="sam@gmail.com", email_verified=False, verified_at=None)
    google.identity = GoogleIdentity(subject="1", email="sam@gmail.com", name="Sam", email_verified=True)
    state = await start_flow(client)

    response = await callback(client, state)

    assert response.headers["location"] == "http://app.test/staff/dashboard"
    token = response.cookies.get("staffToken")
    assert get_session_manager().verify(Role.STAFF, token).id == str(staff.id)
    assert google.codes == ["auth-code"]

    # Google vouches for the address
    await db.refresh(staff)
    assert staff.email_verified is True
