import os

# Settings are read once and cached, so the environment must be in place
# before anything from cleanbook is imported.
os.environ.update({
    "JWT_SECRET": "test-secret",
    "ADMIN_EMAIL": "admin@cleanoo.nl",
    "ADMIN_PASSWORD": "admin-password",
    "ADMIN_NOTIFICATION_EMAIL": "alerts@cleanoo.nl",
    "BCRYPT_ROUNDS": "4",
    "DATABASE_URL": "sqlite+aiosqlite://",
    "SMTP_HOST": "",
    "GOOGLE_CLIENT_ID": "test-client-id.apps.googleusercontent.com",
    "GOOGLE_CLIENT_SECRET": "test-client-secret",
    "GOOGLE_REDIRECT_URI": "http://test/api/auth/google/callback",
    "APP_URL": "http://app.test",
    "NODE_ENV": "test",
    "LOG_LEVEL": "WARNING",
})

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from cleanbook.api.deps import get_google_client, get_mailer
from cleanbook.database import Base, build_engine, build_session_factory, get_db
from cleanbook.integrations.google_oauth import GoogleIdentity
from cleanbook.integrations.smtp_client import EmailDeliveryError
from cleanbook.main import create_app
from cleanbook.models import (
    ApprovalStatus,
    Booking,
    BookingStatus,
    Staff,
    StaffRole,
    StaffStatus,
    Team,
    TeamMember,
    TeamRole,
    User,
)
from cleanbook.security import ADMIN_ID, ADMIN_NAME, Role, get_session_manager, hash_password

PHONE = "+31612345678"
STAFF_PASSWORD = "staff-password"
CUSTOMER_PASSWORD = "customer-password"


# =============================================================================
# Fakes
# =============================================================================

@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


class FakeMailer:
    """Records messages; ``fail`` makes every send raise like a dead SMTP server."""

    def __init__(self):
        self.sent: List[SentEmail] = []
        self.fail = False

    async def send(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise EmailDeliveryError("SMTP error: connection refused")
        self.sent.append(SentEmail(to, subject, html))

    def to(self, address: str) -> List[SentEmail]:
        return [m for m in self.sent if m.to == address]


class FakeGoogleClient:
    def __init__(self):
        self.identity: Optional[GoogleIdentity] = None
        self.error: Optional[Exception] = None
        self.codes: List[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    async def authenticate(self, code: str) -> GoogleIdentity:
        self.codes.append(code)
        if self.error:
            raise self.error
        return self.identity


# =============================================================================
# Database and app
# =============================================================================

@pytest_asyncio.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    """A session for arranging and inspecting data outside the app."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def google():
    return FakeGoogleClient()


@pytest.fixture
def app(session_factory, mailer, google):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_google_client] = lambda: google
    return app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client


# =============================================================================
# Sessions
# =============================================================================

def auth_headers(role: Role, id, email: str, name: str = "Test") -> dict:
    token = get_session_manager().issue(role, id=id, email=email, name=name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    from cleanbook.config import get_settings
    return auth_headers(Role.ADMIN, ADMIN_ID, get_settings().ADMIN_EMAIL, ADMIN_NAME)


def staff_headers(staff: Staff) -> dict:
    return auth_headers(Role.STAFF, staff.id, staff.email, staff.name)


def customer_headers(user: User) -> dict:
    return auth_headers(Role.CUSTOMER, user.id, user.email, user.name)


# =============================================================================
# Factories
# =============================================================================

async def make_staff(db, email: str = "cleaner@cleanoo.nl", **overrides) -> Staff:
    values = dict(
        name="Sam Cleaner",
        email=email,
        phone=PHONE,
        address="Damrak 1, Amsterdam",
        password_hash=hash_password(STAFF_PASSWORD),
        role=StaffRole.CLEANER,
        status=StaffStatus.ACTIVE,
        approval_status=ApprovalStatus.APPROVED,
        email_verified=True,
        verified_at=datetime.utcnow(),
    )
    values.update(overrides)
    staff = Staff(**values)
    db.add(staff)
    await db.commit()
    await db.refresh(staff)
    return staff


async def make_user(db, email: str = "customer@example.com", **overrides) -> User:
    values = dict(
        name="Casey Customer",
        email=email,
        phone=PHONE,
        address="Coolsingel 40, Rotterdam",
        password_hash=hash_password(CUSTOMER_PASSWORD),
        email_verified=True,
    )
    values.update(overrides)
    user = User(**values)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_booking(db, email: str = "customer@example.com", **overrides) -> Booking:
    values = dict(
        name="Casey Customer",
        email=email,
        phone=PHONE,
        address="Coolsingel 40, Rotterdam",
        service_type="Home Cleaning",
        preferred_date=date(2026, 11, 2),
        preferred_time="Morning (8AM-12PM)",
        status=BookingStatus.CONFIRMED,
    )
    values.update(overrides)
    booking = Booking(**values)
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    return booking


async def make_team(db, name: str = "Team North", members=(), **overrides) -> Team:
    team = Team(name=name, **overrides)
    db.add(team)
    await db.flush()
    for staff in members:
        db.add(TeamMember(team_id=team.id, staff_id=staff.id, role_in_team=TeamRole.MEMBER))
    await db.commit()
    await db.refresh(team)
    return team


def booking_payload(**overrides) -> dict:
    payload = {
        "name": "Casey Customer",
        "email": "Customer@Example.com",
        "phone": PHONE,
        "address": "Coolsingel 40, Rotterdam",
        "serviceType": "Home Cleaning",
        "preferredDate": "2026-11-02",
        "preferredTime": "Morning (8AM-12PM)",
    }
    payload.update(overrides)
    return payload
