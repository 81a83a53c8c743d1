"""Password hashing and role-parameterised session tokens.

One implementation serves all three roles. Each role has its own cookie
name and token lifetime; tokens carry ``{id, email, role, name}`` and are
only accepted for the role they were minted for.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum as PyEnum
from functools import lru_cache
from typing import Dict, Optional

from fastapi import Request, Response
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from cleanbook.config import get_settings


# =============================================================================
# Password Utilities
# =============================================================================

@lru_cache()
def _pwd_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().BCRYPT_ROUNDS,
    )


def hash_password(password: str) -> str:
    """Hash a password for storing."""
    return _pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a stored password against a provided password."""
    if not hashed_password:
        return False
    try:
        return _pwd_context().verify(plain_password, hashed_password)
    except ValueError:
        # Malformed hash in storage
        return False


# =============================================================================
# Roles
# =============================================================================

class Role(str, PyEnum):
    """Session roles, listed in resolution precedence."""
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class RoleSessionConfig:
    cookie_name: str
    ttl: timedelta


ROLE_SESSIONS: Dict[Role, RoleSessionConfig] = {
    Role.ADMIN: RoleSessionConfig(cookie_name="adminToken", ttl=timedelta(hours=24)),
    Role.STAFF: RoleSessionConfig(cookie_name="staffToken", ttl=timedelta(days=7)),
    Role.CUSTOMER: RoleSessionConfig(cookie_name="userToken", ttl=timedelta(hours=24)),
}

RESOLUTION_ORDER = (Role.ADMIN, Role.STAFF, Role.CUSTOMER)

# The admin is configured, not stored; its sessions use a fixed identity
ADMIN_ID = "1"
ADMIN_NAME = "Admin"


class SessionPayload(BaseModel):
    """Claims carried by every session token."""
    id: str
    email: str
    role: Role
    name: str


@dataclass(frozen=True)
class ResolvedSession:
    role: Role
    payload: SessionPayload


# =============================================================================
# Session Manager
# =============================================================================

class SessionManager:
    """Issues, verifies and stores session tokens for any role."""

    def __init__(self, secret: str, algorithm: str = "HS256", secure_cookies: bool = False):
        self.secret = secret
        self.algorithm = algorithm
        self.secure_cookies = secure_cookies

    def issue(self, role: Role, id, email: str, name: str, now: Optional[datetime] = None) -> str:
        """Sign a token for ``role`` that expires after the role's TTL."""
        now = now or datetime.utcnow()
        claims = {
            "id": str(id),
            "email": email,
            "role": role.value,
            "name": name,
            "iat": now,
            "exp": now + ROLE_SESSIONS[role].ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, role: Role, token: Optional[str]) -> Optional[SessionPayload]:
        """Return the payload of a valid ``role`` token, or None for anything else."""
        if not token:
            return None
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
            payload = SessionPayload(
                id=claims["id"],
                email=claims["email"],
                role=claims["role"],
                name=claims.get("name") or "",
            )
        except (JWTError, KeyError, ValidationError):
            return None
        if payload.role != role:
            return None
        return payload

    def from_request(self, request: Request, role: Role) -> Optional[SessionPayload]:
        """Cookie first, then ``Authorization: Bearer``."""
        token = request.cookies.get(ROLE_SESSIONS[role].cookie_name)
        payload = self.verify(role, token)
        if payload is not None:
            return payload

        authorization = request.headers.get("Authorization", "")
        scheme, _, bearer = authorization.partition(" ")
        if scheme.lower() == "bearer" and bearer:
            return self.verify(role, bearer.strip())
        return None

    def resolve(self, request: Request) -> Optional[ResolvedSession]:
        """First authenticated role in admin > staff > customer order."""
        for role in RESOLUTION_ORDER:
            payload = self.from_request(request, role)
            if payload is not None:
                return ResolvedSession(role=role, payload=payload)
        return None

    def set_cookie(self, response: Response, role: Role, token: str) -> None:
        config = ROLE_SESSIONS[role]
        response.set_cookie(
            key=config.cookie_name,
            value=token,
            max_age=int(config.ttl.total_seconds()),
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure_cookies,
        )

    def clear_cookie(self, response: Response, role: Role) -> None:
        response.set_cookie(
            key=ROLE_SESSIONS[role].cookie_name,
            value="",
            max_age=0,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure_cookies,
        )

    def start_session(self, response: Response, role: Role, id, email: str, name: str) -> str:
        """Issue a token and set it as the role's cookie."""
        token = self.issue(role, id=id, email=email, name=name)
        self.set_cookie(response, role, token)
        return token


@lru_cache()
def get_session_manager() -> SessionManager:
    settings = get_settings()
    return SessionManager(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        secure_cookies=settings.is_production,
    )
