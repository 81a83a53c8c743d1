"""Google OAuth 2.0 integration: authorization URL, code exchange, ID token verification."""

import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog
from jose import JWTError, jwt
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from cleanbook.config import Settings, get_settings

logger = structlog.get_logger(__name__)

AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleOAuthError(Exception):
    """Code exchange or ID token verification failed."""


@dataclass(frozen=True)
class GoogleIdentity:
    """Verified claims of a Google ID token."""
    subject: str
    email: str
    name: str
    email_verified: bool


class GoogleOAuthClient:
    """Client for Google's OAuth endpoints."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.client_id = self.settings.GOOGLE_CLIENT_ID
        self.client_secret = self.settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = self.settings.GOOGLE_REDIRECT_URI
        self.timeout = self.settings.GOOGLE_HTTP_TIMEOUT_SECONDS
        self._jwks: Optional[dict] = None
        self._jwks_fetched_at = 0.0

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "offline",
            "include_granted_scopes": "true",
            "state": state,
        }
        return f"{AUTHORIZATION_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict:
        """Trade an authorization code for tokens."""
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(TOKEN_URL, data=data)

        try:
            tokens = response.json()
        except ValueError:
            tokens = {}
        if response.status_code != 200 or "id_token" not in tokens:
            detail = tokens.get("error_description") or tokens.get("error") or response.text
            raise GoogleOAuthError(f"Token error: {detail}")
        return tokens

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _download_jwks(self) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(JWKS_URL)
            response.raise_for_status()
            return response.json()

    async def fetch_jwks(self, force: bool = False) -> dict:
        """Google's signing keys, cached in-process."""
        age = time.monotonic() - self._jwks_fetched_at
        if force or self._jwks is None or age > self.settings.GOOGLE_JWKS_CACHE_SECONDS:
            self._jwks = await self._download_jwks()
            self._jwks_fetched_at = time.monotonic()
        return self._jwks

    async def verify_id_token(self, id_token: str, access_token: Optional[str] = None) -> dict:
        """Verify signature, issuer, audience and expiry; return the claims."""
        try:
            header = jwt.get_unverified_header(id_token)
        except JWTError as e:
            raise GoogleOAuthError(f"Malformed ID token: {e}")

        kid = header.get("kid")
        if not kid:
            raise GoogleOAuthError("ID token has no key id")
        jwks = await self.fetch_jwks()
        key = _find_key(jwks, kid)
        if key is None:
            # Keys rotate; refresh once before giving up
            jwks = await self.fetch_jwks(force=True)
            key = _find_key(jwks, kid)
        if key is None:
            raise GoogleOAuthError("ID token signed with an unknown key")

        try:
            claims = jwt.decode(
                id_token,
                key,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=GOOGLE_ISSUERS,
                access_token=access_token,
            )
        except JWTError as e:
            logger.warning("google_id_token_rejected", error=str(e))
            raise GoogleOAuthError(f"Invalid ID token: {e}")
        return claims

    async def authenticate(self, code: str) -> GoogleIdentity:
        """Run the callback half of the flow and return the verified identity."""
        tokens = await self.exchange_code(code)
        claims = await self.verify_id_token(tokens["id_token"], tokens.get("access_token"))

        email = (claims.get("email") or "").strip().lower()
        if not email:
            raise GoogleOAuthError("ID token has no email claim")
        return GoogleIdentity(
            subject=str(claims.get("sub", "")),
            email=email,
            name=claims.get("name") or email.split("@")[0],
            email_verified=bool(claims.get("email_verified")),
        )


def _find_key(jwks: dict, kid: str) -> Optional[dict]:
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key
    return None
