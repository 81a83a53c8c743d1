"""External service integrations."""

from cleanbook.integrations.smtp_client import SMTPMailer, EmailDeliveryError
from cleanbook.integrations.google_oauth import GoogleOAuthClient, GoogleOAuthError, GoogleIdentity

__all__ = [
    "SMTPMailer",
    "EmailDeliveryError",
    "GoogleOAuthClient",
    "GoogleOAuthError",
    "GoogleIdentity",
]
