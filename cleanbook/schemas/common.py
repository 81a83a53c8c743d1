"""Shared schema helpers: the response envelope and field normalisers."""

from typing import Annotated, Any, Optional

import phonenumbers
from pydantic import AfterValidator, BeforeValidator, EmailStr

from cleanbook.config import get_settings


def ok(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    """Build a success envelope: ``{success, data?, message?, ...}``."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return body


def normalize_email(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """Validate and normalize a phone number to E.164."""
    if value is None:
        return None
    value = value.strip()
    try:
        parsed = phonenumbers.parse(value, get_settings().DEFAULT_PHONE_REGION)
    except phonenumbers.NumberParseException as e:
        raise ValueError(f"Invalid phone number: {e}")
    if not phonenumbers.is_possible_number(parsed):
        raise ValueError("Invalid phone number")
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


# Lowercased, trimmed email address
NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]

# Phone number normalized to E.164
PhoneNumber = Annotated[str, AfterValidator(normalize_phone)]
