"""Structural validation and sanitization of submit-form request bodies.

Structural validation checks that the body has the required fields with the
right types; it is the only failure class that reaches the caller (as 400).
Sanitization trims and length-caps every string and re-stamps the timestamp
before any external call.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from intake.errors import SubmissionValidationError
from intake.logic.formatter import is_valid_email
from intake.models.submission import SubmissionPayload

NAME_MAX = 100
TAG_MAX = 50
EMAIL_MAX = 100
PHONE_MAX = 20
HANDLE_MAX = 100
ADDRESS_MAX = 500


def _non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _non_empty_string_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(isinstance(v, str) for v in value)


def validate_submission_body(body: Any) -> Dict[str, Any]:
    """Return the body when it is structurally valid, else raise.

    - `name`, `socialMediaHandle`: non-blank strings
    - `contactMethods`, `socialPlatforms`: non-empty lists of strings
    - `email` (when truthy): string of email shape
    - `phone`, `address` (when truthy): non-blank strings
    - `turnstileToken` (when present): string
    """
    if not isinstance(body, dict):
        raise SubmissionValidationError("payload must be an object")
    if not _non_blank_string(body.get("name")):
        raise SubmissionValidationError("name: required non-empty string")
    if not _non_blank_string(body.get("socialMediaHandle")):
        raise SubmissionValidationError("socialMediaHandle: required non-empty string")
    if not _non_empty_string_list(body.get("contactMethods")):
        raise SubmissionValidationError("contactMethods: required non-empty array of strings")
    if not _non_empty_string_list(body.get("socialPlatforms")):
        raise SubmissionValidationError("socialPlatforms: required non-empty array of strings")

    email = body.get("email")
    if email and (not isinstance(email, str) or not is_valid_email(email.strip())):
        raise SubmissionValidationError("email: invalid format")
    phone = body.get("phone")
    if phone and not _non_blank_string(phone):
        raise SubmissionValidationError("phone: must be a non-empty string")
    address = body.get("address")
    if address and not _non_blank_string(address):
        raise SubmissionValidationError("address: must be a non-empty string")
    token = body.get("turnstileToken")
    if token is not None and not isinstance(token, str):
        raise SubmissionValidationError("turnstileToken: must be a string")
    return body


def _cap(value: Any, limit: int) -> str:
    return str(value).strip()[:limit]


def _cap_optional(value: Any, limit: int) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return _cap(value, limit) or None


def sanitize_submission(body: Dict[str, Any], *, now: Optional[datetime] = None) -> SubmissionPayload:
    """Trim and cap every string field; the timestamp is always server time."""
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return SubmissionPayload(
        timestamp=stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        name=_cap(body["name"], NAME_MAX),
        contact_methods=[_cap(m, TAG_MAX) for m in body["contactMethods"]],
        email=_cap_optional(body.get("email"), EMAIL_MAX),
        phone=_cap_optional(body.get("phone"), PHONE_MAX),
        social_platforms=[_cap(p, TAG_MAX) for p in body["socialPlatforms"]],
        social_media_handle=_cap(body["socialMediaHandle"], HANDLE_MAX),
        address=_cap_optional(body.get("address"), ADDRESS_MAX),
    )


__all__ = [
    "validate_submission_body",
    "sanitize_submission",
    "NAME_MAX",
    "TAG_MAX",
    "EMAIL_MAX",
    "PHONE_MAX",
    "HANDLE_MAX",
    "ADDRESS_MAX",
]
