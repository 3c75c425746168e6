"""Mapping of raw form answers to the canonical submission payload.

Pure functions only: `format_submission` never raises, `validate_answers`
returns a boolean and must pass before a formatted payload is trusted for
transmission, `to_row` flattens a payload for the spreadsheet. Formatting is lossy: the
email or phone of an unselected contact method is dropped.

Answers are keyed by question id (`name`, `contact_info`, `platform`,
`social_media_id`, `address`). Payload-shaped keys (`contactMethods`, `email`,
`phone`, `socialPlatforms`, `socialMediaHandle`) are accepted when the
question-id keys are absent.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from intake.models.submission import FormAnswers, SpreadsheetRow, SubmissionPayload

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGIT_RE = re.compile(r"\D")

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    digits = _NON_DIGIT_RE.sub("", phone)
    return PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [text for text in (_text(item) for item in value) if text]


def _contact(answers: Mapping[str, Any]) -> dict[str, Any]:
    """Return the contact answer as a plain dict with `methods`/`email`/`phone`."""
    raw = answers.get("contact_info")
    if raw is not None and hasattr(raw, "model_dump"):
        raw = raw.model_dump()
    if isinstance(raw, Mapping):
        return {"methods": raw.get("methods"), "email": raw.get("email"), "phone": raw.get("phone")}
    if "contact_info" in answers:
        return {"methods": None, "email": None, "phone": None}
    return {
        "methods": answers.get("contactMethods"),
        "email": answers.get("email"),
        "phone": answers.get("phone"),
    }


def _platforms(answers: Mapping[str, Any]) -> Any:
    if "platform" in answers:
        return answers.get("platform")
    return answers.get("socialPlatforms")


def _handle(answers: Mapping[str, Any]) -> Any:
    if "social_media_id" in answers:
        return answers.get("social_media_id")
    return answers.get("socialMediaHandle")


def format_submission(answers: FormAnswers, *, now: Optional[datetime] = None) -> SubmissionPayload:
    """Build a payload from raw answers; missing fields become empty values."""
    answers = answers or {}
    contact = _contact(answers)
    methods = _string_list(contact["methods"])
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    # A contact value is only carried for a selected method.
    return SubmissionPayload(
        timestamp=stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        name=_text(answers.get("name")),
        contact_methods=methods,
        email=_optional_text(contact["email"]) if "email" in methods else None,
        phone=_optional_text(contact["phone"]) if "phone" in methods else None,
        social_platforms=_string_list(_platforms(answers)),
        social_media_handle=_text(_handle(answers)),
        address=_optional_text(answers.get("address")),
    )


def validate_answers(answers: FormAnswers) -> bool:
    """Return True when the answers satisfy every required and cross-field rule."""
    if not isinstance(answers, Mapping):
        return False
    if not _text(answers.get("name")):
        return False

    contact = _contact(answers)
    methods = _string_list(contact["methods"])
    if not methods:
        return False
    if "email" in methods:
        email = _text(contact["email"])
        if not email or not is_valid_email(email):
            return False
    if "phone" in methods:
        phone = _text(contact["phone"])
        if not phone or not is_valid_phone(phone):
            return False

    if not _string_list(_platforms(answers)):
        return False

    if not _text(_handle(answers)):
        return False
    return True


def format_display_timestamp(iso_timestamp: str) -> str:
    """Render an ISO timestamp as `M/D/YYYY, h:mm:ss AM` (UTC).

    Unparseable input is returned unchanged so a row is never lost over its
    timestamp column.
    """
    try:
        parsed = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return str(iso_timestamp or "")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed.month}/{parsed.day}/{parsed.year}, {hour}:{parsed.minute:02d}:{parsed.second:02d} {meridiem}"


def to_row(payload: SubmissionPayload) -> SpreadsheetRow:
    return SpreadsheetRow(
        timestamp=format_display_timestamp(payload.timestamp),
        name=payload.name,
        contact_methods=", ".join(payload.contact_methods),
        email=payload.email or "",
        phone=payload.phone or "",
        social_platforms=", ".join(payload.social_platforms),
        social_media_handle=payload.social_media_handle,
        address=payload.address or "",
    )


__all__ = [
    "EMAIL_RE",
    "is_valid_email",
    "is_valid_phone",
    "format_submission",
    "validate_answers",
    "format_display_timestamp",
    "to_row",
]
