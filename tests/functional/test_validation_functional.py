"""Functional tests for structural validation and sanitization of request bodies."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from intake.errors import SubmissionValidationError
from intake.logic.validation import (
    ADDRESS_MAX,
    NAME_MAX,
    TAG_MAX,
    sanitize_submission,
    validate_submission_body,
)


def test_valid_body_passes(valid_body) -> None:
    assert validate_submission_body(valid_body) is valid_body


@pytest.mark.parametrize("body", [None, [], "text", 42])
def test_non_object_body_is_rejected(body) -> None:
    with pytest.raises(SubmissionValidationError):
        validate_submission_body(body)


@pytest.mark.parametrize(
    "field, value",
    [
        ("name", ""),
        ("name", "   "),
        ("name", 7),
        ("socialMediaHandle", None),
        ("contactMethods", []),
        ("contactMethods", "email"),
        ("contactMethods", ["email", 3]),
        ("socialPlatforms", []),
        ("email", "nope"),
        ("email", 12),
        ("phone", "   "),
        ("address", ["1 Main St"]),
        ("turnstileToken", 123),
    ],
)
def test_structural_failures(valid_body, field, value) -> None:
    valid_body[field] = value

    with pytest.raises(SubmissionValidationError):
        validate_submission_body(valid_body)


def test_falsy_optionals_are_ignored(valid_body) -> None:
    valid_body.update({"email": "", "phone": None, "address": ""})

    assert validate_submission_body(valid_body) is valid_body


def test_sanitize_trims_caps_and_restamps(valid_body) -> None:
    valid_body.update(
        {
            "name": "  " + "N" * 150,
            "contactMethods": [" email ", "x" * 80],
            "address": "A" * 600,
            "timestamp": "1999-01-01T00:00:00.000Z",
        }
    )
    now = datetime(2024, 3, 5, 14, 7, 9, 123000, tzinfo=timezone.utc)

    payload = sanitize_submission(valid_body, now=now)

    assert payload.name == "N" * NAME_MAX
    assert payload.contact_methods == ["email", "x" * TAG_MAX]
    assert len(payload.address) == ADDRESS_MAX
    assert payload.timestamp == "2024-03-05T14:07:09.123Z"


def test_sanitize_blank_optionals_become_none(valid_body) -> None:
    valid_body.update({"phone": "   ", "address": None})

    payload = sanitize_submission(valid_body)

    assert payload.phone is None
    assert payload.address is None
    assert payload.email == "jane@example.com"
