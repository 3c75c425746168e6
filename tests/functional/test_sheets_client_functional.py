"""Functional tests for the spreadsheet append client and its factory."""

from __future__ import annotations

import logging

import pytest

from conftest import FakeTransport, RecordingSleep
from intake.config import SheetsConfig
from intake.errors import ServiceInitializationError, SheetsAppendError
from intake.logic.sheets_client import SheetsApiError, SheetsAppendClient, create_sheets_client_from_config
from intake.logic.submission_log import SubmissionLogger
from intake.models.submission import SubmissionPayload


@pytest.fixture
def payload() -> SubmissionPayload:
    return SubmissionPayload(
        timestamp="2024-03-05T14:07:09.123Z",
        name="Jane Doe",
        contact_methods=["email"],
        email="jane@example.com",
        social_platforms=["instagram"],
        social_media_handle="@jane",
    )


def _client(transport: FakeTransport, sleep: RecordingSleep) -> SheetsAppendClient:
    return SheetsAppendClient(transport, SubmissionLogger(), sleep=sleep)


def test_append_sends_one_row(payload, sleep) -> None:
    transport = FakeTransport()

    _client(transport, sleep).append(payload, "sub_1")

    assert transport.rows == [
        ["3/5/2024, 2:07:09 PM", "Jane Doe", "email", "jane@example.com", "", "instagram", "@jane", ""]
    ]
    assert sleep.calls == []


def test_two_network_failures_then_success(payload, sleep, caplog_debug, records) -> None:
    transport = FakeTransport([SheetsApiError(None, "Network error"), TimeoutError("socket timed out"), {}])

    _client(transport, sleep).append(payload, "sub_1")

    assert len(transport.rows) == 3
    assert sleep.calls == [1.0, 2.0]
    assert records(caplog_debug, "manual_recovery") == []


def test_permission_error_is_not_retried(payload, sleep, caplog_debug, records) -> None:
    transport = FakeTransport([SheetsApiError(403, "The caller does not have permission")])

    with pytest.raises(SheetsAppendError) as exc_info:
        _client(transport, sleep).append(payload, "sub_1")

    assert len(transport.rows) == 1
    assert sleep.calls == []
    assert exc_info.value.attempts == 1
    assert exc_info.value.category == "permission"
    assert isinstance(exc_info.value.last_error, SheetsApiError)
    assert len(records(caplog_debug, "manual_recovery")) == 1


def test_exhausted_retries_log_one_manual_recovery(payload, sleep, caplog_debug, records) -> None:
    transport = FakeTransport([SheetsApiError(503, "Service Unavailable")] * 3)

    with pytest.raises(SheetsAppendError) as exc_info:
        _client(transport, sleep).append(payload, "sub_9")

    assert len(transport.rows) == 3
    assert sleep.calls == [1.0, 2.0]
    assert exc_info.value.attempts == 3
    assert "after 3 attempt(s)" in str(exc_info.value)
    recovery = records(caplog_debug, "manual_recovery")
    assert len(recovery) == 1
    assert recovery[0].levelno == logging.CRITICAL
    assert recovery[0].submission_id == "sub_9"
    assert recovery[0].context["recovery_data"]["email"] == "jane@example.com"
    assert recovery[0].context["failed_operation"] == "append_form_data"


def test_rate_limit_backs_off_from_five_seconds(payload, sleep) -> None:
    transport = FakeTransport([SheetsApiError(429, "Rate Limit Exceeded"), {}])

    _client(transport, sleep).append(payload)

    assert sleep.calls == [5.0]


def test_validate_connection_never_raises(sleep) -> None:
    ok = _client(FakeTransport(), sleep)
    broken = _client(FakeTransport(title_error=SheetsApiError(404, "Requested entity was not found")), sleep)

    assert ok.validate_connection("sub_1") is True
    assert broken.validate_connection("sub_1") is False


def test_factory_lists_missing_variables() -> None:
    with pytest.raises(ServiceInitializationError) as exc_info:
        create_sheets_client_from_config(SheetsConfig(client_email="svc@example.com"))

    assert exc_info.value.missing == ["GOOGLE_SHEETS_PRIVATE_KEY", "GOOGLE_SHEETS_SPREADSHEET_ID"]
    assert "GOOGLE_SHEETS_PRIVATE_KEY" in str(exc_info.value)


def test_api_error_message_carries_status() -> None:
    assert str(SheetsApiError(403, "denied")) == "[403] denied"
    assert str(SheetsApiError(None, "denied")) == "denied"
