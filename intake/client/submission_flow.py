"""Client submission flow.

Validates and formats the collected answers, POSTs them to the submit
endpoint and then completes the form. Once validation has passed the form is
completed and the draft cleared whatever the outcome, even when the request
failed; failures are only visible in the logs and in
`SubmissionOutcome.status`. A validation failure sends nothing, keeps the
draft and leaves the form open.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from intake.client.draft_store import DraftStore
from intake.logic.formatter import format_submission, validate_answers
from intake.logic.submission_log import SubmissionLogger, new_submission_id
from intake.models.submission import FormAnswers, SubmissionPayload

DEFAULT_ENDPOINT = "/api/submit-form"
DEFAULT_TIMEOUT_SECONDS = 10.0
OPERATION = "form_submission"

VALIDATION_FAILED = "validation_failed"
SENT = "sent"
SERVER_ERROR = "server_error"
TIMEOUT = "timeout"
NETWORK_ERROR = "network_error"
UNKNOWN_ERROR = "unknown_error"


class SubmissionRejected(Exception):
    """The endpoint answered 2xx with `success: false`."""


@dataclass
class SubmissionOutcome:
    status: str
    submission_id: str
    completed: bool
    payload: Optional[SubmissionPayload] = None
    response: Optional[dict[str, Any]] = None
    duration_ms: int = 0

    @property
    def delivered(self) -> bool:
        return self.status == SENT


class SubmissionFlow:
    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        draft_store: Optional[DraftStore] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        submission_logger: Optional[SubmissionLogger] = None,
    ) -> None:
        self.endpoint = endpoint
        self.draft_store = draft_store
        self.http_client = http_client
        self.timeout = timeout
        self.log = submission_logger or SubmissionLogger(logging.getLogger(__name__))

    def _post(self, body: dict[str, Any]) -> httpx.Response:
        if self.http_client is not None:
            return self.http_client.post(self.endpoint, json=body, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.endpoint, json=body)

    def _send(self, payload: SubmissionPayload) -> dict[str, Any]:
        response = self._post(payload.to_wire())
        response.raise_for_status()
        result = response.json()
        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("message") if isinstance(result, dict) else None
            raise SubmissionRejected(message or "Submission failed")
        return result

    def submit(self, answers: FormAnswers) -> SubmissionOutcome:
        sid = new_submission_id("client")
        started = time.monotonic()

        if not validate_answers(answers):
            self.log.error(
                "Form validation failed",
                operation="form_validation",
                submission_id=sid,
                answers=answers,
                suggestion="Check required fields and data format",
            )
            return SubmissionOutcome(VALIDATION_FAILED, sid, completed=False)

        payload = format_submission(answers)
        self.log.info(
            "Starting form submission",
            operation=OPERATION,
            submission_id=sid,
            name=payload.name,
            contact_methods=payload.contact_methods,
            social_platforms=payload.social_platforms,
            has_email=bool(payload.email),
            has_phone=bool(payload.phone),
        )

        status = SENT
        result: Optional[dict[str, Any]] = None
        try:
            result = self._send(payload)
            self.log.info(
                "Form submitted successfully",
                operation=OPERATION,
                submission_id=sid,
                name=payload.name,
                timestamp=payload.timestamp,
                duration_ms=self._elapsed_ms(started),
                response_message=result.get("message"),
            )
        except httpx.TimeoutException as exc:
            status = TIMEOUT
            self._log_failure("Form submission timeout", sid, payload, exc, started,
                              "Check network connectivity and API performance")
        except (httpx.HTTPStatusError, SubmissionRejected) as exc:
            status = SERVER_ERROR
            self._log_failure("Form submission server error", sid, payload, exc, started,
                              "Check the submit endpoint logs for this submission")
        except httpx.TransportError as exc:
            status = NETWORK_ERROR
            self._log_failure("Form submission network error", sid, payload, exc, started,
                              "Check network connectivity and API endpoint")
        except Exception as exc:
            status = UNKNOWN_ERROR
            self._log_failure("Form submission unknown error", sid, payload, exc, started,
                              "Inspect the exception for additional details")
        finally:
            if self.draft_store is not None:
                self.draft_store.clear()

        duration_ms = self._elapsed_ms(started)
        self.log.info(
            "Form submission completed",
            operation=OPERATION,
            submission_id=sid,
            status=status,
            duration_ms=duration_ms,
        )
        return SubmissionOutcome(status, sid, completed=True, payload=payload, response=result, duration_ms=duration_ms)

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

    def _log_failure(
        self,
        message: str,
        sid: str,
        payload: SubmissionPayload,
        exc: BaseException,
        started: float,
        suggestion: str,
    ) -> None:
        self.log.error(
            message,
            operation=OPERATION,
            submission_id=sid,
            error=exc,
            duration_ms=self._elapsed_ms(started),
            form_data=payload.model_dump(by_alias=True),
            suggestion=suggestion,
        )


__all__ = [
    "DEFAULT_ENDPOINT",
    "DEFAULT_TIMEOUT_SECONDS",
    "VALIDATION_FAILED",
    "SENT",
    "SERVER_ERROR",
    "TIMEOUT",
    "NETWORK_ERROR",
    "UNKNOWN_ERROR",
    "SubmissionRejected",
    "SubmissionOutcome",
    "SubmissionFlow",
]
