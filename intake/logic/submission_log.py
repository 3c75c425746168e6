"""Structured submission logging.

`SubmissionLogger` is passed explicitly into the handler and append client.
Every entry carries a severity, an operation name and the submission
correlation id; the JSON formatter configured in `intake.logging_setup`
renders the `extra` fields as top-level keys.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping, Optional

from intake.models.submission import SubmissionPayload

MANUAL_RECOVERY_OPERATION = "manual_recovery"
MANUAL_RECOVERY_INSTRUCTIONS = "Use recovery_data to manually add this submission to the spreadsheet"


def new_submission_id(prefix: str = "sub") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _payload_dict(payload: Any) -> dict[str, Any]:
    if isinstance(payload, SubmissionPayload):
        return payload.model_dump(by_alias=True)
    if isinstance(payload, Mapping):
        return dict(payload)
    return {}


def _error_dict(error: Optional[BaseException]) -> Optional[dict[str, str]]:
    if error is None:
        return None
    return {"name": type(error).__name__, "message": str(error)}


class SubmissionLogger:
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("intake.submission")

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def log(
        self,
        level: int,
        message: str,
        *,
        operation: Optional[str] = None,
        submission_id: Optional[str] = None,
        error: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        extra: dict[str, Any] = {
            "operation": operation,
            "submission_id": submission_id,
            "context": {k: v for k, v in context.items() if v is not None},
        }
        err = _error_dict(error)
        if err is not None:
            extra["error"] = err
        self._logger.log(level, message, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log(logging.ERROR, message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self.log(logging.CRITICAL, message, **kwargs)

    def submission_started(self, submission_id: str, payload: SubmissionPayload) -> None:
        self.info(
            "submission.started",
            operation="form_submission",
            submission_id=submission_id,
            name=payload.name,
            contact_methods=payload.contact_methods,
            social_platforms=payload.social_platforms,
            has_email=bool(payload.email),
            has_phone=bool(payload.phone),
            has_address=bool(payload.address),
        )

    def submission_succeeded(self, submission_id: str, payload: SubmissionPayload, duration_ms: int) -> None:
        self.info(
            "submission.completed",
            operation="form_submission",
            submission_id=submission_id,
            name=payload.name,
            timestamp=payload.timestamp,
            duration_ms=duration_ms,
        )

    def submission_failed(
        self,
        submission_id: str,
        error: BaseException,
        payload: Any,
        *,
        attempt_number: Optional[int] = None,
        will_retry: bool = False,
    ) -> None:
        self.error(
            "submission.failed",
            operation="form_submission",
            submission_id=submission_id,
            error=error,
            attempt_number=attempt_number,
            will_retry=will_retry,
            full_form_data=_payload_dict(payload),
        )

    def retry_attempt(
        self,
        submission_id: str,
        attempt_number: int,
        max_attempts: int,
        error: BaseException,
        delay_seconds: float,
    ) -> None:
        self.warning(
            f"Retry attempt {attempt_number}/{max_attempts}",
            operation="retry",
            submission_id=submission_id,
            attempt_number=attempt_number,
            max_attempts=max_attempts,
            next_retry_delay_s=delay_seconds,
            error_message=str(error),
        )

    def fallback_activated(self, reason: str, submission_id: str, **context: Any) -> None:
        self.warning(
            "Fallback mechanism activated",
            operation="fallback",
            submission_id=submission_id,
            reason=reason,
            **context,
        )

    def manual_recovery(
        self,
        submission_id: str,
        payload: Any,
        error: Optional[BaseException],
        operation: str,
    ) -> None:
        """Emit the record a human uses to re-enter a lost row by hand."""
        self.critical(
            "Manual data recovery required",
            operation=MANUAL_RECOVERY_OPERATION,
            submission_id=submission_id,
            error=error,
            failed_operation=operation,
            recovery_data=_payload_dict(payload),
            instructions=MANUAL_RECOVERY_INSTRUCTIONS,
        )


__all__ = [
    "SubmissionLogger",
    "new_submission_id",
    "MANUAL_RECOVERY_OPERATION",
    "MANUAL_RECOVERY_INSTRUCTIONS",
]
