"""Spreadsheet append client with classified retries.

`SheetsAppendClient.append` converts a payload to a row and hands it to a
transport. Failures are classified; retryable categories back off and try
again up to the attempt limit, everything else stops at once. When the
policy stops on a failure a single manual-recovery record with the full
payload is logged before `SheetsAppendError` is raised.

`GspreadTransport` is the production transport (gspread + service-account
credentials). Tests pass any object with `append_row` and `fetch_title`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Protocol

import gspread
from google.oauth2.service_account import Credentials

from intake.config import SheetsConfig
from intake.errors import ServiceInitializationError, SheetsAppendError
from intake.logic.error_classifier import ErrorClassifier, create_error_context
from intake.logic.formatter import to_row
from intake.logic.retry import RetryState
from intake.logic.submission_log import SubmissionLogger, new_submission_id
from intake.models.submission import SubmissionPayload

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
APPEND_OPERATION = "append_form_data"
ROW_RANGE = "A:H"

logger = logging.getLogger(__name__)


class SheetsTransport(Protocol):
    def append_row(self, values: list[str]) -> dict[str, Any]: ...

    def fetch_title(self) -> str: ...


class SheetsApiError(Exception):
    """HTTP-level error from the Sheets API, message prefixed with the status code."""

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(f"[{status}] {message}" if status else message)
        self.status = status


def _api_error(exc: gspread.exceptions.APIError) -> SheetsApiError:
    status = getattr(exc, "code", None)
    response = getattr(exc, "response", None)
    # gspread reports code -1 when the error body is not JSON
    if (not isinstance(status, int) or status <= 0) and response is not None:
        status = getattr(response, "status_code", None)
    message = str(exc)
    if response is not None:
        try:
            message = response.json().get("error", {}).get("message") or message
        except ValueError:
            pass
    return SheetsApiError(status, message)


class GspreadTransport:
    """Service-account authenticated spreadsheet handle opened on first use."""

    def __init__(self, config: SheetsConfig) -> None:
        self.config = config
        info = {
            "type": "service_account",
            "client_email": config.client_email,
            "private_key": config.private_key,
            "token_uri": TOKEN_URI,
        }
        try:
            credentials = Credentials.from_service_account_info(info, scopes=SCOPES)
        except (ValueError, KeyError) as exc:
            raise ServiceInitializationError(f"Failed to initialize Google Sheets client: {exc}") from exc
        self._client = gspread.authorize(credentials)
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheet: Optional[gspread.Worksheet] = None

    def _open(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            self._spreadsheet = self._client.open_by_key(self.config.spreadsheet_id)
        return self._spreadsheet

    def _worksheet_handle(self) -> gspread.Worksheet:
        if self._worksheet is None:
            self._worksheet = self._open().worksheet(self.config.sheet_name)
        return self._worksheet

    def append_row(self, values: list[str]) -> dict[str, Any]:
        try:
            worksheet = self._worksheet_handle()
            return worksheet.append_row(
                values,
                value_input_option="RAW",
                insert_data_option="INSERT_ROWS",
                table_range=ROW_RANGE,
            ) or {}
        except gspread.exceptions.APIError as exc:
            raise _api_error(exc) from exc

    def fetch_title(self) -> str:
        try:
            meta = self._open().fetch_sheet_metadata({"fields": "properties.title"})
        except gspread.exceptions.APIError as exc:
            raise _api_error(exc) from exc
        return str(meta.get("properties", {}).get("title", ""))


class SheetsAppendClient:
    def __init__(
        self,
        transport: SheetsTransport,
        submission_logger: Optional[SubmissionLogger] = None,
        *,
        classifier: Optional[ErrorClassifier] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = 3,
    ) -> None:
        self.transport = transport
        self.log = submission_logger or SubmissionLogger()
        self.classifier = classifier or ErrorClassifier(self.log, max_attempts=max_attempts)
        self.sleep = sleep
        self.max_attempts = max_attempts

    def validate_connection(self, submission_id: Optional[str] = None) -> bool:
        """Best-effort access check; never raises."""
        started = time.monotonic()
        try:
            title = self.transport.fetch_title()
        except Exception as exc:
            self.log.warning(
                "Google Sheets connection validation failed",
                operation="connection_validation",
                submission_id=submission_id,
                error=exc,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            return False
        self.log.info(
            "Google Sheets connection validation successful",
            operation="connection_validation",
            submission_id=submission_id,
            spreadsheet_title=title,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return True

    def append(self, payload: SubmissionPayload, submission_id: Optional[str] = None) -> None:
        submission_id = submission_id or new_submission_id()
        started = time.monotonic()
        state = RetryState(
            self.max_attempts,
            delay_fn=self.classifier.next_delay,
            retryable_fn=self.classifier.is_retryable,
        )
        self.log.submission_started(submission_id, payload)

        while not state.done:
            attempt = state.begin_attempt()
            self.log.debug(
                f"Starting append attempt {attempt}/{self.max_attempts}",
                operation=APPEND_OPERATION,
                submission_id=submission_id,
                attempt=attempt,
            )
            try:
                response = self.transport.append_row(to_row(payload).as_values())
            except Exception as exc:
                result = self.classifier.handle_error(
                    exc, create_error_context(submission_id, APPEND_OPERATION, payload, attempt)
                )
                decision = state.record_failure(exc, result.category)
                self.log.error(
                    "Google Sheets append failed",
                    operation="google_sheets",
                    submission_id=submission_id,
                    error=exc,
                    attempt=attempt,
                    will_retry=decision.retry,
                )
                if decision.retry and decision.delay:
                    self.log.debug(
                        f"Waiting {decision.delay}s before retry",
                        operation="retry_delay",
                        submission_id=submission_id,
                        attempt=attempt,
                    )
                    self.sleep(decision.delay)
                continue

            state.record_success()
            updates = (response or {}).get("updates", {}) if isinstance(response, dict) else {}
            self.log.info(
                "Google Sheets append successful",
                operation="google_sheets",
                submission_id=submission_id,
                attempt=attempt,
                updated_range=updates.get("updatedRange"),
                updated_rows=updates.get("updatedRows"),
            )
            self.log.submission_succeeded(submission_id, payload, int((time.monotonic() - started) * 1000))
            return

        last_error = state.last_error
        self.log.manual_recovery(submission_id, payload, last_error, APPEND_OPERATION)
        self.log.submission_failed(submission_id, last_error or RuntimeError("unknown error"), payload, attempt_number=state.attempt)
        category = state.last_category.value if state.last_category is not None else None
        raise SheetsAppendError(
            f"Failed to append data to Google Sheets after {state.attempt} attempt(s). Last error: {last_error}",
            last_error=last_error,
            category=category,
            attempts=state.attempt,
        )


def create_sheets_client_from_config(
    config: SheetsConfig,
    submission_logger: Optional[SubmissionLogger] = None,
    *,
    max_attempts: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> SheetsAppendClient:
    """Build the production client; raises ServiceInitializationError when unconfigured."""
    missing = config.missing()
    if missing:
        raise ServiceInitializationError(
            f"Missing required environment variables: {', '.join(missing)} must be set",
            missing=missing,
        )
    transport = GspreadTransport(config)
    logger.info(
        "sheets_client.created",
        extra={"client_email": config.client_email, "spreadsheet_id": config.spreadsheet_id, "sheet_name": config.sheet_name},
    )
    return SheetsAppendClient(transport, submission_logger, sleep=sleep, max_attempts=max_attempts)


__all__ = [
    "SCOPES",
    "ROW_RANGE",
    "SheetsTransport",
    "SheetsApiError",
    "GspreadTransport",
    "SheetsAppendClient",
    "create_sheets_client_from_config",
]
