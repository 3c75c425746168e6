"""Error classification, retryability and backoff for spreadsheet calls.

Classification is case-insensitive substring matching of the error message
(and the exception class name) against an ordered keyword table; the first
matching category wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from intake.logic.submission_log import SubmissionLogger
from intake.models.submission import SUCCESS_MESSAGE, SubmissionPayload


class ErrorCategory(str, Enum):
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    PERMISSION = "permission"
    QUOTA = "quota"
    SERVER = "server"
    UNKNOWN = "unknown"


# (category, message keywords, exception-name keywords); order matters
_KEYWORD_TABLE: tuple[tuple[ErrorCategory, tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ErrorCategory.AUTHENTICATION,
        ("unauthorized", "invalid_grant", "authentication", "invalid credentials"),
        ("auth", "refresherror"),
    ),
    (
        ErrorCategory.NETWORK,
        ("network", "timeout", "timed out", "connection", "enotfound", "econnreset"),
        ("network", "timeout", "connection"),
    ),
    (ErrorCategory.RATE_LIMIT, ("rate limit", "quota exceeded", "too many requests", "429"), ()),
    (ErrorCategory.VALIDATION, ("validation", "invalid data", "bad request", "400"), ()),
    (ErrorCategory.PERMISSION, ("permission", "forbidden", "access denied", "403"), ()),
    (ErrorCategory.QUOTA, ("quota", "limit exceeded", "usage limit"), ()),
    (
        ErrorCategory.SERVER,
        ("internal server error", "service unavailable", "500", "501", "502", "503", "504"),
        (),
    ),
)

RETRYABLE_CATEGORIES = frozenset(
    {ErrorCategory.NETWORK, ErrorCategory.RATE_LIMIT, ErrorCategory.SERVER, ErrorCategory.QUOTA}
)

# Categories that need a human; a fallback record is logged for them
_FALLBACK_CATEGORIES = frozenset(
    {
        ErrorCategory.AUTHENTICATION,
        ErrorCategory.PERMISSION,
        ErrorCategory.QUOTA,
        ErrorCategory.VALIDATION,
        ErrorCategory.UNKNOWN,
    }
)

_SUGGESTIONS: dict[ErrorCategory, str] = {
    ErrorCategory.AUTHENTICATION: "Check service account credentials and permissions",
    ErrorCategory.PERMISSION: "Share the spreadsheet with the service account email",
    ErrorCategory.QUOTA: "Retry during off-peak hours or increase quota",
    ErrorCategory.RATE_LIMIT: "Automatic retry with exponential backoff",
    ErrorCategory.NETWORK: "Check connectivity and Google Sheets API status",
    ErrorCategory.VALIDATION: "Review data formatting and validation rules",
    ErrorCategory.SERVER: "Remote service error; automatic retry",
    ErrorCategory.UNKNOWN: "Manual investigation required",
}

BASE_DELAY_SECONDS = 1.0
RATE_LIMIT_BASE_DELAY_SECONDS = 5.0
DEFAULT_MAX_ATTEMPTS = 3


def classify(error: Union[BaseException, str]) -> ErrorCategory:
    if isinstance(error, BaseException):
        message = str(error).lower()
        name = type(error).__name__.lower()
    else:
        message = str(error or "").lower()
        name = ""
    for category, words, name_words in _KEYWORD_TABLE:
        if any(w in message for w in words) or any(w in name for w in name_words):
            return category
    return ErrorCategory.UNKNOWN


def is_retryable(category: ErrorCategory) -> bool:
    return ErrorCategory(category) in RETRYABLE_CATEGORIES


def next_delay(attempt_number: int, category: ErrorCategory) -> float:
    """Exponential backoff in seconds: 1, 2, 4, ... (5, 10, 20, ... for rate limits)."""
    base = RATE_LIMIT_BASE_DELAY_SECONDS if category == ErrorCategory.RATE_LIMIT else BASE_DELAY_SECONDS
    return base * (2 ** (max(1, int(attempt_number)) - 1))


@dataclass
class ErrorContext:
    submission_id: str
    operation: str
    attempt_number: Optional[int] = None
    payload: Optional[Any] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def create_error_context(
    submission_id: str,
    operation: str,
    payload: Optional[Any] = None,
    attempt_number: Optional[int] = None,
) -> ErrorContext:
    return ErrorContext(
        submission_id=submission_id,
        operation=operation,
        attempt_number=attempt_number,
        payload=payload,
    )


@dataclass
class ErrorHandlingResult:
    category: ErrorCategory
    should_retry: bool
    retry_delay: Optional[float]
    fallback_activated: bool
    user_message: str = SUCCESS_MESSAGE


class ErrorClassifier:
    """Injectable facade over the classification functions.

    `handle_error` logs the failure with its category and recovery guidance
    and reports whether the caller should retry.
    """

    def __init__(
        self,
        submission_logger: Optional[SubmissionLogger] = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.log = submission_logger or SubmissionLogger()
        self.max_attempts = max_attempts

    def classify(self, error: Union[BaseException, str]) -> ErrorCategory:
        return classify(error)

    def is_retryable(self, category: ErrorCategory) -> bool:
        return is_retryable(category)

    def next_delay(self, attempt_number: int, category: ErrorCategory) -> float:
        return next_delay(attempt_number, category)

    def handle_error(self, error: BaseException, context: ErrorContext) -> ErrorHandlingResult:
        category = self.classify(error)
        retryable = self.is_retryable(category)
        attempt = context.attempt_number or 1
        should_retry = retryable and attempt < self.max_attempts
        delay = self.next_delay(attempt, category) if should_retry else None

        self.log.error(
            f"{category.value} error in {context.operation}",
            operation=context.operation,
            submission_id=context.submission_id,
            error=error,
            category=category.value,
            retryable=retryable,
            should_retry=should_retry,
            retry_delay_s=delay,
            attempt_number=attempt,
            max_attempts=self.max_attempts,
            suggestion=_SUGGESTIONS[category],
        )

        fallback = category in _FALLBACK_CATEGORIES
        if fallback:
            form_data: Any = None
            if category in (ErrorCategory.QUOTA, ErrorCategory.VALIDATION, ErrorCategory.UNKNOWN):
                payload = context.payload
                form_data = payload.model_dump(by_alias=True) if isinstance(payload, SubmissionPayload) else payload
            self.log.fallback_activated(
                f"{category.value} error",
                context.submission_id,
                failed_operation=context.operation,
                error_message=str(error),
                form_data=form_data,
            )

        if should_retry and delay is not None:
            self.log.retry_attempt(context.submission_id, attempt, self.max_attempts, error, delay)

        return ErrorHandlingResult(
            category=category,
            should_retry=should_retry,
            retry_delay=delay,
            fallback_activated=fallback,
        )


__all__ = [
    "ErrorCategory",
    "RETRYABLE_CATEGORIES",
    "BASE_DELAY_SECONDS",
    "RATE_LIMIT_BASE_DELAY_SECONDS",
    "DEFAULT_MAX_ATTEMPTS",
    "classify",
    "is_retryable",
    "next_delay",
    "ErrorContext",
    "create_error_context",
    "ErrorHandlingResult",
    "ErrorClassifier",
]
