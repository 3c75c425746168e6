"""Exception types raised across the submission pipeline.

Single source of truth for pipeline errors so routes and logic modules do not
define ad-hoc exception classes.
"""

from __future__ import annotations

from typing import Optional


class IntakeError(Exception):
    pass


class SubmissionValidationError(IntakeError, ValueError):
    """Request body failed structural validation (surfaced as 400)."""


class ServiceInitializationError(IntakeError):
    """Spreadsheet client could not be created (missing or bad credentials)."""

    def __init__(self, message: str, missing: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class SheetsAppendError(IntakeError):
    """Append failed after the retry policy stopped."""

    def __init__(
        self,
        message: str,
        *,
        last_error: Optional[BaseException] = None,
        category: Optional[str] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.last_error = last_error
        self.category = category
        self.attempts = attempts


class VerificationError(IntakeError):
    """Verification service could not be reached or answered garbage."""


__all__ = [
    "IntakeError",
    "SubmissionValidationError",
    "ServiceInitializationError",
    "SheetsAppendError",
    "VerificationError",
]
