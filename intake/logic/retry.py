"""Retry policy as a small state machine.

The state tracks the attempt counter and the last error; callers report each
outcome and receive a decision. No transport code lives here, so the policy
can be exercised without a spreadsheet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from intake.logic.error_classifier import DEFAULT_MAX_ATTEMPTS, ErrorCategory, is_retryable, next_delay


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay: Optional[float] = None


class RetryState:
    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        *,
        delay_fn: Callable[[int, ErrorCategory], float] = next_delay,
        retryable_fn: Callable[[ErrorCategory], bool] = is_retryable,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self._delay_fn = delay_fn
        self._retryable_fn = retryable_fn
        self.attempt = 0
        self.last_error: Optional[BaseException] = None
        self.last_category: Optional[ErrorCategory] = None
        self.succeeded = False
        self.done = False

    def begin_attempt(self) -> int:
        if self.done:
            raise RuntimeError("retry state already finished")
        self.attempt += 1
        return self.attempt

    def record_success(self) -> None:
        self.succeeded = True
        self.done = True

    def record_failure(self, error: BaseException, category: ErrorCategory) -> RetryDecision:
        self.last_error = error
        self.last_category = category
        if self.attempt < self.max_attempts and self._retryable_fn(category):
            return RetryDecision(retry=True, delay=self._delay_fn(self.attempt, category))
        self.done = True
        return RetryDecision(retry=False)

    @property
    def exhausted(self) -> bool:
        """True when the policy stopped on a failure."""
        return self.done and not self.succeeded


__all__ = ["RetryDecision", "RetryState"]
