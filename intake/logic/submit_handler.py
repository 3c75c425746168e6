"""Submit-form boundary handler.

Per request the handler walks the states

    received -> method_checked -> rate_checked -> body_validated -> verified
    -> sanitized -> contact_checked -> service_initialized
    -> connection_checked -> append_attempted -> responded

and returns a `BoundaryResult`. The result separates `well_formed` (the body
passed structural validation; this alone gates a 200) from `delivered` (the
row reached the spreadsheet; logged, never shown to the caller). Everything
after structural validation is absorbed here: a rejected verification token,
contact details that do not match the selected methods and downstream
failures are logged with the submission id, the operation and the payload,
and the caller still gets a success response.

Collaborators are injected; there is no module-level state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from intake.errors import SheetsAppendError, SubmissionValidationError, VerificationError
from intake.logic.error_classifier import ErrorClassifier, create_error_context
from intake.logic.formatter import validate_answers
from intake.logic.rate_limiter import RateLimiter
from intake.logic.sheets_client import SheetsAppendClient
from intake.logic.submission_log import SubmissionLogger, new_submission_id
from intake.logic.turnstile import TurnstileVerifier
from intake.logic.validation import sanitize_submission, validate_submission_body
from intake.models.submission import (
    INVALID_MESSAGE,
    METHOD_NOT_ALLOWED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    SUCCESS_MESSAGE,
    SubmitFormResponse,
)

ClientFactory = Callable[[], SheetsAppendClient]
CONTACT_CHECK_OPERATION = "contact_validation"


@dataclass
class BoundaryResult:
    status_code: int
    body: Optional[Dict[str, Any]]
    well_formed: bool
    submission_id: str
    delivered: Optional[bool] = None
    headers: Dict[str, str] = field(default_factory=dict)
    stages: List[str] = field(default_factory=list)


def _reply(success: bool, message: str) -> Dict[str, Any]:
    return SubmitFormResponse(success=success, message=message).model_dump()


class SubmitFormHandler:
    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        submission_logger: Optional[SubmissionLogger] = None,
        classifier: Optional[ErrorClassifier] = None,
        rate_limiter: Optional[RateLimiter] = None,
        verifier: Optional[TurnstileVerifier] = None,
        check_connection: bool = True,
    ) -> None:
        self.client_factory = client_factory
        self.log = submission_logger or SubmissionLogger()
        self.classifier = classifier or ErrorClassifier(self.log)
        self.rate_limiter = rate_limiter
        self.verifier = verifier
        self.check_connection = check_connection

    def handle(
        self,
        method: str,
        body: Any,
        *,
        client_address: Optional[str] = None,
        submission_id: Optional[str] = None,
        user_agent: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> BoundaryResult:
        sid = submission_id or new_submission_id()
        stages = ["received"]
        started = time.monotonic()
        method_u = (method or "").upper()
        self.log.info(
            "API request received",
            operation="api_request",
            submission_id=sid,
            method=method_u,
            user_agent=user_agent,
            origin=origin,
        )

        if method_u == "OPTIONS":
            stages.append("responded")
            return BoundaryResult(200, None, well_formed=False, submission_id=sid, stages=stages)
        if method_u != "POST":
            self.log.warning(
                "Invalid request method",
                operation="api_request",
                submission_id=sid,
                method=method_u,
                allowed_methods=["POST"],
            )
            stages.append("responded")
            return BoundaryResult(
                405,
                _reply(False, METHOD_NOT_ALLOWED_MESSAGE),
                well_formed=False,
                submission_id=sid,
                headers={"Allow": "POST, OPTIONS"},
                stages=stages,
            )
        stages.append("method_checked")

        if self.rate_limiter is not None:
            decision = self.rate_limiter.hit(client_address or "unknown")
            if not decision.allowed:
                self.log.warning(
                    "Rate limit exceeded",
                    operation="rate_limit",
                    submission_id=sid,
                    client_address=client_address,
                    retry_after_s=round(decision.retry_after, 3),
                )
                stages.append("responded")
                return BoundaryResult(
                    429,
                    _reply(False, RATE_LIMITED_MESSAGE),
                    well_formed=False,
                    submission_id=sid,
                    headers={"Retry-After": str(max(1, int(decision.retry_after + 0.999)))},
                    stages=stages,
                )
            stages.append("rate_checked")

        try:
            validate_submission_body(body)
        except SubmissionValidationError as exc:
            self.log.warning(
                "Invalid form data received",
                operation="validation",
                submission_id=sid,
                reason=str(exc),
                body_type=type(body).__name__,
                body_keys=sorted(body.keys()) if isinstance(body, dict) else [],
            )
            stages.append("responded")
            return BoundaryResult(400, _reply(False, INVALID_MESSAGE), well_formed=False, submission_id=sid, stages=stages)
        stages.append("body_validated")

        verified = True
        if self.verifier is not None and self.verifier.enabled:
            try:
                verified = self.verifier.verify(body.get("turnstileToken"), client_address)
            except VerificationError as exc:
                # Verification service down: advisory only
                self.log.warning(
                    "Verification unavailable; continuing",
                    operation="verification",
                    submission_id=sid,
                    error=exc,
                )
                verified = True
            if verified:
                stages.append("verified")

        delivered = False
        if verified:
            try:
                delivered = self._deliver(body, sid, stages)
            except Exception as exc:
                self.classifier.handle_error(exc, create_error_context(sid, "api_handler", body))
                self.log.manual_recovery(sid, body, exc, "api_handler")
        else:
            self.log.warning(
                "Verification rejected; submission dropped",
                operation="verification",
                submission_id=sid,
                client_address=client_address,
                payload=body,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        self.log.info(
            "API response sent",
            operation="api_response",
            submission_id=sid,
            success=True,
            delivered=delivered,
            duration_ms=duration_ms,
        )
        stages.append("responded")
        return BoundaryResult(
            200,
            _reply(True, SUCCESS_MESSAGE),
            well_formed=True,
            submission_id=sid,
            delivered=delivered,
            stages=stages,
        )

    def _deliver(self, body: Dict[str, Any], sid: str, stages: List[str]) -> bool:
        payload = sanitize_submission(body)
        stages.append("sanitized")
        self.log.info(
            "Processing form submission",
            operation="form_processing",
            submission_id=sid,
            name=payload.name,
            contact_methods=payload.contact_methods,
            social_platforms=payload.social_platforms,
            has_email=bool(payload.email),
            has_phone=bool(payload.phone),
            has_address=bool(payload.address),
        )

        if not validate_answers(payload.to_wire()):
            error = SubmissionValidationError("contact details do not match the selected contact methods")
            self.log.warning(
                "Contact details failed validation; append skipped",
                operation=CONTACT_CHECK_OPERATION,
                submission_id=sid,
                error=error,
                contact_methods=payload.contact_methods,
            )
            self.log.manual_recovery(sid, payload, error, CONTACT_CHECK_OPERATION)
            return False
        stages.append("contact_checked")

        try:
            client = self.client_factory()
        except Exception as exc:
            self.classifier.handle_error(exc, create_error_context(sid, "service_initialization", payload))
            self.log.manual_recovery(sid, payload, exc, "service_initialization")
            self.log.warning(
                "Service initialization failed but returning success to user",
                operation="api_response",
                submission_id=sid,
                error=exc,
            )
            return False
        stages.append("service_initialized")

        if self.check_connection:
            if not client.validate_connection(sid):
                self.log.warning(
                    "Connection check failed; attempting append anyway",
                    operation="connection_validation",
                    submission_id=sid,
                    suggestion="Check service account permissions and spreadsheet access",
                )
            stages.append("connection_checked")

        stages.append("append_attempted")
        try:
            client.append(payload, sid)
        except SheetsAppendError as exc:
            # The client already logged the manual-recovery record.
            self.log.error(
                "Google Sheets append exhausted",
                operation="google_sheets_append",
                submission_id=sid,
                error=exc,
                category=exc.category,
                attempts=exc.attempts,
            )
            return False
        self.log.info(
            "Form submission successfully processed",
            operation="form_processing",
            submission_id=sid,
            name=payload.name,
            timestamp=payload.timestamp,
        )
        return True


__all__ = ["BoundaryResult", "ClientFactory", "CONTACT_CHECK_OPERATION", "SubmitFormHandler"]
