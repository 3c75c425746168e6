"""In-progress form session.

Tracks the answers and the current position among the visible questions,
persists both to the draft store after each change and hands the answers to
`SubmissionFlow` on submit.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from intake.client.draft_store import DraftStore
from intake.client.submission_flow import SubmissionFlow, SubmissionOutcome
from intake.logic.formatter import is_valid_phone
from intake.logic.visibility_rules import compute_visible_questions
from intake.models.form import FormConfig, FormQuestion

logger = logging.getLogger(__name__)

# Stricter than the submission check: requires an alphabetic TLD
CONTACT_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def _as_dict(value: Any) -> Optional[dict[str, Any]]:
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return value if isinstance(value, dict) else None


def _contact_answered(answer: Any) -> bool:
    contact = _as_dict(answer)
    if contact is None:
        return False
    methods = contact.get("methods") or []
    if not methods:
        return False
    if "email" in methods:
        email = str(contact.get("email") or "").strip()
        if not email or not CONTACT_EMAIL_RE.match(email):
            return False
    if "phone" in methods:
        phone = str(contact.get("phone") or "").strip()
        if not phone or not is_valid_phone(phone):
            return False
    return True


def _number_answered(answer: Any) -> bool:
    if answer is None or answer == "" or isinstance(answer, bool):
        return False
    try:
        return float(answer) > 0
    except (TypeError, ValueError):
        return False


def is_question_answered(question: FormQuestion, answer: Any) -> bool:
    """Return True when `answer` satisfies the question's required rules."""
    if not question.required:
        return True
    if question.type == "contact":
        return _contact_answered(answer)
    if question.type == "number":
        return _number_answered(answer)
    if isinstance(answer, list):
        rules = question.validation
        if rules is not None:
            if rules.min is not None and len(answer) < rules.min:
                return False
            if rules.max is not None and len(answer) > rules.max:
                return False
        return len(answer) > 0
    if isinstance(answer, str):
        return answer.strip() != ""
    return answer is not None


class FormSession:
    def __init__(
        self,
        config: FormConfig,
        flow: Optional[SubmissionFlow] = None,
        draft_store: Optional[DraftStore] = None,
    ) -> None:
        self.config = config
        self.draft_store = draft_store
        self.flow = flow or SubmissionFlow(config.submit_endpoint, draft_store)
        self.answers: dict[str, Any] = {}
        self.current_index = 0
        self.is_completed = False
        self.is_submitting = False
        self.last_outcome: Optional[SubmissionOutcome] = None

        draft = draft_store.load() if draft_store is not None else None
        if draft is not None:
            self.answers = dict(draft.answers)
            self.current_index = draft.current_question_index
            logger.info("form_session.restored", extra={"answers": len(self.answers), "index": self.current_index})
        self._clamp_index()

    @property
    def visible_questions(self) -> list[str]:
        return compute_visible_questions(self.config.questions, self.answers)

    @property
    def total_questions(self) -> int:
        return len(self.visible_questions)

    def _clamp_index(self) -> None:
        self.current_index = max(0, min(self.current_index, self.total_questions - 1))

    def _persist(self) -> None:
        if self.draft_store is not None and self.answers:
            self.draft_store.save(self.current_index, self.answers)

    def set_answer(self, question_id: str, value: Any) -> None:
        self.answers[question_id] = value
        # Answers can hide the question under the cursor
        self._clamp_index()
        self._persist()

    def next_question(self) -> None:
        self.current_index += 1
        self.is_completed = self.current_index >= self.total_questions
        self._persist()

    def prev_question(self) -> None:
        self.current_index = max(0, self.current_index - 1)
        self.is_completed = False
        self._persist()

    def go_to_question(self, index: int) -> None:
        self.current_index = index
        self._clamp_index()
        self.is_completed = False
        self._persist()

    def current_question(self) -> Optional[FormQuestion]:
        visible = self.visible_questions
        if not 0 <= self.current_index < len(visible):
            return None
        return self.config.question(visible[self.current_index])

    def progress(self) -> int:
        """Percent of visible questions reached, counting the current one."""
        total = self.total_questions
        if total == 0:
            return 0
        return int((self.current_index + 1) * 100 / total + 0.5)

    def is_current_question_answered(self) -> bool:
        question = self.current_question()
        if question is None:
            return False
        return is_question_answered(question, self.answers.get(question.id))

    @property
    def can_go_next(self) -> bool:
        return not self.is_completed and self.is_current_question_answered()

    @property
    def can_go_prev(self) -> bool:
        return self.current_index > 0

    def submit(self) -> SubmissionOutcome:
        self.is_submitting = True
        try:
            outcome = self.flow.submit(self.answers)
        finally:
            self.is_submitting = False
        self.last_outcome = outcome
        if outcome.completed:
            self.is_completed = True
        return outcome


__all__ = ["CONTACT_EMAIL_RE", "is_question_answered", "FormSession"]
