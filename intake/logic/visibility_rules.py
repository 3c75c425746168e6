"""Conditional visibility evaluation for form questions.

A question with no conditions is always visible. Otherwise every condition
must hold (AND). Contact answers (`{"methods": [...], ...}`) are compared on
their method list; other answers are compared directly.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from intake.models.form import Condition, FormQuestion

logger = logging.getLogger(__name__)


def _methods(answer: Any) -> list[str] | None:
    if isinstance(answer, Mapping) and "methods" in answer:
        return [str(m) for m in (answer.get("methods") or [])]
    methods = getattr(answer, "methods", None)
    if isinstance(methods, list):
        return [str(m) for m in methods]
    return None


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _strict_equal(a: Any, b: Any) -> bool:
    # True must not equal 1, "1" must not equal 1
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    return a == b


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return not value


def _evaluate_contact(methods: list[str], condition: Condition) -> bool:
    op = condition.operator
    if op == "contains":
        return str(condition.value) in methods
    if op == "equals":
        return ",".join(methods) == condition.value
    if op == "not_equals":
        return ",".join(methods) != condition.value
    if op == "is_empty":
        return not methods
    if op == "is_not_empty":
        return bool(methods)
    # Numeric comparisons have no meaning for a method list
    return True


def evaluate_condition(condition: Condition, answers: Mapping[str, Any]) -> bool:
    """Return True when `condition` holds for the current answers."""
    answer = answers.get(condition.depends_on)
    methods = _methods(answer)
    if methods is not None:
        return _evaluate_contact(methods, condition)

    op = condition.operator
    if op == "equals":
        return _strict_equal(answer, condition.value)
    if op == "not_equals":
        return not _strict_equal(answer, condition.value)
    if op == "contains":
        if isinstance(answer, (list, tuple)):
            return str(condition.value) in [str(x) for x in answer]
        return answer is not None and str(condition.value) in str(answer)
    if op in ("greater_than", "less_than"):
        left, right = _to_number(answer), _to_number(condition.value)
        if left is None or right is None:
            return False
        return left > right if op == "greater_than" else left < right
    if op == "is_empty":
        return _is_empty(answer)
    if op == "is_not_empty":
        return not _is_empty(answer)
    logger.warning("visibility.unknown_operator", extra={"operator": op, "depends_on": condition.depends_on})
    return True


def is_question_visible(question: FormQuestion, answers: Mapping[str, Any]) -> bool:
    if not question.conditional_logic:
        return True
    return all(evaluate_condition(c, answers) for c in question.conditional_logic)


def compute_visible_questions(questions: Iterable[FormQuestion], answers: Mapping[str, Any]) -> list[str]:
    """Ids of the visible questions, in form order."""
    return [q.id for q in questions if is_question_visible(q, answers)]


__all__ = [
    "evaluate_condition",
    "is_question_visible",
    "compute_visible_questions",
]
