"""Local persistence of an in-progress form.

One JSON document under the fixed key `naf_form_progress` holding the
current question index, the answers and the wall-clock save time in
milliseconds. Drafts older than the TTL are discarded on load. Storage
failures are logged and never raised to the caller.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

STORAGE_KEY = "naf_form_progress"
DRAFT_TTL_SECONDS = 24 * 60 * 60

logger = logging.getLogger(__name__)


@dataclass
class DraftState:
    current_question_index: int = 0
    answers: dict[str, Any] = field(default_factory=dict)


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(exclude_none=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DraftStore:
    def __init__(
        self,
        path: Path | str,
        *,
        ttl_seconds: float = DRAFT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path)
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @classmethod
    def in_directory(cls, directory: Path | str, **kwargs: Any) -> "DraftStore":
        return cls(Path(directory) / f"{STORAGE_KEY}.json", **kwargs)

    def save(self, current_question_index: int, answers: dict[str, Any]) -> bool:
        doc = {
            "currentQuestionIndex": current_question_index,
            "answers": answers,
            "timestamp": int(self.clock() * 1000),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(doc, default=_jsonable), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("draft.save_failed", extra={"path": str(self.path), "error": str(exc)})
            return False
        return True

    def load(self) -> Optional[DraftState]:
        try:
            if not self.path.exists():
                return None
            doc = json.loads(self.path.read_text(encoding="utf-8"))
            saved_ms = float(doc["timestamp"])
        except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            logger.warning("draft.load_failed", extra={"path": str(self.path), "error": str(exc)})
            self.clear()
            return None

        age_seconds = self.clock() - saved_ms / 1000.0
        if age_seconds > self.ttl_seconds:
            logger.info("draft.expired", extra={"path": str(self.path), "age_s": int(age_seconds)})
            self.clear()
            return None

        answers = doc.get("answers") if isinstance(doc.get("answers"), dict) else {}
        index = doc.get("currentQuestionIndex")
        return DraftState(
            current_question_index=index if isinstance(index, int) and index >= 0 else 0,
            answers=answers,
        )

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("draft.clear_failed", extra={"path": str(self.path), "error": str(exc)})


__all__ = ["STORAGE_KEY", "DRAFT_TTL_SECONDS", "DraftState", "DraftStore"]
