"""Client-side form session: navigation, drafts and submission."""

from __future__ import annotations

from intake.client.draft_store import DraftState, DraftStore
from intake.client.form_state import FormSession
from intake.client.sample_form import SAMPLE_FORM
from intake.client.submission_flow import SubmissionFlow, SubmissionOutcome

__all__ = [
    "DraftState",
    "DraftStore",
    "FormSession",
    "SAMPLE_FORM",
    "SubmissionFlow",
    "SubmissionOutcome",
]
