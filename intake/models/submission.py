"""Pydantic models for the submission pipeline.

`SubmissionPayload` is the canonical wire shape posted by the form and
appended to the spreadsheet. Field names are snake_case in Python and
camelCase on the wire.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ContactInfo(BaseModel):
    """Answer value of the contact question."""

    methods: List[str] = Field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None


AnswerValue = Union[str, List[str], int, float, bool, ContactInfo, Dict[str, Any]]
FormAnswers = Dict[str, Any]


class SubmissionPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    name: str
    contact_methods: List[str] = Field(default_factory=list, alias="contactMethods")
    email: Optional[str] = None
    phone: Optional[str] = None
    social_platforms: List[str] = Field(default_factory=list, alias="socialPlatforms")
    social_media_handle: str = Field(default="", alias="socialMediaHandle")
    address: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON body sent to the endpoint (absent optionals omitted)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SpreadsheetRow(BaseModel):
    """Flattened, human-readable projection of a payload (columns A..H)."""

    timestamp: str
    name: str
    contact_methods: str
    email: str
    phone: str
    social_platforms: str
    social_media_handle: str
    address: str

    def as_values(self) -> List[str]:
        return [
            self.timestamp,
            self.name,
            self.contact_methods,
            self.email,
            self.phone,
            self.social_platforms,
            self.social_media_handle,
            self.address,
        ]


class SubmitFormResponse(BaseModel):
    success: bool
    message: str


SUCCESS_MESSAGE = "Form submitted successfully"
INVALID_MESSAGE = "Invalid form data"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
RATE_LIMITED_MESSAGE = "Too many requests"


__all__ = [
    "ContactInfo",
    "AnswerValue",
    "FormAnswers",
    "SubmissionPayload",
    "SpreadsheetRow",
    "SubmitFormResponse",
    "SUCCESS_MESSAGE",
    "INVALID_MESSAGE",
    "METHOD_NOT_ALLOWED_MESSAGE",
    "RATE_LIMITED_MESSAGE",
]
