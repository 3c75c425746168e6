"""Form definition models: questions, options and conditional logic."""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

QuestionType = Literal[
    "text",
    "email",
    "phone",
    "select",
    "multiselect",
    "radio",
    "checkbox",
    "textarea",
    "number",
    "date",
    "contact",
]

ConditionOperator = Literal[
    "equals",
    "not_equals",
    "contains",
    "greater_than",
    "less_than",
    "is_empty",
    "is_not_empty",
]


class Condition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    depends_on: str = Field(alias="dependsOn")
    operator: ConditionOperator
    value: Union[str, int, float, bool, None] = None


class QuestionOption(BaseModel):
    value: str
    label: str


class QuestionValidation(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None
    message: Optional[str] = None


class FormQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: QuestionType
    title: str
    description: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    options: List[QuestionOption] = Field(default_factory=list)
    validation: Optional[QuestionValidation] = None
    conditional_logic: List[Condition] = Field(default_factory=list, alias="conditionalLogic")


class FormConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: Optional[str] = None
    questions: List[FormQuestion]
    submit_endpoint: str = Field(default="/api/submit-form", alias="submitEndpoint")
    success_message: Optional[str] = Field(default=None, alias="successMessage")

    def question(self, question_id: str) -> Optional[FormQuestion]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


__all__ = [
    "QuestionType",
    "ConditionOperator",
    "Condition",
    "QuestionOption",
    "QuestionValidation",
    "FormQuestion",
    "FormConfig",
]
