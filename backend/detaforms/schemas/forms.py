import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

FormStatus = Literal["open", "closed"]
BackgroundType = Literal["solid", "gradient", "image"]


# ---------------------------------------------------------------------------
# Question schemas
# ---------------------------------------------------------------------------


class Option(BaseModel):
    """Selectable choice owned by a multiple-choice or checkbox question."""

    id: str = Field(..., min_length=1)
    label: str = Field(..., max_length=500)


class _QuestionBase(BaseModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., max_length=2000)
    required: bool = False


class TextQuestion(_QuestionBase):
    type: Literal["text"] = "text"


class TextareaQuestion(_QuestionBase):
    type: Literal["textarea"] = "textarea"


class NumberQuestion(_QuestionBase):
    type: Literal["number"] = "number"


class _ChoiceQuestion(_QuestionBase):
    options: list[Option] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_option_ids(self):
        seen: set[str] = set()
        for option in self.options:
            if option.id in seen:
                raise ValueError(f"Duplicate option id '{option.id}' in question '{self.id}'")
            seen.add(option.id)
        return self

    def option_label(self, option_id: Any) -> str | None:
        for option in self.options:
            if option.id == str(option_id):
                return option.label
        return None


class MultipleChoiceQuestion(_ChoiceQuestion):
    type: Literal["multiple-choice"] = "multiple-choice"


class CheckboxQuestion(_ChoiceQuestion):
    type: Literal["checkbox"] = "checkbox"


Question = Annotated[
    Union[TextQuestion, TextareaQuestion, NumberQuestion, MultipleChoiceQuestion, CheckboxQuestion],
    Field(discriminator="type"),
]

ChoiceQuestion = MultipleChoiceQuestion | CheckboxQuestion


# ---------------------------------------------------------------------------
# Style schema
# ---------------------------------------------------------------------------


class FormStyle(BaseModel):
    """Canonical, fully-resolved style of a form.

    Built by ``style_resolver.resolve_style`` from stored or submitted style
    data in either naming convention. Serialized with camelCase aliases.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    background_type: BackgroundType = "solid"
    background_color: str
    gradient_start: str
    gradient_end: str
    gradient_direction: str
    background_image: str | None = None
    text_color: str
    primary_color: str
    border_radius: str
    spacing: str
    success_message: str
    closed_message: str
    submit_button_text: str
    validation_message: str


# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormCreate(BaseModel):
    title: str = Field("טופס חדש", min_length=1, max_length=255)
    description: str | None = "תיאור הטופס"


class FormUpdate(BaseModel):
    """Full save from the builder.

    ``style`` accepts snake_case and camelCase keys; ``questions`` is
    reconciled by id (known ids are kept, ids not present are deleted).
    Omitted fields are left unchanged; ``title`` and ``status`` cannot be
    cleared.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: FormStatus | None = None
    style: dict[str, Any] | None = None
    questions: list[Question] | None = None

    @field_validator("title", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class FormSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    title: str
    description: str | None
    status: FormStatus
    created_by: uuid.UUID
    created_at: datetime
    updated_at: datetime


class FormDetail(FormSummary):
    questions: list[Question]
    style: FormStyle
    response_count: int = 0


class FormListResponse(BaseModel):
    items: list[FormSummary]
    total: int


class PublicForm(BaseModel):
    """What an anonymous respondent receives at ``/f/{slug}``."""

    id: uuid.UUID
    slug: str
    title: str
    description: str | None
    status: FormStatus
    questions: list[Question]
    style: FormStyle
    background: dict[str, str]


# ---------------------------------------------------------------------------
# Form response schemas
# ---------------------------------------------------------------------------


class FormSubmission(BaseModel):
    """Anonymous answers to a form, keyed by question id."""

    answers: dict[str, Any] = Field(default_factory=dict)


class FormResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    answers: dict[str, Any]
    submitted_at: datetime


class AnswerDisplay(BaseModel):
    question_id: str
    title: str
    value: Any


class ResponseDisplay(BaseModel):
    id: uuid.UUID
    submitted_at: datetime
    answers: list[AnswerDisplay]


class ResponseListResponse(BaseModel):
    items: list[ResponseDisplay]
    total: int


# ---------------------------------------------------------------------------
# Editor schemas
# ---------------------------------------------------------------------------


class EditorInvite(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    inviter_name: str | None = Field(None, max_length=255)


class EditorSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    email: str
    user_id: uuid.UUID | None
    created_at: datetime
