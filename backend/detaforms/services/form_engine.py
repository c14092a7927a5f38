"""Answer validation and submission for a form's questions.

Storage-agnostic: works on the question schema types and a plain answer
mapping, and hands accepted responses back to the caller to persist.
"""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from detaforms.schemas.forms import (
    CheckboxQuestion,
    MultipleChoiceQuestion,
    NumberQuestion,
    Question,
    TextareaQuestion,
    TextQuestion,
)


@dataclass(frozen=True)
class SubmittedResponse:
    id: uuid.UUID
    submitted_at: datetime
    answers: dict[str, Any]


@dataclass(frozen=True)
class SubmissionAccepted:
    response: SubmittedResponse


@dataclass(frozen=True)
class ValidationFailed:
    unanswered: list[str]

    @property
    def first_error(self) -> str:
        """Question to focus/scroll to: the first unanswered one in form order."""
        return self.unanswered[0]


SubmissionOutcome = SubmissionAccepted | ValidationFailed


def _has_selection(value: Any) -> bool:
    if isinstance(value, dict):
        return any(value.values())
    if isinstance(value, (list, tuple, set, frozenset)):
        return any(value)
    return bool(value)


def is_answered(question: Question, value: Any) -> bool:
    """True when ``value`` counts as an answer to ``question``.

    Absent, ``None`` and ``""`` are unanswered for every type; a checkbox
    additionally needs at least one truthy selection. Any other scalar,
    including ``"0"``, is answered.
    """
    if value is None or value == "":
        return False
    match question:
        case CheckboxQuestion():
            return _has_selection(value)
        case TextQuestion() | TextareaQuestion() | NumberQuestion() | MultipleChoiceQuestion():
            return True
        case _:
            raise TypeError(f"Unsupported question type: {type(question).__name__}")


def validate(questions: Sequence[Question], answers: dict[str, Any]) -> list[str]:
    """Return ids of required questions left unanswered, in question order."""
    return [
        question.id
        for question in questions
        if question.required and not is_answered(question, answers.get(question.id))
    ]


def submit(
    questions: Sequence[Question],
    answers: dict[str, Any],
    responses: list[SubmittedResponse] | None = None,
) -> SubmissionOutcome:
    """Validate ``answers`` and, when complete, build a new response.

    The accepted response is appended to ``responses`` when given. A failed
    validation creates nothing.
    """
    unanswered = validate(questions, answers)
    if unanswered:
        return ValidationFailed(unanswered=unanswered)

    response = SubmittedResponse(
        id=uuid.uuid4(),
        submitted_at=datetime.now(timezone.utc),
        answers=dict(answers),
    )
    if responses is not None:
        responses.append(response)
    return SubmissionAccepted(response=response)


@dataclass
class AnswerSheet:
    """Mutable answers and per-question error flags for one fill-out session."""

    questions: list[Question]
    answers: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, bool] = field(default_factory=dict)
    responses: list[SubmittedResponse] = field(default_factory=list)
    is_submitted: bool = False

    def record_answer(self, question_id: str, value: Any) -> None:
        self.answers[question_id] = value
        # Cleared optimistically; the next submit re-validates
        if self.errors.get(question_id):
            self.errors[question_id] = False

    def has_error(self, question_id: str) -> bool:
        return self.errors.get(question_id, False)

    def submit(self) -> SubmissionOutcome:
        outcome = submit(self.questions, self.answers, self.responses)
        match outcome:
            case ValidationFailed(unanswered=unanswered):
                self.errors = {question_id: True for question_id in unanswered}
            case SubmissionAccepted():
                self.errors = {}
                self.is_submitted = True
        return outcome

    def reset(self) -> None:
        """Start a fresh answer set after a successful submission."""
        self.answers = {}
        self.errors = {}
        self.is_submitted = False
