"""Form repository: the storage boundary between the ORM rows and the
storage-agnostic engine, resolver and aggregator.
"""

import logging
import uuid
from collections.abc import Sequence

from pydantic import TypeAdapter
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from detaforms.models.form import Form
from detaforms.models.form_editor import FormEditor
from detaforms.models.form_response import FormResponse
from detaforms.models.form_style import FormStyle
from detaforms.models.question import Question, QuestionOption
from detaforms.schemas.forms import ChoiceQuestion, FormUpdate
from detaforms.schemas.forms import FormStyle as FormStyleSchema
from detaforms.schemas.forms import Question as QuestionSchema
from detaforms.services.form_engine import SubmittedResponse
from detaforms.services.slugs import generate_unique_slug
from detaforms.services.style_resolver import DEFAULTS, resolve_style, style_to_storage

logger = logging.getLogger(__name__)

_question_adapter = TypeAdapter(QuestionSchema)


class FormError(Exception):
    """Base exception for form operations."""


class FormNotFound(FormError):
    """Raised when a form (or one of its responses) does not exist."""


class FormAccessDenied(FormError):
    """Raised when the user neither owns nor co-edits the form."""


# ---------------------------------------------------------------------------
# Row <-> schema conversion
# ---------------------------------------------------------------------------


def question_to_schema(row: Question) -> QuestionSchema:
    data = {
        "id": str(row.id),
        "type": row.type,
        "title": row.title,
        "required": row.required,
    }
    if row.type in ("multiple-choice", "checkbox"):
        data["options"] = [{"id": str(opt.id), "label": opt.label} for opt in row.options]
    return _question_adapter.validate_python(data)


def style_row_to_dict(row: FormStyle | None) -> dict[str, str | None]:
    if row is None:
        return {}
    return {name: getattr(row, name) for name in DEFAULTS}


def validate_questions(questions: Sequence[QuestionSchema]) -> list[str]:
    """Authoring checks on a question list, returns list of errors."""
    errors: list[str] = []
    seen: set[str] = set()
    for i, question in enumerate(questions):
        if question.id in seen:
            errors.append(f"Question {i}: duplicate question id '{question.id}'")
        seen.add(question.id)
        if isinstance(question, ChoiceQuestion) and not question.options:
            errors.append(f"Question {i}: {question.type} requires at least 1 option")
    return errors


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FormRepository:
    """Reads and writes forms and everything they own through one session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # -- forms --------------------------------------------------------------

    def list_for_user(self, user_id: uuid.UUID, email: str | None = None) -> list[Form]:
        """Forms the user owns or co-edits, newest first, without duplicates."""
        if email:
            self._claim_invitations(user_id, email)

        shared = select(FormEditor.form_id).where(FormEditor.user_id == user_id)
        query = (
            select(Form)
            .where(or_(Form.created_by == user_id, Form.id.in_(shared)))
            .order_by(Form.created_at.desc())
        )
        return list(self.db.execute(query).scalars().all())

    def get(self, form_id: uuid.UUID) -> Form:
        form = self.db.get(Form, form_id)
        if form is None:
            raise FormNotFound(f"Form {form_id} not found")
        return form

    def get_for_user(self, form_id: uuid.UUID, user_id: uuid.UUID, email: str | None = None) -> Form:
        form = self.get(form_id)
        if not self.can_edit(form, user_id, email):
            raise FormAccessDenied(f"User {user_id} cannot edit form {form_id}")
        return form

    def can_edit(self, form: Form, user_id: uuid.UUID, email: str | None = None) -> bool:
        if form.created_by == user_id:
            return True
        normalized = email.lower() if email else None
        return any(
            editor.user_id == user_id or (normalized is not None and editor.email == normalized)
            for editor in form.editors
        )

    def get_by_slug(self, slug: str) -> Form:
        form = self.db.execute(select(Form).where(Form.slug == slug)).scalar_one_or_none()
        if form is None:
            raise FormNotFound(f"Form '{slug}' not found")
        return form

    def create(self, owner_id: uuid.UUID, title: str, description: str | None) -> Form:
        form = Form(
            slug=generate_unique_slug(self.db, "new-form"),
            title=title,
            description=description,
            status="open",
            created_by=owner_id,
        )
        form.style = FormStyle()
        self.db.add(form)
        self.db.commit()
        self.db.refresh(form)
        logger.info("Form created: id=%s slug=%s owner=%s", form.id, form.slug, owner_id)
        return form

    def save(self, form: Form, payload: FormUpdate) -> Form:
        """Apply a builder save. Overlapping saves are last-write-wins."""
        update_data = payload.model_dump(exclude_unset=True, include={"title", "description", "status"})
        for field, value in update_data.items():
            setattr(form, field, value)

        if payload.style is not None:
            self._write_style(form, resolve_style(payload.style))
        if payload.questions is not None:
            self._replace_questions(form, payload.questions)

        self.db.commit()
        self.db.refresh(form)
        return form

    def toggle_status(self, form: Form) -> Form:
        form.status = "closed" if form.status == "open" else "open"
        self.db.commit()
        self.db.refresh(form)
        logger.info("Form %s is now %s", form.id, form.status)
        return form

    def delete(self, form: Form) -> None:
        form_id = form.id
        self.db.delete(form)
        self.db.commit()
        logger.info("Form deleted: id=%s", form_id)

    def questions(self, form: Form) -> list[QuestionSchema]:
        return [question_to_schema(row) for row in form.questions]

    def style(self, form: Form) -> FormStyleSchema:
        return resolve_style(style_row_to_dict(form.style))

    def _write_style(self, form: Form, style: FormStyleSchema) -> None:
        if form.style is None:
            form.style = FormStyle()
        for column, value in style_to_storage(style).items():
            setattr(form.style, column, value)

    def _replace_questions(self, form: Form, questions: Sequence[QuestionSchema]) -> None:
        # Known ids are updated in place so stored answers keep matching;
        # anything else (e.g. client-side temp ids) gets a fresh id.
        existing = {str(row.id): row for row in form.questions}
        rows: list[Question] = []
        for position, question in enumerate(questions):
            row = existing.pop(question.id, None) or Question()
            row.type = question.type
            row.title = question.title
            row.required = question.required
            row.position = position

            options = question.options if isinstance(question, ChoiceQuestion) else []
            existing_options = {str(opt.id): opt for opt in row.options}
            option_rows: list[QuestionOption] = []
            for option_position, option in enumerate(options):
                option_row = existing_options.get(option.id) or QuestionOption()
                option_row.label = option.label
                option_row.position = option_position
                option_rows.append(option_row)
            row.options = option_rows
            rows.append(row)

        form.questions = rows

    # -- responses ----------------------------------------------------------

    def add_response(self, form: Form, submitted: SubmittedResponse) -> FormResponse:
        response = FormResponse(
            id=submitted.id,
            form_id=form.id,
            answers=submitted.answers,
            submitted_at=submitted.submitted_at,
        )
        self.db.add(response)
        self.db.commit()
        self.db.refresh(response)
        logger.info("Response %s recorded for form %s", response.id, form.id)
        return response

    def count_responses(self, form: Form) -> int:
        return self.db.execute(
            select(func.count()).select_from(FormResponse).where(FormResponse.form_id == form.id)
        ).scalar_one()

    def list_responses(self, form: Form) -> list[FormResponse]:
        return list(
            self.db.execute(
                select(FormResponse)
                .where(FormResponse.form_id == form.id)
                .order_by(FormResponse.submitted_at.desc())
            )
            .scalars()
            .all()
        )

    def delete_response(self, form: Form, response_id: uuid.UUID) -> None:
        response = self.db.get(FormResponse, response_id)
        if response is None or response.form_id != form.id:
            raise FormNotFound(f"Response {response_id} not found")
        self.db.delete(response)
        self.db.commit()
        logger.info("Response %s deleted from form %s", response_id, form.id)

    # -- editors ------------------------------------------------------------

    def add_editor(self, form: Form, email: str, invited_by: uuid.UUID) -> FormEditor:
        normalized = email.strip().lower()
        editor = self.db.execute(
            select(FormEditor).where(FormEditor.form_id == form.id, FormEditor.email == normalized)
        ).scalar_one_or_none()
        if editor is not None:
            return editor

        editor = FormEditor(form_id=form.id, email=normalized, invited_by=invited_by)
        self.db.add(editor)
        self.db.commit()
        self.db.refresh(editor)
        logger.info("Editor %s added to form %s", normalized, form.id)
        return editor

    def list_editors(self, form: Form) -> list[FormEditor]:
        return list(
            self.db.execute(
                select(FormEditor).where(FormEditor.form_id == form.id).order_by(FormEditor.created_at.asc())
            )
            .scalars()
            .all()
        )

    def _claim_invitations(self, user_id: uuid.UUID, email: str) -> None:
        pending = (
            self.db.execute(
                select(FormEditor).where(FormEditor.email == email.lower(), FormEditor.user_id.is_(None))
            )
            .scalars()
            .all()
        )
        if not pending:
            return
        for editor in pending:
            editor.user_id = user_id
        self.db.commit()
        logger.info("User %s claimed %d editor invitation(s)", user_id, len(pending))
