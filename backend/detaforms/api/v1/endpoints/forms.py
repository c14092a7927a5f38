"""Owner API: form CRUD, status, responses, CSV export and co-editors."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from detaforms.core.auth import get_current_user_email, get_current_user_id
from detaforms.core.database import get_db
from detaforms.models.form import Form
from detaforms.schemas.forms import (
    AnswerDisplay,
    EditorInvite,
    EditorSchema,
    FormCreate,
    FormDetail,
    FormListResponse,
    FormSummary,
    FormUpdate,
    ResponseDisplay,
    ResponseListResponse,
)
from detaforms.services.aggregator import display_answers, export_csv
from detaforms.services.forms import (
    FormAccessDenied,
    FormNotFound,
    FormRepository,
    validate_questions,
)
from detaforms.services.invitations import InvitationError, send_invitation

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_repository(db: Session = Depends(get_db)) -> FormRepository:
    return FormRepository(db)


def _get_form_or_404(
    form_id: uuid.UUID,
    repo: FormRepository,
    user_id: uuid.UUID,
    email: str | None,
) -> Form:
    try:
        return repo.get_for_user(form_id, user_id, email)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="Form not found")
    except FormAccessDenied:
        raise HTTPException(status_code=403, detail="You do not have access to this form")


def _form_detail(repo: FormRepository, form: Form) -> FormDetail:
    return FormDetail(
        id=form.id,
        slug=form.slug,
        title=form.title,
        description=form.description,
        status=form.status,
        created_by=form.created_by,
        created_at=form.created_at,
        updated_at=form.updated_at,
        questions=repo.questions(form),
        style=repo.style(form),
        response_count=repo.count_responses(form),
    )


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=FormListResponse)
def list_forms(
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    forms = repo.list_for_user(user_id, email)
    return FormListResponse(items=forms, total=len(forms))


@router.post("/", response_model=FormDetail, status_code=201)
def create_form(
    payload: FormCreate,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    form = repo.create(user_id, payload.title, payload.description)
    return _form_detail(repo, form)


@router.get("/{form_id}", response_model=FormDetail)
def get_form(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    return _form_detail(repo, form)


@router.put("/{form_id}", response_model=FormDetail)
def save_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)

    if not payload.model_fields_set:
        raise HTTPException(status_code=422, detail="No fields to update")

    if payload.questions is not None:
        validation_errors = validate_questions(payload.questions)
        if validation_errors:
            raise HTTPException(status_code=422, detail="; ".join(validation_errors))

    form = repo.save(form, payload)
    return _form_detail(repo, form)


@router.post("/{form_id}/toggle-status", response_model=FormSummary)
def toggle_form_status(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    return repo.toggle_status(form)


@router.delete("/{form_id}", status_code=204)
def delete_form(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    if form.created_by != user_id:
        raise HTTPException(status_code=403, detail="Only the owner can delete a form")
    repo.delete(form)


# ---------------------------------------------------------------------------
# Form responses
# ---------------------------------------------------------------------------


@router.get("/{form_id}/responses", response_model=ResponseListResponse)
def list_form_responses(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    questions = repo.questions(form)

    items = [
        ResponseDisplay(
            id=response.id,
            submitted_at=response.submitted_at,
            answers=[
                AnswerDisplay(question_id=question.id, title=question.title, value=value)
                for question, value in display_answers(questions, response.answers)
            ],
        )
        for response in repo.list_responses(form)
    ]
    return ResponseListResponse(items=items, total=len(items))


@router.delete("/{form_id}/responses/{response_id}", status_code=204)
def delete_form_response(
    form_id: uuid.UUID,
    response_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    try:
        repo.delete_response(form, response_id)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="Response not found")


@router.get("/{form_id}/responses/download")
def download_form_responses(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    """Export all form responses as CSV with option labels resolved."""
    form = _get_form_or_404(form_id, repo, user_id, email)

    responses = sorted(repo.list_responses(form), key=lambda r: r.submitted_at)
    content = export_csv(
        repo.questions(form),
        ((r.id, r.submitted_at, r.answers) for r in responses),
    )

    filename = f"form_{form.slug}.csv"
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Co-editors
# ---------------------------------------------------------------------------


@router.get("/{form_id}/editors", response_model=list[EditorSchema])
def list_form_editors(
    form_id: uuid.UUID,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)
    return repo.list_editors(form)


@router.post("/{form_id}/editors", response_model=EditorSchema, status_code=201)
async def invite_form_editor(
    form_id: uuid.UUID,
    payload: EditorInvite,
    repo: FormRepository = Depends(get_repository),
    user_id: uuid.UUID = Depends(get_current_user_id),
    email: str | None = Depends(get_current_user_email),
):
    form = _get_form_or_404(form_id, repo, user_id, email)

    try:
        await send_invitation(
            to_email=payload.email,
            form_title=form.title,
            form_slug=form.slug,
            inviter_name=payload.inviter_name or email or "משתמש",
        )
    except InvitationError as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return repo.add_editor(form, payload.email, invited_by=user_id)
