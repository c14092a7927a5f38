"""Public form API: anonymous access by slug at ``/f/{slug}``."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from detaforms.core.database import get_db
from detaforms.models.form import Form
from detaforms.schemas.forms import FormResponseSchema, FormSubmission, PublicForm
from detaforms.services import form_engine
from detaforms.services.form_engine import SubmissionAccepted, ValidationFailed
from detaforms.services.forms import FormNotFound, FormRepository
from detaforms.services.style_resolver import background_properties

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_public_form_or_404(slug: str, repo: FormRepository) -> Form:
    try:
        return repo.get_by_slug(slug)
    except FormNotFound:
        raise HTTPException(status_code=404, detail="הטופס לא נמצא")


@router.get("/{slug}", response_model=PublicForm)
def get_public_form(slug: str, db: Session = Depends(get_db)):
    repo = FormRepository(db)
    form = _get_public_form_or_404(slug, repo)
    style = repo.style(form)
    return PublicForm(
        id=form.id,
        slug=form.slug,
        title=form.title,
        description=form.description,
        status=form.status,
        questions=repo.questions(form),
        style=style,
        background=background_properties(style),
    )


@router.post("/{slug}/responses", response_model=FormResponseSchema, status_code=201)
def submit_public_response(slug: str, payload: FormSubmission, db: Session = Depends(get_db)):
    repo = FormRepository(db)
    form = _get_public_form_or_404(slug, repo)
    style = repo.style(form)

    if form.status != "open":
        raise HTTPException(status_code=409, detail=style.closed_message)

    outcome = form_engine.submit(repo.questions(form), payload.answers)
    match outcome:
        case ValidationFailed(unanswered=unanswered):
            logger.info("Submission to form %s rejected: %d unanswered", form.id, len(unanswered))
            raise HTTPException(
                status_code=422,
                detail={
                    "message": style.validation_message,
                    "unanswered": unanswered,
                    "first_error": outcome.first_error,
                },
            )
        case SubmissionAccepted(response=submitted):
            return repo.add_response(form, submitted)
