import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from detaforms.core.database import Base


class FormResponse(Base):
    """One respondent's answers to a form.

    The answers field is a JSONB dict keyed by question id (as string); the
    value shape depends on the question type:
        {
            "<text question id>": "Free text",
            "<number question id>": "42",
            "<multiple-choice question id>": "<option id>",
            "<checkbox question id>": {"<option id>": true, "<option id>": false}
        }

    Responses are immutable once submitted; owners may only delete them.
    """

    __tablename__ = "form_responses"
    __table_args__ = (Index("ix_form_responses_form_submitted", "form_id", "submitted_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    answers: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    form: Mapped["Form"] = relationship(back_populates="responses")

    def __repr__(self) -> str:
        return f"<FormResponse form={self.form_id} at={self.submitted_at}>"
