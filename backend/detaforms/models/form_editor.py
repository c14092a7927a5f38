import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from detaforms.core.database import Base


class FormEditor(Base):
    """Co-editor grant on a form.

    An invitation is recorded by e-mail; ``user_id`` is filled in once the
    invitee signs in, after which the form shows up in their dashboard.
    """

    __tablename__ = "form_editors"
    __table_args__ = (
        UniqueConstraint("form_id", "email", name="uq_form_editors_form_email"),
        Index("ix_form_editors_user_id", "user_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    invited_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    form: Mapped["Form"] = relationship(back_populates="editors")

    def __repr__(self) -> str:
        return f"<FormEditor {self.email} form={self.form_id}>"
