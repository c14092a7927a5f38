import uuid
from datetime import datetime

from sqlalchemy import Enum, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from detaforms.core.database import Base


class Form(Base):
    """Authored form: title, description, ordered questions, style and status.

    ``slug`` is the public, URL-safe identifier used by ``/f/{slug}`` and is
    distinct from the internal ``id``. Closing a form (``status="closed"``)
    never deletes its responses.
    """

    __tablename__ = "forms"
    __table_args__ = (
        Index("ix_forms_created_by", "created_by"),
        Index("ix_forms_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Enum("open", "closed", name="form_status"),
        nullable=False,
        default="open",
        server_default="open",
    )
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    style: Mapped["FormStyle | None"] = relationship(
        back_populates="form", uselist=False, cascade="all, delete-orphan"
    )
    questions: Mapped[list["Question"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
    responses: Mapped[list["FormResponse"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        order_by="FormResponse.submitted_at.desc()",
    )
    editors: Mapped[list["FormEditor"]] = relationship(back_populates="form", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Form {self.title} ({self.status})>"
