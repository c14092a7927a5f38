import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from detaforms.core.database import Base


class FormStyle(Base):
    """Visual presentation of a form, one row per form.

    Columns use the snake_case naming; camelCase variants only exist in API
    payloads and are folded in by the style resolver before reaching here.
    Every column is nullable so a freshly created form renders with defaults.
    """

    __tablename__ = "form_styles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    background_type: Mapped[str | None] = mapped_column(String(20))
    background_color: Mapped[str | None] = mapped_column(String(50))
    gradient_start: Mapped[str | None] = mapped_column(String(50))
    gradient_end: Mapped[str | None] = mapped_column(String(50))
    gradient_direction: Mapped[str | None] = mapped_column(String(50))
    background_image: Mapped[str | None] = mapped_column(Text)
    text_color: Mapped[str | None] = mapped_column(String(50))
    primary_color: Mapped[str | None] = mapped_column(String(50))
    border_radius: Mapped[str | None] = mapped_column(String(20))
    spacing: Mapped[str | None] = mapped_column(String(20))
    success_message: Mapped[str | None] = mapped_column(Text)
    closed_message: Mapped[str | None] = mapped_column(Text)
    submit_button_text: Mapped[str | None] = mapped_column(String(255))
    validation_message: Mapped[str | None] = mapped_column(Text)

    form: Mapped["Form"] = relationship(back_populates="style")

    def __repr__(self) -> str:
        return f"<FormStyle form={self.form_id} ({self.background_type or 'solid'})>"
