"""create forms, form_styles, questions, question_options, form_responses, form_editors

Revision ID: c1d2e3f4a5b6
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c1d2e3f4a5b6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUESTION_TYPES = ("text", "textarea", "multiple-choice", "checkbox", "number")


def upgrade() -> None:
    form_status = postgresql.ENUM("open", "closed", name="form_status", create_type=False)
    form_status.create(op.get_bind(), checkfirst=True)
    question_type = postgresql.ENUM(*QUESTION_TYPES, name="question_type", create_type=False)
    question_type.create(op.get_bind(), checkfirst=True)

    # forms
    op.create_table(
        "forms",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", form_status, server_default="open", nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_forms_created_by", "forms", ["created_by"], unique=False)
    op.create_index("ix_forms_status", "forms", ["status"], unique=False)

    # form_styles
    op.create_table(
        "form_styles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("background_type", sa.String(length=20), nullable=True),
        sa.Column("background_color", sa.String(length=50), nullable=True),
        sa.Column("gradient_start", sa.String(length=50), nullable=True),
        sa.Column("gradient_end", sa.String(length=50), nullable=True),
        sa.Column("gradient_direction", sa.String(length=50), nullable=True),
        sa.Column("background_image", sa.Text(), nullable=True),
        sa.Column("text_color", sa.String(length=50), nullable=True),
        sa.Column("primary_color", sa.String(length=50), nullable=True),
        sa.Column("border_radius", sa.String(length=20), nullable=True),
        sa.Column("spacing", sa.String(length=20), nullable=True),
        sa.Column("success_message", sa.Text(), nullable=True),
        sa.Column("closed_message", sa.Text(), nullable=True),
        sa.Column("submit_button_text", sa.String(length=255), nullable=True),
        sa.Column("validation_message", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("form_id"),
    )

    # questions
    op.create_table(
        "questions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("type", question_type, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("required", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_form_position", "questions", ["form_id", "position"], unique=False)

    # question_options
    op.create_table(
        "question_options",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("question_id", sa.UUID(), nullable=False),
        sa.Column("label", sa.String(length=500), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_question_options_question_position",
        "question_options",
        ["question_id", "position"],
        unique=False,
    )

    # form_responses
    op.create_table(
        "form_responses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_form_responses_form_submitted",
        "form_responses",
        ["form_id", "submitted_at"],
        unique=False,
    )

    # form_editors
    op.create_table(
        "form_editors",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("form_id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("invited_by", sa.UUID(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["form_id"], ["forms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("form_id", "email", name="uq_form_editors_form_email"),
    )
    op.create_index("ix_form_editors_user_id", "form_editors", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_form_editors_user_id", table_name="form_editors")
    op.drop_table("form_editors")

    op.drop_index("ix_form_responses_form_submitted", table_name="form_responses")
    op.drop_table("form_responses")

    op.drop_index("ix_question_options_question_position", table_name="question_options")
    op.drop_table("question_options")

    op.drop_index("ix_questions_form_position", table_name="questions")
    op.drop_table("questions")

    op.drop_table("form_styles")

    op.drop_index("ix_forms_status", table_name="forms")
    op.drop_index("ix_forms_created_by", table_name="forms")
    op.drop_table("forms")

    op.execute("DROP TYPE IF EXISTS question_type")
    op.execute("DROP TYPE IF EXISTS form_status")
