"""create form and response tables

Revision ID: 0001_create_forms
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_create_forms"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "forms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("header_image", sa.Text(), nullable=True),
        sa.Column("questions_json", sa.JSON(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("share_url", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_forms_share_url", "forms", ["share_url"], unique=True)

    op.create_table(
        "form_responses",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("form_id", sa.String(length=36), sa.ForeignKey("forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("answers_json", sa.JSON(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_form_responses_form_id", "form_responses", ["form_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_form_responses_form_id", table_name="form_responses")
    op.drop_table("form_responses")

    op.drop_index("ix_forms_share_url", table_name="forms")
    op.drop_table("forms")
