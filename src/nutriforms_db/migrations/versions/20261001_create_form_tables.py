"""Create form_templates and form_responses.

``form_responses`` references ``form_templates`` with ON DELETE CASCADE
and carries the (patient_id, template_id) unique constraint used as the
upsert conflict target.

Revision ID: 20261001_form_tables
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261001_form_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "form_templates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("schema_json", JSONB(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint("slug", name="uq_form_templates_slug"),
    )
    op.create_index(
        "ix_form_templates_active_order",
        "form_templates",
        ["order_index"],
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "form_responses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "template_id",
            UUID(as_uuid=True),
            sa.ForeignKey("form_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("patient_id", sa.Text(), nullable=False),
        sa.Column("answers", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("total_score", sa.Integer(), nullable=True),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "patient_id", "template_id", name="uq_response_patient_template"
        ),
    )
    op.create_index("ix_form_responses_template_id", "form_responses", ["template_id"])
    op.create_index("ix_form_responses_patient_id", "form_responses", ["patient_id"])


def downgrade() -> None:
    op.drop_index("ix_form_responses_patient_id", table_name="form_responses")
    op.drop_index("ix_form_responses_template_id", table_name="form_responses")
    op.drop_table("form_responses")
    op.drop_index("ix_form_templates_active_order", table_name="form_templates")
    op.drop_table("form_templates")
