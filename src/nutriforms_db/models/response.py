"""FormResponse ORM model — one patient's answers to one template.

Rows are upserted, never appended: the (patient_id, template_id) pair is
unique, so a re-submission overwrites ``answers`` and ``total_score`` in
place while ``submitted_at`` keeps the first submission time.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Integer, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from nutriforms_db.models.base import Base


class FormResponse(Base):
    """Stored answers (+ optional score) keyed by patient and template."""

    __tablename__ = "form_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("form_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Opaque identity from the auth provider
    patient_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # field key -> str | number | list[str], typed per field
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    # Only set when the schema had scoring enabled at submission time
    total_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        # Upsert conflict target
        UniqueConstraint("patient_id", "template_id", name="uq_response_patient_template"),
    )

    def __repr__(self) -> str:
        return (
            f"<FormResponse(id={self.id!s}, template={self.template_id!s}, "
            f"patient={self.patient_id!r}, score={self.total_score})>"
        )
