"""FormTemplate ORM model — one row per authored form or test.

The schema document lives in a JSONB column and is replaced wholesale on
every edit.  ``is_active`` separates published templates (visible to
patients) from drafts.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from nutriforms_db.models.base import Base


class FormTemplate(Base):
    """A form/test definition plus publication metadata."""

    __tablename__ = "form_templates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Human-readable identifier used in patient URLs; never changes
    slug: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # FormSchema document: {"version", "sections", "scoring"?, "success"?}
    schema_json: Mapped[dict] = mapped_column(JSONB, nullable=False)

    # Published (True) vs draft (False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("slug", name="uq_form_templates_slug"),
        # Patient listings: published templates in display order
        Index(
            "ix_form_templates_active_order",
            "order_index",
            postgresql_where=text("is_active"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<FormTemplate(id={self.id!s}, slug={self.slug!r}, "
            f"is_active={self.is_active})>"
        )
