"""Async repositories for ``form_templates`` and ``form_responses``.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods ``flush()`` but never ``commit()``.

The repositories avoid business rules (draft demotion, locking, role
checks) — those live in the SDK.  They do own the storage-level
guarantees: the response upsert is a single ``INSERT ... ON CONFLICT``
statement keyed on (patient_id, template_id).
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms_db.models.response import FormResponse
from nutriforms_db.models.template import FormTemplate


class TemplateRepository:
    """Read/write operations on the ``form_templates`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_template(
        self,
        db: AsyncSession,
        *,
        slug: str,
        title: str,
        description: str | None,
        schema_json: dict[str, Any],
        is_active: bool,
        order_index: int = 0,
    ) -> FormTemplate:
        """Insert a new template row and return it.

        A duplicate slug surfaces as ``IntegrityError`` on flush.
        """
        template = FormTemplate(
            slug=slug,
            title=title,
            description=description,
            schema_json=schema_json,
            is_active=is_active,
            order_index=order_index,
        )
        db.add(template)
        await db.flush()
        return template

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(
        self, db: AsyncSession, template_id: uuid.UUID
    ) -> FormTemplate | None:
        return await db.get(FormTemplate, template_id)

    async def get_by_slug(
        self, db: AsyncSession, slug: str, *, active_only: bool = False
    ) -> FormTemplate | None:
        """Fetch a template by slug, optionally only if published."""
        stmt = select(FormTemplate).where(FormTemplate.slug == slug)
        if active_only:
            stmt = stmt.where(FormTemplate.is_active.is_(True))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_templates(
        self, db: AsyncSession, *, active_only: bool = False
    ) -> list[FormTemplate]:
        """List templates in display order (``order_index``, then age)."""
        stmt = select(FormTemplate).order_by(
            FormTemplate.order_index.asc(), FormTemplate.created_at.asc()
        )
        if active_only:
            stmt = stmt.where(FormTemplate.is_active.is_(True))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_template(
        self,
        db: AsyncSession,
        template: FormTemplate,
        *,
        title: str,
        description: str | None,
        schema_json: dict[str, Any],
        is_active: bool,
        order_index: int | None = None,
    ) -> FormTemplate:
        """Replace a template's content.  The slug is never touched."""
        template.title = title
        template.description = description
        template.schema_json = schema_json
        template.is_active = is_active
        if order_index is not None:
            template.order_index = order_index
        template.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return template

    async def set_active(
        self, db: AsyncSession, template: FormTemplate, is_active: bool
    ) -> FormTemplate:
        template.is_active = is_active
        template.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return template

    async def upsert_by_slug(
        self, db: AsyncSession, values: dict[str, Any]
    ) -> FormTemplate:
        """Insert or overwrite a template identified by ``values["slug"]``.

        Used by bulk import.  ``id`` is always generated here; an existing
        row keeps its id and ``created_at``.
        """
        now = datetime.now(timezone.utc)
        stmt = pg_insert(FormTemplate).values(
            id=uuid.uuid4(),
            slug=values["slug"],
            title=values["title"],
            description=values.get("description"),
            schema_json=values["schema_json"],
            is_active=values.get("is_active", False),
            order_index=values.get("order_index", 0),
            created_at=values.get("created_at") or now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[FormTemplate.slug],
            set_={
                "title": stmt.excluded.title,
                "description": stmt.excluded.description,
                "schema_json": stmt.excluded.schema_json,
                "is_active": stmt.excluded.is_active,
                "order_index": stmt.excluded.order_index,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(FormTemplate)
        orm_stmt = (
            select(FormTemplate)
            .from_statement(stmt)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(orm_stmt)
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_with_responses(
        self, db: AsyncSession, template: FormTemplate
    ) -> int:
        """Delete every response to *template*, then the template itself.

        Returns the number of responses removed.
        """
        result = await db.execute(
            delete(FormResponse).where(FormResponse.template_id == template.id)
        )
        await db.delete(template)
        await db.flush()
        return result.rowcount or 0


class ResponseRepository:
    """Read/write operations on the ``form_responses`` table."""

    async def get_response(
        self, db: AsyncSession, template_id: uuid.UUID, patient_id: str
    ) -> FormResponse | None:
        """Fetch the response for the unique (patient, template) pair."""
        stmt = select(FormResponse).where(
            FormResponse.template_id == template_id,
            FormResponse.patient_id == patient_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_template(
        self, db: AsyncSession, template_id: uuid.UUID
    ) -> list[FormResponse]:
        """All responses to a template, most recently updated first."""
        stmt = (
            select(FormResponse)
            .where(FormResponse.template_id == template_id)
            .order_by(FormResponse.updated_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_patient(
        self, db: AsyncSession, patient_id: str
    ) -> list[FormResponse]:
        stmt = select(FormResponse).where(FormResponse.patient_id == patient_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def upsert_response(
        self,
        db: AsyncSession,
        *,
        template_id: uuid.UUID,
        patient_id: str,
        answers: dict[str, Any],
        total_score: int | None,
    ) -> FormResponse:
        """Write answers + score in one row-level upsert.

        On conflict the answers, score and ``updated_at`` are replaced;
        ``submitted_at`` keeps its original value.
        """
        now = datetime.now(timezone.utc)
        stmt = pg_insert(FormResponse).values(
            id=uuid.uuid4(),
            template_id=template_id,
            patient_id=patient_id,
            answers=answers,
            total_score=total_score,
            submitted_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[FormResponse.patient_id, FormResponse.template_id],
            set_={
                "answers": stmt.excluded.answers,
                "total_score": stmt.excluded.total_score,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(FormResponse)
        orm_stmt = (
            select(FormResponse)
            .from_statement(stmt)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(orm_stmt)
        return result.scalar_one()

    async def insert_response_if_absent(
        self,
        db: AsyncSession,
        *,
        template_id: uuid.UUID,
        patient_id: str,
        answers: dict[str, Any],
        total_score: int | None,
    ) -> FormResponse | None:
        """Insert a response only if none exists yet.

        Returns None when a row for (patient, template) was already there;
        the existing row is left untouched.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            pg_insert(FormResponse)
            .values(
                id=uuid.uuid4(),
                template_id=template_id,
                patient_id=patient_id,
                answers=answers,
                total_score=total_score,
                submitted_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(
                index_elements=[FormResponse.patient_id, FormResponse.template_id],
            )
            .returning(FormResponse)
        )
        orm_stmt = select(FormResponse).from_statement(stmt)
        result = await db.execute(orm_stmt)
        return result.scalar_one_or_none()
