"""TemplateAuthoring — admin lifecycle for form and test templates.

Lifecycle per template::

    create_form ──► published (legacy plain forms) ─┐
    create_test ──► draft ──publish──► published     │
                      ▲                    │         │
                      └──── update ◄───────┴─────────┘
    delete: removes every response, then the template

Any edit replaces the whole schema and demotes the template to draft, so
a live test's scoring can never change under patients without the admin
publishing again.

Every mutating entry point checks the caller's admin capability itself;
the HTTP layer is not trusted to have done so.
"""

from __future__ import annotations

import logging
import re
import uuid

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms_db.models.template import FormTemplate
from nutriforms_db.repository import TemplateRepository

from nutriforms.constants import (
    DEFAULT_SECTION_TITLE,
    MIN_TEST_OPTIONS,
    SCHEMA_VERSION,
    SLUG_PATTERN,
)
from nutriforms.errors import (
    AuthoringError,
    SlugConflictError,
    TemplateNotFoundError,
    storage_errors,
)
from nutriforms.models.identity import Caller, require_admin
from nutriforms.models.schema import (
    FieldOption,
    FormField,
    FormSchema,
    FormSection,
    ScoreResult,
    ScoringConfig,
    SuccessBlock,
)
from nutriforms.models.template import AuthoringResult, TemplateInfo
from nutriforms.scoring import check_score_ranges
from nutriforms.views import template_info

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Test authoring input
# ---------------------------------------------------------------------------

class ScoredOption(BaseModel):
    """Answer option of a test question; every option carries a score."""

    value: str
    label: str
    score: int


class ScoredQuestion(BaseModel):
    """A test question; always rendered as a single-select (radio)."""

    key: str
    label: str
    required: bool = True
    options: list[ScoredOption]


# ---------------------------------------------------------------------------
# Structural checks shared by the authoring shapes
# ---------------------------------------------------------------------------

def _check_slug(slug: str) -> None:
    if not re.match(SLUG_PATTERN, slug):
        raise AuthoringError(
            f"Invalid slug '{slug}': use lowercase letters, digits and underscores"
        )


def _check_title(title: str) -> None:
    if not title.strip():
        raise AuthoringError("Title is required")


def _check_fields(fields: list[FormField]) -> None:
    if not fields:
        raise AuthoringError("Add at least one field")
    for field in fields:
        if not field.label.strip():
            raise AuthoringError("Every field needs a label")
        for opt in field.options or []:
            if not opt.label.strip():
                raise AuthoringError(f"Every option of '{field.label}' needs a label")


def _check_results(results: list[ScoreResult]) -> list[str]:
    """Validate result ranges; return non-blocking overlap/gap warnings."""
    if not results:
        raise AuthoringError("Add at least one result range")
    for r in results:
        if not r.result_title.strip() or not r.result_text.strip():
            raise AuthoringError("Every result range needs a title and a text")
        if r.min_score > r.max_score:
            raise AuthoringError(
                f"Range '{r.result_title}': min_score cannot exceed max_score"
            )
    return check_score_ranges(results)


def _check_schema(schema: FormSchema) -> list[str]:
    """Authoring checks for a full schema replacement."""
    _check_fields(schema.all_fields())
    if schema.scoring is not None and schema.scoring.enabled:
        return _check_results(schema.scoring.results)
    return []


class TemplateAuthoring:
    """Admin create/edit/publish/delete workflow for templates."""

    def __init__(self) -> None:
        self._repo = TemplateRepository()

    # ==================================================================
    # Read
    # ==================================================================

    async def list_templates(
        self, db: AsyncSession, caller: Caller, *, active_only: bool = False
    ) -> list[TemplateInfo]:
        """Templates in display order.  Non-admins only ever see published ones."""
        with storage_errors("list_templates"):
            rows = await self._repo.list_templates(
                db, active_only=active_only or not caller.is_admin
            )
        return [template_info(r) for r in rows]

    async def get_template(
        self, db: AsyncSession, caller: Caller, template_id: uuid.UUID
    ) -> TemplateInfo:
        require_admin(caller, "view templates")
        with storage_errors("get_template"):
            row = await self._get(db, template_id)
        return template_info(row)

    # ==================================================================
    # Create
    # ==================================================================

    async def create_form(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        slug: str,
        title: str,
        fields: list[FormField],
        description: str | None = None,
        success: SuccessBlock | None = None,
        order_index: int = 0,
        publish: bool = True,
    ) -> AuthoringResult:
        """Create a plain form (free field types, no scoring).

        Plain forms are published on creation unless ``publish=False``.
        """
        require_admin(caller, "create templates")
        _check_slug(slug)
        _check_title(title)
        _check_fields(fields)

        try:
            schema = FormSchema(
                version=SCHEMA_VERSION,
                sections=[FormSection(title=DEFAULT_SECTION_TITLE, fields=fields)],
                success=success,
            )
        except ValueError as exc:
            raise AuthoringError(str(exc)) from exc
        template = await self._insert(
            db,
            slug=slug,
            title=title,
            description=description,
            schema=schema,
            is_active=publish,
            order_index=order_index,
        )
        return AuthoringResult(template=template)

    async def create_test(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        slug: str,
        title: str,
        questions: list[ScoredQuestion],
        results: list[ScoreResult],
        description: str | None = None,
        order_index: int = 0,
    ) -> AuthoringResult:
        """Create a scored test as a draft.

        Every question becomes a ``radio`` field whose options carry scores;
        at least one result range is required.
        """
        require_admin(caller, "create templates")
        _check_slug(slug)
        _check_title(title)
        if not questions:
            raise AuthoringError("Add at least one question")
        for q in questions:
            if len(q.options) < MIN_TEST_OPTIONS:
                raise AuthoringError(
                    f"Question '{q.label}' needs at least {MIN_TEST_OPTIONS} options"
                )

        try:
            fields = [
                FormField(
                    key=q.key,
                    label=q.label,
                    type="radio",
                    required=q.required,
                    options=[
                        FieldOption(value=o.value, label=o.label, score=o.score)
                        for o in q.options
                    ],
                )
                for q in questions
            ]
            schema = FormSchema(
                version=SCHEMA_VERSION,
                sections=[FormSection(title=DEFAULT_SECTION_TITLE, fields=fields)],
                scoring=ScoringConfig(enabled=True, results=results),
            )
        except ValueError as exc:
            raise AuthoringError(str(exc)) from exc

        _check_fields(fields)
        warnings = _check_results(results)

        template = await self._insert(
            db,
            slug=slug,
            title=title,
            description=description,
            schema=schema,
            is_active=False,
            order_index=order_index,
        )
        return AuthoringResult(template=template, warnings=warnings)

    # ==================================================================
    # Update / publish
    # ==================================================================

    async def update_template(
        self,
        db: AsyncSession,
        caller: Caller,
        template_id: uuid.UUID,
        *,
        title: str,
        schema: FormSchema,
        description: str | None = None,
        order_index: int | None = None,
    ) -> AuthoringResult:
        """Replace title/description/schema; the template becomes a draft.

        Existing responses are left untouched.  The slug cannot change.
        """
        require_admin(caller, "edit templates")
        _check_title(title)
        warnings = _check_schema(schema)

        with storage_errors("update_template"):
            row = await self._get(db, template_id)
            was_active = row.is_active
            row = await self._repo.update_template(
                db,
                row,
                title=title,
                description=description,
                schema_json=schema.to_document(),
                is_active=False,
                order_index=order_index,
            )

        if was_active:
            logger.info("Template %s edited while published; demoted to draft", row.slug)
        else:
            logger.info("Template %s updated", row.slug)
        return AuthoringResult(template=template_info(row), warnings=warnings)

    async def publish_template(
        self, db: AsyncSession, caller: Caller, template_id: uuid.UUID
    ) -> TemplateInfo:
        """Make a draft visible to patients.  The schema is not modified."""
        require_admin(caller, "publish templates")
        with storage_errors("publish_template"):
            row = await self._get(db, template_id)
            if not row.is_active:
                row = await self._repo.set_active(db, row, True)
                logger.info("Template %s published", row.slug)
        return template_info(row)

    # ==================================================================
    # Delete
    # ==================================================================

    async def delete_template(
        self, db: AsyncSession, caller: Caller, template_id: uuid.UUID
    ) -> int:
        """Delete the template and all of its responses (irreversible).

        Returns the number of responses removed.
        """
        require_admin(caller, "delete templates")
        with storage_errors("delete_template"):
            row = await self._get(db, template_id)
            slug = row.slug
            removed = await self._repo.delete_with_responses(db, row)
        logger.info("Template %s deleted with %d responses", slug, removed)
        return removed

    # ==================================================================
    # Internal
    # ==================================================================

    async def _get(self, db: AsyncSession, template_id: uuid.UUID) -> FormTemplate:
        row = await self._repo.get_by_id(db, template_id)
        if row is None:
            raise TemplateNotFoundError(str(template_id))
        return row

    async def _insert(
        self,
        db: AsyncSession,
        *,
        slug: str,
        title: str,
        description: str | None,
        schema: FormSchema,
        is_active: bool,
        order_index: int,
    ) -> TemplateInfo:
        with storage_errors("create_template"):
            if await self._repo.get_by_slug(db, slug) is not None:
                raise SlugConflictError(slug)
            try:
                row = await self._repo.create_template(
                    db,
                    slug=slug,
                    title=title,
                    description=description or None,
                    schema_json=schema.to_document(),
                    is_active=is_active,
                    order_index=order_index,
                )
            except IntegrityError as exc:
                # Lost a race with a concurrent create of the same slug
                raise SlugConflictError(slug) from exc

        logger.info(
            "Template %s created (%s, %s)",
            slug,
            "test" if schema.is_test else "form",
            "published" if is_active else "draft",
        )
        return template_info(row)
