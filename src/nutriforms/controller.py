"""FormController — patient-facing load/submit flow for any template.

Stateless controller pattern: each call loads what it needs from the
database, computes the next view, persists changes, and returns the
result.  Nothing is kept in memory between calls, so the UI states map to
calls like this:

    Loading    -> load_form()     -> EditableForm | ReadOnlyForm
    Submitting -> submit()        -> SubmissionResult (Success)
    Error      -> any FormsError raised from either call

The controller accepts an ``AsyncSession`` from the caller so that the
caller (typically a FastAPI endpoint) controls transaction boundaries.

Locked evaluations: slugs listed in the ``FormPolicy`` accept a single
submission.  Once a response exists, ``load_form`` returns a read-only
view (no validator is built) and ``submit`` raises ``ResponseLockedError``.
The first write itself is insert-only, so concurrent first submissions
cannot overwrite each other either.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms_db.models.template import FormTemplate
from nutriforms_db.repository import ResponseRepository, TemplateRepository

from nutriforms.constants import DEFAULT_SUCCESS
from nutriforms.errors import (
    ResponseLockedError,
    ResponseNotFoundError,
    TemplateNotFoundError,
    storage_errors,
)
from nutriforms.models.identity import Caller, require_admin
from nutriforms.models.schema import FormSchema, ScoreResult, SuccessBlock
from nutriforms.models.template import (
    EditableForm,
    FormSummary,
    FormView,
    ReadOnlyForm,
    ResponseInfo,
    SubmissionResult,
)
from nutriforms.policy import FormPolicy
from nutriforms.scoring import calculate_score, get_score_result, has_scoring_enabled
from nutriforms.validator import build_validator, clean_answers
from nutriforms.views import (
    default_values,
    read_only_view,
    response_info,
    stored_schema,
    template_info,
)

logger = logging.getLogger(__name__)


def _resolve_result(schema: FormSchema, score: int | None) -> ScoreResult | None:
    if score is None or schema.scoring is None:
        return None
    return get_score_result(schema.scoring, score)


class FormController:
    """Drives one patient's interaction with one template at a time.

    Args:
        policy: template policy (locked slugs); defaults to env-driven
            defaults when omitted
    """

    def __init__(self, policy: FormPolicy | None = None) -> None:
        self._policy = policy or FormPolicy()
        self._templates = TemplateRepository()
        self._responses = ResponseRepository()

    @property
    def policy(self) -> FormPolicy:
        return self._policy

    # ==================================================================
    # Overview
    # ==================================================================

    async def list_my_forms(self, db: AsyncSession, caller: Caller) -> list[FormSummary]:
        """Published templates in display order with the caller's progress."""
        with storage_errors("list_my_forms"):
            rows = await self._templates.list_templates(db, active_only=True)
            answered = {
                r.template_id
                for r in await self._responses.list_by_patient(db, caller.user_id)
            }

        summaries = []
        for row in rows:
            info = template_info(row)
            completed = row.id in answered
            summaries.append(
                FormSummary(
                    slug=row.slug,
                    title=row.title,
                    description=row.description,
                    is_test=info.is_test,
                    completed=completed,
                    locked=completed and self._policy.is_locked(row.slug),
                    order_index=row.order_index,
                )
            )
        return summaries

    # ==================================================================
    # Loading
    # ==================================================================

    async def load_form(self, db: AsyncSession, caller: Caller, slug: str) -> FormView:
        """Fetch the template and any prior response and build the view.

        Patients only see published templates; admins may also load
        drafts (preview).

        Raises:
            TemplateNotFoundError: no (visible) template has this slug.
        """
        with storage_errors("load_form"):
            row = await self._load_template(db, caller, slug)
            existing = await self._responses.get_response(db, row.id, caller.user_id)

        info = template_info(row)
        prior = response_info(existing) if existing is not None else None

        if prior is not None and self._policy.is_locked(slug):
            return ReadOnlyForm(
                template=info,
                response=prior,
                sections=read_only_view(info.form_schema, prior.answers),
                score_result=_resolve_result(info.form_schema, prior.total_score),
            )

        return EditableForm(
            template=info,
            defaults=default_values(info.form_schema, prior.answers if prior else None),
            response=prior,
        )

    # ==================================================================
    # Submitting
    # ==================================================================

    async def submit(
        self,
        db: AsyncSession,
        caller: Caller,
        slug: str,
        values: Mapping[str, Any],
    ) -> SubmissionResult:
        """Validate, clean, score and persist the caller's answers.

        Raises:
            TemplateNotFoundError: no (visible) template has this slug.
            FormValidationError: one or more fields failed validation;
                nothing is written.
            ResponseLockedError: the template is locked and already answered.
            PersistenceError: the database round-trip failed.
        """
        locked = self._policy.is_locked(slug)

        with storage_errors("load_form"):
            row = await self._load_template(db, caller, slug)
            if locked and await self._responses.get_response(db, row.id, caller.user_id):
                raise ResponseLockedError(slug)

        schema = stored_schema(row)
        answers = clean_answers(build_validator(schema).validate(values))
        total_score = calculate_score(schema, answers) if has_scoring_enabled(schema) else None

        with storage_errors("submit"):
            if locked:
                saved = await self._responses.insert_response_if_absent(
                    db,
                    template_id=row.id,
                    patient_id=caller.user_id,
                    answers=answers,
                    total_score=total_score,
                )
                if saved is None:
                    raise ResponseLockedError(slug)
            else:
                saved = await self._responses.upsert_response(
                    db,
                    template_id=row.id,
                    patient_id=caller.user_id,
                    answers=answers,
                    total_score=total_score,
                )

        logger.info(
            "Response saved: slug=%s patient=%s score=%s",
            slug, caller.user_id, total_score,
        )
        return SubmissionResult(
            response=response_info(saved),
            total_score=total_score,
            score_result=_resolve_result(schema, total_score),
            success=schema.success or SuccessBlock.model_validate(DEFAULT_SUCCESS),
        )

    # ==================================================================
    # Admin review
    # ==================================================================

    async def list_responses(
        self, db: AsyncSession, caller: Caller, template_id: uuid.UUID
    ) -> list[ResponseInfo]:
        """All patients' responses to a template (admin only)."""
        require_admin(caller, "review responses")
        with storage_errors("list_responses"):
            row = await self._templates.get_by_id(db, template_id)
            if row is None:
                raise TemplateNotFoundError(str(template_id))
            responses = await self._responses.list_by_template(db, template_id)
        return [response_info(r) for r in responses]

    async def review_response(
        self,
        db: AsyncSession,
        caller: Caller,
        template_id: uuid.UUID,
        patient_id: str,
    ) -> ReadOnlyForm:
        """One patient's response rendered read-only (admin only)."""
        require_admin(caller, "review responses")
        with storage_errors("review_response"):
            row = await self._templates.get_by_id(db, template_id)
            if row is None:
                raise TemplateNotFoundError(str(template_id))
            existing = await self._responses.get_response(db, template_id, patient_id)
        if existing is None:
            raise ResponseNotFoundError(str(template_id), patient_id)

        info = template_info(row)
        prior = response_info(existing)
        return ReadOnlyForm(
            template=info,
            response=prior,
            sections=read_only_view(info.form_schema, prior.answers),
            score_result=_resolve_result(info.form_schema, prior.total_score),
        )

    # ==================================================================
    # Internal
    # ==================================================================

    async def _load_template(
        self, db: AsyncSession, caller: Caller, slug: str
    ) -> FormTemplate:
        row = await self._templates.get_by_slug(db, slug, active_only=not caller.is_admin)
        if row is None:
            raise TemplateNotFoundError(slug)
        return row
