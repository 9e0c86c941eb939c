"""Admin template endpoints — create, edit, publish, delete, export/import.

Every endpoint requires ``X-User-Role: admin``; the authoring workflow
rejects other callers with 403.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms.authoring import ScoredQuestion, TemplateAuthoring
from nutriforms.models.identity import Caller
from nutriforms.models.schema import FormField, FormSchema, ScoreResult, SuccessBlock
from nutriforms.models.template import AuthoringResult, TemplateInfo
from nutriforms.transfer import ImportReport, export_templates, import_templates

from nutriforms_server.dependencies import get_authoring, get_caller, get_db

router = APIRouter(prefix="/admin/templates", tags=["templates"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateFormRequest(BaseModel):
    """Body for POST /admin/templates."""
    slug: str
    title: str
    description: str | None = None
    fields: list[FormField]
    success: SuccessBlock | None = None
    order_index: int = 0
    publish: bool = True


class CreateTestRequest(BaseModel):
    """Body for POST /admin/templates/tests."""
    slug: str
    title: str
    description: str | None = None
    questions: list[ScoredQuestion]
    results: list[ScoreResult]
    order_index: int = 0


class UpdateTemplateRequest(BaseModel):
    """Body for PUT /admin/templates/{template_id}."""
    title: str
    description: str | None = None
    form_schema: FormSchema
    order_index: int | None = None


class DeleteResult(BaseModel):
    """Response body for DELETE /admin/templates/{template_id}."""
    deleted_responses: int


# ------------------------------------------------------------------
# Collection endpoints
# ------------------------------------------------------------------

@router.get("")
async def list_templates(
    active_only: bool = Query(False),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> list[TemplateInfo]:
    """All templates (drafts included) in display order."""
    return await authoring.list_templates(db, caller, active_only=active_only)


@router.post("", status_code=201)
async def create_form(
    body: CreateFormRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> AuthoringResult:
    """Create a plain form.  Raises 409 if the slug is taken."""
    return await authoring.create_form(
        db,
        caller,
        slug=body.slug,
        title=body.title,
        description=body.description,
        fields=body.fields,
        success=body.success,
        order_index=body.order_index,
        publish=body.publish,
    )


@router.post("/tests", status_code=201)
async def create_test(
    body: CreateTestRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> AuthoringResult:
    """Create a scored test as a draft.  Range warnings are returned, not raised."""
    return await authoring.create_test(
        db,
        caller,
        slug=body.slug,
        title=body.title,
        description=body.description,
        questions=body.questions,
        results=body.results,
        order_index=body.order_index,
    )


# Declared before /{template_id} so "export" is not parsed as an id
@router.get("/export")
async def export_all(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    """Every template as a JSON document, responses excluded."""
    return await export_templates(db, caller)


@router.post("/import")
async def import_all(
    items: list[dict[str, Any]],
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> ImportReport:
    """Upsert templates by slug; invalid items are reported and skipped."""
    return await import_templates(db, caller, items)


# ------------------------------------------------------------------
# Item endpoints
# ------------------------------------------------------------------

@router.get("/{template_id}")
async def get_template(
    template_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> TemplateInfo:
    return await authoring.get_template(db, caller, template_id)


@router.put("/{template_id}")
async def update_template(
    template_id: uuid.UUID,
    body: UpdateTemplateRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> AuthoringResult:
    """Replace the template content.  The template always becomes a draft."""
    return await authoring.update_template(
        db,
        caller,
        template_id,
        title=body.title,
        description=body.description,
        schema=body.form_schema,
        order_index=body.order_index,
    )


@router.post("/{template_id}/publish")
async def publish_template(
    template_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> TemplateInfo:
    return await authoring.publish_template(db, caller, template_id)


@router.delete("/{template_id}")
async def delete_template(
    template_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    authoring: TemplateAuthoring = Depends(get_authoring),
) -> DeleteResult:
    """Delete the template and every response to it (irreversible)."""
    removed = await authoring.delete_template(db, caller, template_id)
    return DeleteResult(deleted_responses=removed)
