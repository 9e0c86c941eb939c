"""Admin review endpoints — responses submitted to a template."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms.controller import FormController
from nutriforms.models.identity import Caller
from nutriforms.models.template import ReadOnlyForm, ResponseInfo

from nutriforms_server.dependencies import get_caller, get_controller, get_db

router = APIRouter(prefix="/admin/templates", tags=["responses"])


@router.get("/{template_id}/responses")
async def list_responses(
    template_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    controller: FormController = Depends(get_controller),
) -> list[ResponseInfo]:
    """All responses to the template, most recently updated first."""
    return await controller.list_responses(db, caller, template_id)


@router.get("/{template_id}/responses/{patient_id}")
async def get_response(
    template_id: uuid.UUID,
    patient_id: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    controller: FormController = Depends(get_controller),
) -> ReadOnlyForm:
    """One patient's answers rendered for display, with the score result."""
    return await controller.review_response(db, caller, template_id, patient_id)
