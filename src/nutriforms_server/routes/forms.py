"""Patient endpoints — forms overview, load a form, submit answers.

All endpoints require the ``X-User-ID`` header.  Admins (``X-User-Role:
admin``) may also load unpublished templates for preview.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms.controller import FormController
from nutriforms.models.identity import Caller
from nutriforms.models.template import FormSummary, FormView, SubmissionResult

from nutriforms_server.dependencies import get_caller, get_controller, get_db

router = APIRouter(tags=["forms"])


class SubmitRequest(BaseModel):
    """Body for POST /forms/{slug}/response."""
    answers: dict[str, Any]


@router.get("/forms")
async def list_forms(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    controller: FormController = Depends(get_controller),
) -> list[FormSummary]:
    """Published forms in display order with the caller's progress."""
    return await controller.list_my_forms(db, caller)


@router.get("/forms/{slug}")
async def load_form(
    slug: str,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    controller: FormController = Depends(get_controller),
) -> FormView:
    """Load a form for input, or read-only when it is a locked evaluation
    the caller already answered.  Dispatch on ``type``.
    """
    return await controller.load_form(db, caller, slug)


@router.post("/forms/{slug}/response")
async def submit_response(
    slug: str,
    body: SubmitRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    controller: FormController = Depends(get_controller),
) -> SubmissionResult:
    """Validate and save the caller's answers (create or overwrite).

    Raises 422 with per-field ``errors`` when validation fails and 409 when
    the evaluation is locked.
    """
    return await controller.submit(db, caller, slug, body.answers)
