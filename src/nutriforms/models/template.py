"""Template/response view models: the contract between the SDK and API callers.

These models are intentionally decoupled from the ORM models in
``nutriforms_db`` so that API consumers never see database internals.

View types returned by the controller:
  - EditableForm: schema plus hydrated defaults, ready for input
  - ReadOnlyForm: a locked evaluation's stored answers, display only
  - SubmissionResult: outcome of a successful submit (score + result)

``FormView`` covers both load outcomes so callers can dispatch on ``type``.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, computed_field

from nutriforms.models.schema import FormSchema, ScoreResult, SuccessBlock


class TemplateState(str, enum.Enum):
    """Publication state derived from ``is_active``.

    Transitions:
        draft -> published   (publish)
        published -> draft   (any edit)
    """

    DRAFT = "draft"
    PUBLISHED = "published"


class TemplateInfo(BaseModel):
    """Public view of a form template."""

    id: uuid.UUID
    slug: str
    title: str
    description: str | None = None
    form_schema: FormSchema
    is_active: bool
    order_index: int
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def state(self) -> TemplateState:
        return TemplateState.PUBLISHED if self.is_active else TemplateState.DRAFT

    @computed_field
    @property
    def is_test(self) -> bool:
        return self.form_schema.is_test


class ResponseInfo(BaseModel):
    """Public view of one patient's stored answers for one template."""

    id: uuid.UUID
    template_id: uuid.UUID
    patient_id: str
    answers: dict[str, Any]
    total_score: int | None = None
    submitted_at: datetime
    updated_at: datetime


class DisplayRow(BaseModel):
    """One answered (or unanswered) field in a read-only display."""

    key: str
    label: str
    value: str


class DisplaySection(BaseModel):
    title: str
    description: str | None = None
    rows: list[DisplayRow]


class EditableForm(BaseModel):
    """Controller view: the patient may fill in (or edit) the form."""

    type: Literal["editable"] = "editable"
    template: TemplateInfo
    defaults: dict[str, Any]
    # Prior submission being edited, if any
    response: ResponseInfo | None = None


class ReadOnlyForm(BaseModel):
    """Controller view: locked evaluation already answered; display only."""

    type: Literal["read_only"] = "read_only"
    template: TemplateInfo
    response: ResponseInfo
    sections: list[DisplaySection]
    score_result: ScoreResult | None = None


FormView = EditableForm | ReadOnlyForm


class SubmissionResult(BaseModel):
    """Outcome of a successful submission.

    When the schema is a test, ``total_score`` is set and ``score_result``
    holds the matching bucket (or None when no range covers the score).
    ``success`` is always filled so callers have a generic fallback.
    """

    response: ResponseInfo
    total_score: int | None = None
    score_result: ScoreResult | None = None
    success: SuccessBlock


class FormSummary(BaseModel):
    """One entry of a patient's forms overview."""

    slug: str
    title: str
    description: str | None = None
    is_test: bool
    completed: bool
    locked: bool
    order_index: int


class AuthoringResult(BaseModel):
    """Template saved by an authoring action plus non-blocking warnings."""

    template: TemplateInfo
    warnings: list[str] = []
