"""Conversions from ORM rows to public models, and read-only rendering.

Kept apart from the controller so the authoring workflow, the transfer
utilities and the HTTP layer share one mapping.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from nutriforms_db.models.response import FormResponse
from nutriforms_db.models.template import FormTemplate
from pydantic import ValidationError

from nutriforms.constants import EMPTY_DISPLAY
from nutriforms.errors import CorruptTemplateError
from nutriforms.models.schema import FormField, FormSchema
from nutriforms.models.template import (
    DisplayRow,
    DisplaySection,
    ResponseInfo,
    TemplateInfo,
)


def stored_schema(row: FormTemplate) -> FormSchema:
    """Parse a row's ``schema_json``, raising ``CorruptTemplateError`` if it is invalid."""
    try:
        return FormSchema.model_validate(row.schema_json)
    except ValidationError as exc:
        raise CorruptTemplateError(row.slug, f"{exc.error_count()} error(s)") from exc


def template_info(row: FormTemplate) -> TemplateInfo:
    return TemplateInfo(
        id=row.id,
        slug=row.slug,
        title=row.title,
        description=row.description,
        form_schema=stored_schema(row),
        is_active=row.is_active,
        order_index=row.order_index,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def response_info(row: FormResponse) -> ResponseInfo:
    return ResponseInfo(
        id=row.id,
        template_id=row.template_id,
        patient_id=row.patient_id,
        answers=dict(row.answers or {}),
        total_score=row.total_score,
        submitted_at=row.submitted_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Editable defaults
# ---------------------------------------------------------------------------

def default_values(
    schema: FormSchema, existing: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Initial input state: prior answers, else the per-type empty value.

    ``""`` for text/textarea/number/radio, ``[]`` for checkbox.  Keys of
    *existing* that the schema no longer declares are dropped.
    """
    existing = existing or {}
    defaults: dict[str, Any] = {}
    for field in schema.all_fields():
        value = existing.get(field.key)
        if value is None:
            value = [] if field.type == "checkbox" else ""
        defaults[field.key] = value
    return defaults


# ---------------------------------------------------------------------------
# Read-only display
# ---------------------------------------------------------------------------

def display_value(value: Any) -> str:
    """Render a stored answer as text."""
    if value is None or value == "" or value == []:
        return EMPTY_DISPLAY
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def display_answer(field: FormField, value: Any) -> str:
    """Like ``display_value`` but shows option labels for choice fields."""
    if field.options:
        if isinstance(value, str):
            opt = field.option_for(value)
            if opt is not None:
                return opt.label
        elif isinstance(value, list) and value:
            labels = []
            for item in value:
                opt = field.option_for(item)
                labels.append(opt.label if opt is not None else str(item))
            return ", ".join(labels)
    return display_value(value)


def read_only_view(
    schema: FormSchema, answers: Mapping[str, Any]
) -> list[DisplaySection]:
    """Every section/field of *schema* with the stored answer rendered."""
    return [
        DisplaySection(
            title=section.title,
            description=section.description,
            rows=[
                DisplayRow(
                    key=f.key,
                    label=f.label,
                    value=display_answer(f, answers.get(f.key)),
                )
                for f in section.fields
            ],
        )
        for section in schema.sections
    ]
