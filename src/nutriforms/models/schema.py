"""Pydantic models for form/test schema documents.

A ``FormSchema`` is the JSON document stored on every template:

  - FormSchema: versioned list of sections plus optional scoring/success
  - FormSection: titled, ordered group of fields
  - FormField: one question; ``type`` picks the input widget and the
    validation rule applied to its answer
  - FieldOption: a selectable value for radio/checkbox fields, with an
    optional integer score used by tests
  - ScoringConfig / ScoreResult: score ranges mapping a total to a result
  - SuccessBlock: completion copy shown after a plain form is submitted

The stored JSON keeps camelCase keys for ``helpText`` and the success
block; both spellings are accepted on input.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nutriforms.constants import CHOICE_FIELD_TYPES, SCHEMA_VERSION

FieldType = Literal["text", "textarea", "number", "radio", "checkbox"]


class FieldOption(BaseModel):
    """A selectable option; ``value`` is the token stored in the answer."""

    value: str
    label: str
    # Only read by the scoring engine, and only for radio fields.
    score: Optional[int] = None


class FormField(BaseModel):
    """One question of a form.

    ``key`` is the answer dictionary key and must be unique across the
    whole schema.  radio/checkbox fields require a non-empty ``options``
    list whose values are unique.
    """

    model_config = ConfigDict(populate_by_name=True)

    key: str
    label: str
    type: FieldType
    required: bool = False
    options: Optional[List[FieldOption]] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")

    @model_validator(mode="after")
    def _chk_options(self):
        if self.type in CHOICE_FIELD_TYPES and not self.options:
            raise ValueError(f"Field '{self.key}' of type {self.type} requires options")
        if self.options:
            values = [o.value for o in self.options]
            if len(values) != len(set(values)):
                raise ValueError(f"Field '{self.key}' has duplicate option values")
        return self

    def option_for(self, value: object) -> FieldOption | None:
        """Return the option whose ``value`` equals *value*, if any."""
        for opt in self.options or []:
            if opt.value == value:
                return opt
        return None


class FormSection(BaseModel):
    """Ordered group of fields; order is presentation order."""

    title: str
    description: Optional[str] = None
    fields: List[FormField] = []


class ScoreResult(BaseModel):
    """Inclusive score range and the result shown when a total falls in it."""

    min_score: int
    max_score: int
    result_title: str
    result_text: str


class ScoringConfig(BaseModel):
    """Marks a schema as a test when enabled with at least one result."""

    enabled: bool = False
    results: List[ScoreResult] = []


class SuccessBlock(BaseModel):
    """Completion copy and call-to-action for plain forms."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    message: str
    primary_cta_label: str = Field(alias="primaryCtaLabel")
    primary_cta_to: str = Field(alias="primaryCtaTo")


class FormSchema(BaseModel):
    """Versioned, replace-only definition of one form or test."""

    version: int = SCHEMA_VERSION
    sections: List[FormSection] = []
    scoring: Optional[ScoringConfig] = None
    success: Optional[SuccessBlock] = None

    @model_validator(mode="after")
    def _chk_unique_keys(self):
        seen: set[str] = set()
        for field in self.all_fields():
            if field.key in seen:
                raise ValueError(f"Duplicate field key '{field.key}'")
            seen.add(field.key)
        return self

    def all_fields(self) -> list[FormField]:
        """Every field across all sections, in presentation order."""
        return [f for section in self.sections for f in section.fields]

    def field_by_key(self, key: str) -> FormField | None:
        for field in self.all_fields():
            if field.key == key:
                return field
        return None

    @property
    def is_test(self) -> bool:
        """True when scoring is enabled with at least one result range."""
        return (
            self.scoring is not None
            and self.scoring.enabled is True
            and len(self.scoring.results) > 0
        )

    def to_document(self) -> dict:
        """Serialise to the JSON document stored on the template row."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
