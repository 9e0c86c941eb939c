"""Dynamic validator — derived at runtime from a ``FormSchema``.

There is no hand-written validator per question set.  ``build_validator``
walks the schema's fields and maps each ``type`` + ``required`` pair to a
rule, then assembles them into a throwaway pydantic model:

  - number:         str or numeric; empty / unparsable -> absent
  - radio:          single string; required means non-empty
  - checkbox:       list of strings; required means at least one item
  - text, textarea: string; required means non-empty (no trimming)

Field keys are passed as aliases so that keys colliding with pydantic
attribute names (``model_config``, ``copy``...) still work.

After validation, ``clean_answers`` drops empty/absent values before the
answers are persisted.  Empty checkbox lists are kept: "nothing selected"
is itself an answer for an optional multi-select.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated, Any, Callable, Mapping

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    create_model,
)
from pydantic_core import PydanticCustomError

from nutriforms.constants import (
    MSG_INVALID_NUMBER,
    MSG_REQUIRED,
    MSG_SELECT_MANY,
    MSG_SELECT_ONE,
)
from nutriforms.errors import FormValidationError
from nutriforms.models.schema import FormField, FormSchema

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-type rules
# ---------------------------------------------------------------------------

def _fail(kind: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(kind, message)


def _parse_number(value: Any) -> int | float | None:
    """Coerce a raw number input; ``None`` means "absent"."""
    if value is None or (isinstance(value, str) and value == ""):
        return None
    # bool is a subclass of int in Python, so reject it explicitly
    if isinstance(value, bool):
        raise _fail("number_type", MSG_INVALID_NUMBER)
    if isinstance(value, (int, float)):
        num = value
    elif isinstance(value, str):
        try:
            num = float(value)
        except ValueError:
            return None
        if math.isfinite(num) and num.is_integer():
            num = int(num)
    else:
        raise _fail("number_type", MSG_INVALID_NUMBER)
    if isinstance(num, float) and not math.isfinite(num):
        return None
    return num


def _none_to(empty: Any) -> Callable[[Any], Any]:
    """Treat an explicit ``None`` like an untouched input."""

    def convert(value: Any) -> Any:
        if value is None:
            return empty() if callable(empty) else empty
        return value

    return convert


def _require(message: str) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        if value is None or len(value) == 0:
            raise _fail("required", message)
        return value

    return check


def _number_rule(field: FormField) -> tuple[Any, Any]:
    def check(value: Any) -> Any:
        if field.required and value is None:
            raise _fail("required", MSG_REQUIRED)
        return value

    annotation = Annotated[Any, BeforeValidator(_parse_number), AfterValidator(check)]
    return annotation, None


def _string_rule(field: FormField, message: str) -> tuple[Any, Any]:
    validators: list[Any] = [BeforeValidator(_none_to(""))]
    if field.required:
        validators.append(AfterValidator(_require(message)))
    return Annotated[(str, *validators)], ""


def _checkbox_rule(field: FormField) -> tuple[Any, Any]:
    validators: list[Any] = [BeforeValidator(_none_to(list))]
    if field.required:
        validators.append(AfterValidator(_require(MSG_SELECT_MANY)))
    return Annotated[(list[str], *validators)], list


def _rule_for(field: FormField) -> tuple[Any, Any]:
    """Return ``(annotation, default)`` for one field."""
    match field.type:
        case "number":
            return _number_rule(field)
        case "radio":
            return _string_rule(field, MSG_SELECT_ONE)
        case "checkbox":
            return _checkbox_rule(field)
        case _:
            # text, textarea
            return _string_rule(field, MSG_REQUIRED)


# ---------------------------------------------------------------------------
# Composite validator
# ---------------------------------------------------------------------------

class FormValidator:
    """Validator assembled from one schema's field list.

    Args:
        schema: the schema whose fields define the rules
    """

    def __init__(self, schema: FormSchema) -> None:
        self.schema = schema
        definitions: dict[str, Any] = {}
        self._defaults: dict[str, Any] = {}
        for idx, field in enumerate(schema.all_fields()):
            annotation, default = _rule_for(field)
            if default is list:
                spec = Field(default_factory=list, alias=field.key, validate_default=True)
            else:
                spec = Field(default=default, alias=field.key, validate_default=True)
            definitions[f"field_{idx}"] = (annotation, spec)
            self._defaults[field.key] = default
        self._model: type[BaseModel] = create_model(
            "FormAnswers",
            __config__=ConfigDict(extra="ignore"),
            **definitions,
        )

    def validate(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Validate raw input and return the normalized answer map.

        Keys not declared by the schema are ignored.

        Raises:
            FormValidationError: with one message per offending field.
        """
        try:
            parsed = self._model.model_validate(self._with_defaults(values))
        except ValidationError as exc:
            errors: dict[str, str] = {}
            for err in exc.errors():
                key = str(err["loc"][0]) if err["loc"] else "__root__"
                errors.setdefault(key, err["msg"])
            logger.debug("Validation failed: %s", errors)
            raise FormValidationError(errors) from None
        return parsed.model_dump(by_alias=True)

    def _with_defaults(self, values: Mapping[str, Any]) -> dict[str, Any]:
        # Every declared key is present, so errors are located by field key
        raw = {k: ([] if d is list else d) for k, d in self._defaults.items()}
        raw.update(values)
        return raw


def build_validator(schema: FormSchema) -> FormValidator:
    """Derive the validator for *schema*.  Never fails for a valid schema."""
    return FormValidator(schema)


def clean_answers(values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop empty-string and absent values; keep empty checkbox lists."""
    return {k: v for k, v in values.items() if v is not None and v != ""}
