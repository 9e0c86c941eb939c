"""Exception taxonomy for the form engine.

Every failure the SDK raises is a ``FormsError`` so the HTTP layer (or
any other caller) can convert it into a user-visible message:

  - TemplateNotFoundError / ResponseNotFoundError: lookup yielded nothing
  - FormValidationError: one or more answers failed the dynamic validator
  - AuthoringError: an admin-authored definition is structurally invalid
  - SlugConflictError: a template with that slug already exists
  - ResponseLockedError: a locked evaluation was already answered
  - PermissionDeniedError: the caller lacks the admin capability
  - PersistenceError: the database failed during a fetch or write
  - CorruptTemplateError: a stored template definition no longer parses
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError


class FormsError(Exception):
    """Base class for all form engine errors."""


class TemplateNotFoundError(FormsError):
    def __init__(self, ref: str) -> None:
        super().__init__(f"Template not found: {ref}")
        self.ref = ref


class ResponseNotFoundError(FormsError):
    def __init__(self, template_id: str, patient_id: str) -> None:
        super().__init__(
            f"Response not found: template_id={template_id}, patient_id={patient_id}"
        )


class FormValidationError(FormsError):
    """Answers failed validation; ``errors`` maps field key to message."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__(f"Validation failed for fields: {', '.join(sorted(errors))}")
        self.errors = errors


class AuthoringError(FormsError):
    """An authored template definition was rejected."""


class SlugConflictError(FormsError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"A template with slug '{slug}' already exists")
        self.slug = slug


class ResponseLockedError(FormsError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"Evaluation '{slug}' was already submitted and is locked")
        self.slug = slug


class PermissionDeniedError(FormsError):
    pass


class PersistenceError(FormsError):
    """Storage round-trip failed; safe to retry manually."""


class CorruptTemplateError(FormsError):
    """A stored ``schema_json`` does not parse as a form schema."""

    def __init__(self, slug: str, reason: str) -> None:
        super().__init__(f"Stored schema of template '{slug}' is invalid: {reason}")
        self.slug = slug


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as ``PersistenceError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Storage failure during {operation}") from exc
