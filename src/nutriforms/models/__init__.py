"""Public model re-exports for nutriforms.

Consumers should import from ``nutriforms.models`` rather than reaching
into sub-modules directly.
"""

# --- Schema ---
from nutriforms.models.schema import (
    FieldOption,
    FormField,
    FormSchema,
    FormSection,
    ScoreResult,
    ScoringConfig,
    SuccessBlock,
)

# --- Identity ---
from nutriforms.models.identity import Caller, Role, require_admin

# --- Template / response views ---
from nutriforms.models.template import (
    AuthoringResult,
    DisplayRow,
    DisplaySection,
    EditableForm,
    FormSummary,
    FormView,
    ReadOnlyForm,
    ResponseInfo,
    SubmissionResult,
    TemplateInfo,
    TemplateState,
)

__all__ = [
    # Schema
    "FieldOption",
    "FormField",
    "FormSchema",
    "FormSection",
    "ScoreResult",
    "ScoringConfig",
    "SuccessBlock",
    # Identity
    "Caller",
    "Role",
    "require_admin",
    # Views
    "AuthoringResult",
    "DisplayRow",
    "DisplaySection",
    "EditableForm",
    "FormSummary",
    "FormView",
    "ReadOnlyForm",
    "ResponseInfo",
    "SubmissionResult",
    "TemplateInfo",
    "TemplateState",
]
