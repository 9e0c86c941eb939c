"""nutriforms — dynamic form and scored-test engine for the nutrition program.

Public API:
    FormController     — patient flow: overview, load (editable/read-only), submit
    TemplateAuthoring  — admin flow: create form/test, edit, publish, delete
    FormPolicy         — which template slugs are locked after one submission
    FormValidator      — validator generated from a schema's field rules

Scoring helpers:
    calculate_score    — sum of selected radio option scores
    get_score_result   — first result range containing a score
    check_score_ranges — overlap/gap warnings for result ranges

Errors:
    FormsError and its subclasses (see ``nutriforms.errors``)
"""

from nutriforms.authoring import ScoredOption, ScoredQuestion, TemplateAuthoring
from nutriforms.controller import FormController
from nutriforms.errors import (
    AuthoringError,
    CorruptTemplateError,
    FormsError,
    FormValidationError,
    PermissionDeniedError,
    PersistenceError,
    ResponseLockedError,
    ResponseNotFoundError,
    SlugConflictError,
    TemplateNotFoundError,
)
from nutriforms.policy import FormPolicy, load_form_policy
from nutriforms.scoring import (
    calculate_score,
    check_score_ranges,
    get_score_result,
    has_scoring_enabled,
)
from nutriforms.validator import FormValidator, build_validator, clean_answers

__all__ = [
    # Workflows
    "FormController",
    "TemplateAuthoring",
    "ScoredOption",
    "ScoredQuestion",
    # Policy
    "FormPolicy",
    "load_form_policy",
    # Validation & scoring
    "FormValidator",
    "build_validator",
    "clean_answers",
    "calculate_score",
    "check_score_ranges",
    "get_score_result",
    "has_scoring_enabled",
    # Errors
    "AuthoringError",
    "CorruptTemplateError",
    "FormsError",
    "FormValidationError",
    "PermissionDeniedError",
    "PersistenceError",
    "ResponseLockedError",
    "ResponseNotFoundError",
    "SlugConflictError",
    "TemplateNotFoundError",
]
