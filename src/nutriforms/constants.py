"""Form engine constants shared across the SDK.

These values are referenced by the schema models, validator, controller
and authoring workflow.

The locked-slug default can be overridden via an environment variable so
that deployments can change which evaluations freeze after the first
submission without code changes.
"""

import os

# Current schema format marker written into every authored schema.
SCHEMA_VERSION = 1

# Closed set of field types a schema may declare.
FIELD_TYPES: tuple[str, ...] = ("text", "textarea", "number", "radio", "checkbox")

# Field types that must carry a non-empty ``options`` list.
CHOICE_FIELD_TYPES: set[str] = {"radio", "checkbox"}

# Template slugs: lowercase letters, digits and underscores only.
SLUG_PATTERN = r"^[a-z0-9_]+$"

# Tests need at least this many options per question.
MIN_TEST_OPTIONS = 2

# Section title used when an authoring flow builds a single-section schema.
DEFAULT_SECTION_TITLE = "Questions"

# Per-field validation messages shown next to the offending field.
MSG_REQUIRED = "This field is mandatory"
MSG_SELECT_ONE = "You must select an option"
MSG_SELECT_MANY = "You must select at least one option"
MSG_INVALID_NUMBER = "Enter a valid number"

# Placeholder for unanswered fields in read-only displays.
EMPTY_DISPLAY = "—"

# Completion block used when a schema carries no ``success`` metadata.
DEFAULT_SUCCESS: dict[str, str] = {
    "title": "Thank you!",
    "message": "Your answers have been saved.",
    "primaryCtaLabel": "Back",
    "primaryCtaTo": "/evaluations",
}

# Baseline evaluations that become read-only once answered.
# Comma-separated; overridable via LOCKED_TEMPLATE_SLUGS.
DEFAULT_LOCKED_SLUGS: frozenset[str] = frozenset(
    s.strip()
    for s in os.getenv("LOCKED_TEMPLATE_SLUGS", "baseline_0_2").split(",")
    if s.strip()
)
