"""nutriforms_db — PostgreSQL persistence layer for form templates and responses.

This package provides the ORM models, async engine factory, and the
repositories the SDK uses to read templates and upsert responses.
"""

from nutriforms_db.engine import get_engine, get_session_factory, session_scope
from nutriforms_db.models.response import FormResponse
from nutriforms_db.models.template import FormTemplate
from nutriforms_db.repository import ResponseRepository, TemplateRepository

__all__ = [
    "FormResponse",
    "FormTemplate",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "ResponseRepository",
    "TemplateRepository",
]
