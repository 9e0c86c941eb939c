"""ORM models for nutriforms_db."""

from nutriforms_db.models.base import Base
from nutriforms_db.models.response import FormResponse
from nutriforms_db.models.template import FormTemplate

__all__ = ["Base", "FormResponse", "FormTemplate"]
