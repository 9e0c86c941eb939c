"""SQLAlchemy declarative base for the form tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ``form_templates`` and ``form_responses``."""

    pass
