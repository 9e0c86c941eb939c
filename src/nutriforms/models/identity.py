"""Caller identity consumed by the controller and authoring workflow.

Authentication happens upstream; the SDK only sees an opaque user id
and a role flag.
"""

import enum

from pydantic import BaseModel

from nutriforms.errors import PermissionDeniedError


class Role(str, enum.Enum):
    """What the caller is allowed to do."""

    PATIENT = "patient"
    ADMIN = "admin"


class Caller(BaseModel):
    """The authenticated user behind a request."""

    user_id: str
    role: Role = Role.PATIENT

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_admin(caller: Caller, action: str) -> None:
    """Capability gate for admin-only operations.

    Raises:
        PermissionDeniedError: if *caller* is not an admin.
    """
    if not caller.is_admin:
        raise PermissionDeniedError(
            f"Admin role required to {action} (user_id={caller.user_id})"
        )
