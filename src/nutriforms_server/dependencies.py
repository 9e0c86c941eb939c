"""FastAPI dependency injection — provides DB sessions, workflows, and caller identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the SDK convention where repositories call ``flush()`` but never
``commit()``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nutriforms.authoring import TemplateAuthoring
from nutriforms.controller import FormController
from nutriforms.models.identity import Caller, Role
from nutriforms_db.engine import get_session_factory


# ------------------------------------------------------------------
# Database session — transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Workflows — stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_controller(request: Request) -> FormController:
    """Return the FormController singleton from ``app.state``."""
    return request.app.state.controller


def get_authoring(request: Request) -> TemplateAuthoring:
    """Return the TemplateAuthoring singleton from ``app.state``."""
    return request.app.state.authoring


# ------------------------------------------------------------------
# Caller identity — X-User-ID / X-User-Role set by the gateway
# ------------------------------------------------------------------

async def get_caller(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> Caller:
    """Build the ``Caller`` from the identity headers.

    Returns 401 if ``X-User-ID`` is missing.  ``X-User-Role`` defaults to
    ``patient``; an unknown role is rejected with 400.

    When ``TRUSTED_PROXY_SECRET`` is configured, the request must also
    carry a matching ``X-Proxy-Secret`` header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(
                status_code=403,
                detail="X-Proxy-Secret header is required",
            )
        # Constant-time comparison
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    try:
        role = Role((x_user_role or Role.PATIENT.value).lower())
    except ValueError:
        raise HTTPException(status_code=400, detail="Unknown X-User-Role")

    return Caller(user_id=x_user_id, role=role)
