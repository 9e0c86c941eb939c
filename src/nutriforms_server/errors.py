"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises typed ``FormsError`` subclasses.  Rather than catching these
in every route, one handler looks the class up in a table and picks the
status code and the client-safe message.  Internal details (patient ids,
template ids, SQL errors) stay in the server log.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

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

logger = logging.getLogger(__name__)

_UNAVAILABLE = "The service is temporarily unavailable, please try again"

# --- Exception class → (status, client message) ---
# Checked in order; first isinstance match wins.  A message of None means
# the exception text itself is safe to show.
_FORMS_ERRORS: list[tuple[type[FormsError], int, str | None]] = [
    (TemplateNotFoundError, 404, "Form not found"),
    (ResponseNotFoundError, 404, "Response not found"),
    (FormValidationError, 422, "Some answers are invalid"),
    (AuthoringError, 422, None),
    (SlugConflictError, 409, None),
    (ResponseLockedError, 409, "This evaluation was already submitted"),
    (PermissionDeniedError, 403, "Admin role required"),
    (PersistenceError, 503, _UNAVAILABLE),
    (CorruptTemplateError, 500, "This form cannot be displayed right now"),
]


async def forms_error_handler(request: Request, exc: FormsError) -> JSONResponse:
    """Map a ``FormsError`` to its HTTP response.

    Validation failures also carry the per-field ``errors`` mapping so the
    client can show each message next to its input.
    """
    status, safe = 400, "Invalid request"
    for cls, code, message in _FORMS_ERRORS:
        if isinstance(exc, cls):
            status, safe = code, message if message is not None else str(exc)
            break

    if isinstance(exc, (PersistenceError, CorruptTemplateError)):
        logger.error("%s at %s: %s", type(exc).__name__, request.url, exc.__cause__ or exc)
    else:
        logger.warning("%s [%d] at %s: %s", type(exc).__name__, status, request.url, exc)

    content: dict = {"detail": safe}
    if isinstance(exc, FormValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status, content=content)


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures raised outside the SDK (e.g. on commit) → 503."""
    logger.error("Storage failure at %s: %s", request.url, exc)
    return JSONResponse(status_code=503, content={"detail": _UNAVAILABLE})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
