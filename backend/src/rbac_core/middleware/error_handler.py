"""Error handling that maps RBAC failures to HTTP responses without leaking internals."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rbac_core.exceptions import (
    AuthenticationRequiredError,
    AuthorizationDeniedError,
    ConflictError,
    NotFoundError,
    RbacError,
    StoreUnavailableError,
    ValidationError,
)
from rbac_core.utils.secure_logging import is_debug_mode, log_warning

logger = logging.getLogger(__name__)

# Safe error messages that can be shown to users
SAFE_ERROR_MESSAGES = {
    400: "Invalid request",
    401: "Authentication required",
    403: "Access denied",
    404: "Resource not found",
    409: "Conflict with existing resource",
    500: "Internal server error",
    503: "Service temporarily unavailable",
}

# Checked in order, first match wins
ERROR_STATUS_CODES: tuple[tuple[type[RbacError], int], ...] = (
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationDeniedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(exc: RbacError) -> int:
    """Get the HTTP status code for an RBAC error."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def rbac_exception_handler(request: Request, exc: RbacError) -> JSONResponse:
    """Handle RBAC exceptions with sanitized messages.

    Unauthenticated and store failures get a generic message; the other
    families carry their own message, which never contains internals.

    Args:
        request: FastAPI request
        exc: RBAC exception

    Returns:
        JSONResponse with sanitized error
    """
    status_code = status_code_for(exc)

    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        log_warning(logger, f"Store unavailable for {request.url.path}", exc)

    if status_code in (
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        status.HTTP_503_SERVICE_UNAVAILABLE,
    ):
        detail = SAFE_ERROR_MESSAGES[status_code]
    else:
        detail = exc.message or SAFE_ERROR_MESSAGES.get(status_code, "Request failed")

    content: dict = {"detail": detail}

    # In debug mode, return details as well
    if is_debug_mode() and exc.details and status_code != status.HTTP_401_UNAUTHORIZED:
        content["details"] = exc.details

    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the RBAC exception handler on an application."""
    app.add_exception_handler(RbacError, rbac_exception_handler)
