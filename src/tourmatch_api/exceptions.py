"""FastAPI exception handlers for converting MarketplaceError to HTTP responses.

Status codes follow the error kind, not the individual code:
- 400 Bad Request: business validation failures
- 401 Unauthorized: caller identity missing
- 403 Forbidden: caller does not own the entity
- 404 Not Found: entity does not exist
- 409 Conflict: entity is not in a state that allows the action
- 422 Unprocessable Entity: policy refusals (and request schema failures)

Usage:
    from tourmatch_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from tourmatch.models.errors import ErrorKind, MarketplaceError
from tourmatch.utils.logging import get_logger

from .models.common import format_validation_errors

logger = get_logger(__name__)

# Map ErrorKind to HTTP status codes
ERROR_KIND_TO_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: HTTP_409_CONFLICT,
    ErrorKind.POLICY_VIOLATION: HTTP_422_UNPROCESSABLE_ENTITY,
}


def get_http_status_for_error(kind: ErrorKind) -> int:
    """Get HTTP status code for an ErrorKind, defaulting to 400."""
    return ERROR_KIND_TO_HTTP_STATUS.get(kind, HTTP_400_BAD_REQUEST)


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    """Convert a MarketplaceError to an ErrorResponse JSON body.

    Args:
        request: The incoming request
        exc: The MarketplaceError exception

    Returns:
        JSONResponse with error details and the status for the error kind.
    """
    status_code = get_http_status_for_error(exc.kind)
    logger.info(
        "Request refused",
        extra={
            "path": request.url.path,
            "error_code": exc.code.value,
            "status_code": status_code,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Wrap FastAPI's schema validation errors in the standard error shape."""
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content=format_validation_errors(list(exc.errors())).model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    Internal details are logged, never returned to the client.
    """
    logger.exception("Unhandled exception: %s", exc)

    error_response = {
        "success": False,
        "error_code": "ERR_INTERNAL",
        "message": "An unexpected error occurred",
        "recovery": "Please try again later or contact support",
        "details": None,
    }

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
