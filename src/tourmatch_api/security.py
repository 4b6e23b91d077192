"""Caller identity resolution.

API Gateway validates the JWT before the request reaches the app. The
identity arrives either as headers (HTTP API claim mapping) or, for REST
APIs with a Cognito authorizer, as claims in the Lambda event that
Mangum exposes under request.scope["aws.event"].
"""

from typing import Any

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from tourmatch.models import ErrorCode, MarketplaceError
from tourmatch.utils.logging import get_logger

logger = get_logger(__name__)


class Caller(BaseModel):
    """Authenticated caller."""

    model_config = ConfigDict(strict=True)

    user_id: str
    name: str | None = None
    email: str | None = None


def _claims(request: Request) -> dict[str, Any]:
    event = request.scope.get("aws.event") or {}
    claims: dict[str, Any] = (
        event.get("requestContext", {}).get("authorizer", {}).get("claims", {})
    )
    return claims


def get_caller(request: Request) -> Caller:
    """Resolve the caller from headers, falling back to authorizer claims.

    Raises:
        MarketplaceError: AUTH_REQUIRED when no user id is present
    """
    claims = _claims(request)
    user_id = request.headers.get("x-user-sub") or claims.get("sub")
    if not user_id:
        logger.warning("Caller identity missing", extra={"path": request.url.path})
        raise MarketplaceError(ErrorCode.AUTH_REQUIRED)

    return Caller(
        user_id=user_id,
        name=request.headers.get("x-user-name") or claims.get("name"),
        email=request.headers.get("x-user-email") or claims.get("email"),
    )

