"""FastAPI dependency injection providers for lifecycle services.

Services are lazily instantiated and cached with @lru_cache.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── TourRequestService
        ├── ApplicationService
        ├── AcceptanceService
        └── BookingService
                └── CancellationPolicyService

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Query

from tourmatch.models import ListParams
from tourmatch.services.acceptance import AcceptanceService
from tourmatch.services.applications import ApplicationService
from tourmatch.services.bookings import BookingService
from tourmatch.services.cancellation_policy import CancellationPolicyService
from tourmatch.services.dynamodb import get_dynamodb_service
from tourmatch.services.requests import TourRequestService


@lru_cache
def get_request_service() -> TourRequestService:
    """Get cached TourRequestService instance."""
    return TourRequestService(db=get_dynamodb_service())


@lru_cache
def get_application_service() -> ApplicationService:
    """Get cached ApplicationService instance."""
    return ApplicationService(db=get_dynamodb_service())


@lru_cache
def get_acceptance_service() -> AcceptanceService:
    """Get cached AcceptanceService instance."""
    return AcceptanceService(db=get_dynamodb_service())


@lru_cache
def get_cancellation_policy() -> CancellationPolicyService:
    """Get cached CancellationPolicyService instance."""
    return CancellationPolicyService()


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance.

    Returns:
        BookingService configured with DynamoDB and the cancellation policy.
    """
    return BookingService(db=get_dynamodb_service(), policy=get_cancellation_policy())


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB singleton.
    """
    from tourmatch.services.dynamodb import reset_dynamodb_service

    get_request_service.cache_clear()
    get_application_service.cache_clear()
    get_acceptance_service.cache_clear()
    get_cancellation_policy.cache_clear()
    get_booking_service.cache_clear()

    reset_dynamodb_service()


def list_params(
    search: str | None = Query(default=None, description="Case-insensitive text search"),
    sort_by: str | None = Query(default=None, description="Sort key"),
    sort_order: str | None = Query(
        default=None, description="asc or desc (anything else uses the listing default)"
    ),
    page: int = Query(default=1, description="Page number (clamped to >= 1)"),
    limit: int = Query(default=10, description="Page size (clamped to 1-100)"),
) -> ListParams:
    """Common listing query parameters; routes add their own filters."""
    return ListParams(
        search=search, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
    )
