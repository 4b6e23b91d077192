"""Tour request endpoints.

Provides REST endpoints for:
- Posting a tour request (caller becomes the owning tourist)
- Browsing and reading requests (public)
- Editing an open request (owner only)
- Cancelling a request (owner only, soft cancel)
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from tourmatch.models import (
    ListParams,
    RequestStatus,
    TourRequest,
    TourRequestCreate,
    TourRequestUpdate,
)
from tourmatch.services.requests import TourRequestService

from ..dependencies import get_request_service, list_params
from ..models.requests import TourRequestListResponse
from ..security import Caller, get_caller

router = APIRouter(tags=["requests"])


@router.post(
    "/requests",
    summary="Post a tour request",
    description="""
Post a new tour request. The caller becomes the owning tourist.

**Notes:**
- `budget` and `number_of_people` must be greater than 0
- `start_date` must be on or before `end_date`
- The request starts `open` and accepts guide applications until one is accepted
""",
    response_model=TourRequest,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Request created"},
        400: {"description": "Invalid field (details.field names it)"},
        401: {"description": "Caller identity required"},
    },
)
async def create_request(
    body: TourRequestCreate,
    caller: Caller = Depends(get_caller),
    service: TourRequestService = Depends(get_request_service),
) -> TourRequest:
    """Create an open tour request owned by the caller."""
    return service.create_request(caller.user_id, body, tourist_name=caller.name)


@router.get(
    "/requests",
    summary="List tour requests",
    description="""
Browse tour requests with search, filters, sorting and pagination.

Search covers title, destination, description, tour type and tourist name.
Sort keys: `budget`, `start_date`, `application_count`, `created_at`
(default `created_at` desc).
""",
    response_model=TourRequestListResponse,
)
async def list_requests(
    params: ListParams = Depends(list_params),
    tour_type: str | None = Query(default=None),
    status: RequestStatus | None = Query(default=None),
    tourist_id: str | None = Query(default=None),
    min_budget: float | None = Query(default=None),
    max_budget: float | None = Query(default=None),
    min_people: int | None = Query(default=None),
    max_people: int | None = Query(default=None),
    start_date_from: date | None = Query(default=None),
    start_date_to: date | None = Query(default=None),
    service: TourRequestService = Depends(get_request_service),
) -> TourRequestListResponse:
    """Search, filter, sort and paginate tour requests."""
    params.filters = {
        "tour_type": tour_type,
        "status": status,
        "tourist_id": tourist_id,
        "min_budget": min_budget,
        "max_budget": max_budget,
        "min_people": min_people,
        "max_people": max_people,
        "start_date_from": start_date_from,
        "start_date_to": start_date_to,
    }
    return service.list_requests(params)


@router.get(
    "/requests/{request_id}",
    summary="Get tour request",
    response_model=TourRequest,
    responses={404: {"description": "Request not found"}},
)
async def get_request(
    request_id: str,
    service: TourRequestService = Depends(get_request_service),
) -> TourRequest:
    """Get a tour request by ID."""
    return service.get_request(request_id)


@router.patch(
    "/requests/{request_id}",
    summary="Edit tour request",
    description="""
Edit an open tour request. Only the fields present in the body change.

**Owner only.** Requests that are accepted, completed or cancelled
cannot be edited (409).
""",
    response_model=TourRequest,
    responses={
        400: {"description": "Invalid field"},
        403: {"description": "Caller does not own the request"},
        404: {"description": "Request not found"},
        409: {"description": "Request is not open"},
    },
)
async def update_request(
    request_id: str,
    body: TourRequestUpdate,
    caller: Caller = Depends(get_caller),
    service: TourRequestService = Depends(get_request_service),
) -> TourRequest:
    """Apply a partial update to an open request."""
    return service.update_request(request_id, body, tourist_id=caller.user_id)


@router.delete(
    "/requests/{request_id}",
    summary="Cancel tour request",
    description="""
Cancel a tour request. The request is kept with status `cancelled`;
cancelling twice is harmless. Completed requests cannot be cancelled.
""",
    response_model=TourRequest,
    responses={
        403: {"description": "Caller does not own the request"},
        404: {"description": "Request not found"},
        409: {"description": "Request is completed"},
    },
)
async def cancel_request(
    request_id: str,
    caller: Caller = Depends(get_caller),
    service: TourRequestService = Depends(get_request_service),
) -> TourRequest:
    """Soft-cancel a request."""
    return service.cancel_request(request_id, tourist_id=caller.user_id)
