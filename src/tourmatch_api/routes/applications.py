"""Guide application endpoints.

Provides REST endpoints for:
- Submitting (or resubmitting) an application to a request
- Listing and reading a request's applications
- Editing a pending application (owning guide only)
- Accepting an application (request owner only)
- Listing the caller's own applications across requests
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from tourmatch.models import (
    Application,
    ApplicationStatus,
    ApplicationSubmit,
    ApplicationUpdate,
    GuideIdentity,
    ListParams,
)
from tourmatch.services.acceptance import AcceptanceService
from tourmatch.services.applications import ApplicationService

from ..dependencies import get_acceptance_service, get_application_service, list_params
from ..models.applications import AcceptanceResponse, ApplicationListResponse
from ..security import Caller, get_caller

router = APIRouter(tags=["applications"])


@router.post(
    "/requests/{request_id}/applications",
    summary="Apply to a tour request",
    description="""
Submit the caller's application to an open request. Submitting again
replaces the price and cover letter of the pending application.

**Notes:**
- `proposed_price` must be greater than 0
- `cover_letter` must not be blank
""",
    response_model=Application,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid field"},
        404: {"description": "Request not found"},
        409: {"description": "Request not open or application already resolved"},
        422: {"description": "Request has reached its application limit"},
    },
)
async def submit_application(
    request_id: str,
    body: ApplicationSubmit,
    caller: Caller = Depends(get_caller),
    service: ApplicationService = Depends(get_application_service),
) -> Application:
    """Create or overwrite the caller's application."""
    guide = GuideIdentity(guide_id=caller.user_id, guide_name=caller.name, guide_email=caller.email)
    return service.submit_application(request_id, guide, body)


@router.get(
    "/requests/{request_id}/applications",
    summary="List applications of a request",
    description="""
Sort keys: `proposed_price`, `created_at`, `updated_at`, `guide_name`
(default `updated_at` desc).
""",
    response_model=ApplicationListResponse,
    responses={404: {"description": "Request not found"}},
)
async def list_applications(
    request_id: str,
    params: ListParams = Depends(list_params),
    status: ApplicationStatus | None = Query(default=None),
    min_price: float | None = Query(default=None),
    max_price: float | None = Query(default=None),
    service: ApplicationService = Depends(get_application_service),
) -> ApplicationListResponse:
    """Search, filter, sort and paginate a request's applications."""
    params.filters = {"status": status, "min_price": min_price, "max_price": max_price}
    return service.list_applications(request_id, params)


@router.get(
    "/requests/{request_id}/applications/{application_id}",
    summary="Get application",
    response_model=Application,
    responses={404: {"description": "Application not found"}},
)
async def get_application(
    request_id: str,
    application_id: str,
    service: ApplicationService = Depends(get_application_service),
) -> Application:
    """Get one application of a request."""
    return service.get_application(request_id, application_id)


@router.patch(
    "/requests/{request_id}/applications/{application_id}",
    summary="Edit application",
    description="Change price and/or cover letter of a pending application. **Owning guide only.**",
    response_model=Application,
    responses={
        400: {"description": "Invalid field"},
        403: {"description": "Caller is not the application's guide"},
        404: {"description": "Application not found"},
        409: {"description": "Application is no longer pending"},
    },
)
async def edit_application(
    request_id: str,
    application_id: str,
    body: ApplicationUpdate,
    caller: Caller = Depends(get_caller),
    service: ApplicationService = Depends(get_application_service),
) -> Application:
    """Edit the caller's pending application."""
    return service.edit_application(request_id, application_id, caller.user_id, body)


@router.post(
    "/requests/{request_id}/applications/{application_id}/accept",
    summary="Accept application",
    description="""
Accept an application. In one atomic step the request becomes `accepted`,
this application `selected`, every other application `rejected`, and a
`pending` booking is created at the proposed price.

**Request owner only.**
""",
    response_model=AcceptanceResponse,
    status_code=HTTP_201_CREATED,
    responses={
        403: {"description": "Caller does not own the request"},
        404: {"description": "Request or application not found"},
        409: {"description": "Request already resolved or application not pending"},
    },
)
async def accept_application(
    request_id: str,
    application_id: str,
    caller: Caller = Depends(get_caller),
    service: AcceptanceService = Depends(get_acceptance_service),
) -> AcceptanceResponse:
    """Accept an application and create its booking."""
    booking = service.accept_application(request_id, application_id, tourist_id=caller.user_id)
    return AcceptanceResponse(
        request_id=request_id, application_id=application_id, booking=booking
    )


@router.get(
    "/guides/me/applications",
    summary="List my applications",
    description="""
Every application the caller has submitted, across all requests.

Sort keys: `start_date`, `proposed_price`, `agreed_price`, `created_at`,
`updated_at` (default `updated_at` desc).
""",
    response_model=ApplicationListResponse,
)
async def list_my_applications(
    params: ListParams = Depends(list_params),
    status: ApplicationStatus | None = Query(default=None),
    min_proposed_price: float | None = Query(default=None),
    max_proposed_price: float | None = Query(default=None),
    min_agreed_price: float | None = Query(default=None),
    max_agreed_price: float | None = Query(default=None),
    caller: Caller = Depends(get_caller),
    service: ApplicationService = Depends(get_application_service),
) -> ApplicationListResponse:
    """List the caller's applications."""
    params.filters = {
        "status": status,
        "min_proposed_price": min_proposed_price,
        "max_proposed_price": max_proposed_price,
        "min_agreed_price": min_agreed_price,
        "max_agreed_price": max_agreed_price,
    }
    return service.list_guide_applications(caller.user_id, params)
