"""Booking endpoints.

Provides REST endpoints for:
- Listing and reading bookings
- The guide's confirm/decline response to a pending booking
- Tourist cancellation (subject to the 24-hour rule)
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from tourmatch.models import Booking, BookingStatus, ListParams
from tourmatch.services.bookings import BookingService
from tourmatch.services.cancellation_policy import CancellationPolicyService

from ..dependencies import get_booking_service, get_cancellation_policy, list_params
from ..models.bookings import (
    BookingDecisionRequest,
    BookingListResponse,
    CancellationPolicyResponse,
)
from ..security import Caller, get_caller

router = APIRouter(tags=["bookings"])


@router.get(
    "/bookings",
    summary="List bookings",
    description="""
Sort keys: `start_date`, `end_date`, `agreed_price`, `title`,
`destination`, `status`, `created_at` (default `start_date` asc).
""",
    response_model=BookingListResponse,
)
async def list_bookings(
    params: ListParams = Depends(list_params),
    status: BookingStatus | None = Query(default=None),
    guide_id: str | None = Query(default=None),
    tourist_id: str | None = Query(default=None),
    min_price: float | None = Query(default=None),
    max_price: float | None = Query(default=None),
    start_date_from: date | None = Query(default=None),
    start_date_to: date | None = Query(default=None),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Search, filter, sort and paginate bookings."""
    params.filters = {
        "status": status,
        "guide_id": guide_id,
        "tourist_id": tourist_id,
        "min_price": min_price,
        "max_price": max_price,
        "start_date_from": start_date_from,
        "start_date_to": start_date_to,
    }
    return service.list_bookings(params)


@router.get(
    "/bookings/cancellation-policy",
    summary="Get cancellation policy",
    response_model=CancellationPolicyResponse,
)
async def get_cancellation_policy_text(
    policy: CancellationPolicyService = Depends(get_cancellation_policy),
) -> CancellationPolicyResponse:
    """Describe when a tourist may still cancel."""
    return CancellationPolicyResponse(
        minimum_notice_hours=policy.MINIMUM_NOTICE_HOURS,
        description=policy.get_policy_description(),
    )


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking",
    response_model=Booking,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Get a booking by ID."""
    return service.get_booking(booking_id)


@router.get(
    "/requests/{request_id}/booking",
    summary="Get the booking of an accepted request",
    response_model=Booking,
    responses={404: {"description": "Request has no booking"}},
)
async def get_booking_for_request(
    request_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Get the booking created when the request was accepted."""
    return service.get_booking_for_request(request_id)


@router.post(
    "/bookings/{booking_id}/respond",
    summary="Confirm or decline a booking",
    description="""
The booking's guide confirms (`upcoming`) or declines (`cancelled`) a
`pending` booking. **Booking guide only.**
""",
    response_model=Booking,
    responses={
        403: {"description": "Caller is not the booking's guide"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking is not pending"},
    },
)
async def respond_to_booking(
    booking_id: str,
    body: BookingDecisionRequest,
    caller: Caller = Depends(get_caller),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Record the guide's decision."""
    return service.guide_respond(booking_id, body.decision, guide_id=caller.user_id)


@router.post(
    "/bookings/{booking_id}/cancel",
    summary="Cancel booking",
    description="""
Cancel a booking as its tourist. Allowed only while at least 24 hours
remain before the start date (midnight UTC). **Booking tourist only.**
""",
    response_model=Booking,
    responses={
        403: {"description": "Caller is not the booking's tourist"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking already cancelled or completed"},
        422: {"description": "Less than 24 hours before the start"},
    },
)
async def cancel_booking(
    booking_id: str,
    caller: Caller = Depends(get_caller),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    """Cancel the caller's booking."""
    return service.tourist_cancel(booking_id, caller.user_id)
