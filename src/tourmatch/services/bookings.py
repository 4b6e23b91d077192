"""Booking lifecycle after acceptance: guide response and tourist cancellation."""

import datetime as dt
from typing import TYPE_CHECKING

from ..models import (
    Booking,
    BookingStatus,
    ErrorCode,
    GuideDecision,
    ListParams,
    MarketplaceError,
    Page,
)
from ..utils.logging import get_logger, log_lifecycle_transition
from .cancellation_policy import CancellationPolicyService
from .dynamodb import BOOKINGS_TABLE
from .query import BOOKING_LISTING, run_listing

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Statuses from which a tourist may still cancel
CANCELLABLE_STATUSES = (BookingStatus.PENDING, BookingStatus.UPCOMING)


class BookingService:
    """Service for reading bookings and moving them through their lifecycle.

    Bookings are created only by AcceptanceService.
    """

    def __init__(
        self,
        db: "DynamoDBService",
        policy: CancellationPolicyService | None = None,
    ) -> None:
        """Initialize booking service.

        Args:
            db: DynamoDB service instance
            policy: Cancellation policy (defaults to the 24-hour rule)
        """
        self.db = db
        self.policy = policy or CancellationPolicyService()

    def get_booking(self, booking_id: str) -> Booking:
        """Get a booking by ID.

        Raises:
            MarketplaceError: BOOKING_NOT_FOUND
        """
        item = self.db.get_item(BOOKINGS_TABLE, {"booking_id": booking_id})
        if not item:
            raise MarketplaceError(
                ErrorCode.BOOKING_NOT_FOUND, details={"booking_id": booking_id}
            )
        return Booking.model_validate(item)

    def get_booking_for_request(self, request_id: str) -> Booking:
        """Get the booking created when a request was accepted.

        Raises:
            MarketplaceError: BOOKING_NOT_FOUND
        """
        items = self.db.query_by_gsi(
            BOOKINGS_TABLE, "request_id-index", "request_id", request_id
        )
        if not items:
            raise MarketplaceError(
                ErrorCode.BOOKING_NOT_FOUND, details={"request_id": request_id}
            )
        return Booking.model_validate(items[0])

    def _transition(
        self,
        booking: Booking,
        to_status: BookingStatus,
        expected: tuple[BookingStatus, ...],
        extra_attributes: dict[str, object] | None = None,
    ) -> Booking:
        """Conditionally move a booking to a new status."""
        now = dt.datetime.now(dt.UTC)
        names = {"#status": "status", "#updated_at": "updated_at"}
        values: dict[str, object] = {":to": to_status.value, ":now": now.isoformat()}
        set_parts = ["#status = :to", "#updated_at = :now"]
        for name, value in (extra_attributes or {}).items():
            names[f"#{name}"] = name
            values[f":{name}"] = value
            set_parts.append(f"#{name} = :{name}")

        placeholders = []
        for i, status in enumerate(expected):
            values[f":from{i}"] = status.value
            placeholders.append(f":from{i}")

        attrs = self.db.update_item(
            BOOKINGS_TABLE,
            key={"booking_id": booking.booking_id},
            update_expression="SET " + ", ".join(set_parts),
            expression_attribute_values=values,
            expression_attribute_names=names,
            condition_expression=f"#status IN ({', '.join(placeholders)})",
        )
        if attrs is None:
            latest = self.get_booking(booking.booking_id)
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"booking_id": booking.booking_id, "status": latest.status.value},
            )

        log_lifecycle_transition(
            logger, "booking", booking.booking_id, booking.status.value, to_status.value,
        )
        return Booking.model_validate(attrs)

    def guide_respond(
        self,
        booking_id: str,
        decision: GuideDecision,
        guide_id: str | None = None,
    ) -> Booking:
        """Confirm (upcoming) or decline (cancelled) a pending booking.

        Raises:
            MarketplaceError: BOOKING_NOT_FOUND, FORBIDDEN, INVALID_STATE
                (not pending)
        """
        booking = self.get_booking(booking_id)
        if guide_id is not None and booking.guide_id != guide_id:
            raise MarketplaceError(ErrorCode.FORBIDDEN, details={"booking_id": booking_id})
        if booking.status != BookingStatus.PENDING:
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"booking_id": booking_id, "status": booking.status.value},
                message="Only pending bookings can be confirmed or declined",
            )

        decision = GuideDecision(decision)
        if decision == GuideDecision.UPCOMING:
            return self._transition(booking, BookingStatus.UPCOMING, (BookingStatus.PENDING,))

        return self._transition(
            booking,
            BookingStatus.CANCELLED,
            (BookingStatus.PENDING,),
            extra_attributes={
                "cancelled_by": "guide",
                "cancelled_at": dt.datetime.now(dt.UTC).isoformat(),
            },
        )

    def tourist_cancel(
        self,
        booking_id: str,
        tourist_id: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Cancel a booking on behalf of its tourist.

        Args:
            booking_id: Booking to cancel
            tourist_id: Caller; must be the booking's tourist
            now: Time of the request (defaults to current UTC time)

        Raises:
            MarketplaceError: BOOKING_NOT_FOUND, FORBIDDEN, INVALID_STATE
                (already cancelled or completed) or
                CANCELLATION_WINDOW_CLOSED (less than 24h before start)
        """
        booking = self.get_booking(booking_id)
        if booking.tourist_id != tourist_id:
            raise MarketplaceError(ErrorCode.FORBIDDEN, details={"booking_id": booking_id})
        if booking.status not in CANCELLABLE_STATUSES:
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"booking_id": booking_id, "status": booking.status.value},
                message=f"Booking is already {booking.status.value}",
            )

        now = now or dt.datetime.now(dt.UTC)
        evaluation = self.policy.evaluate(booking.start_date, now)
        if not evaluation["allowed"]:
            logger.info(
                "Booking cancellation refused",
                extra={
                    "booking_id": booking_id,
                    "hours_until_start": round(evaluation["hours_until_start"], 2),
                },
            )
            raise MarketplaceError(
                ErrorCode.CANCELLATION_WINDOW_CLOSED,
                details={
                    "booking_id": booking_id,
                    "hours_until_start": f"{evaluation['hours_until_start']:.2f}",
                },
            )

        return self._transition(
            booking,
            BookingStatus.CANCELLED,
            CANCELLABLE_STATUSES,
            extra_attributes={"cancelled_by": "tourist", "cancelled_at": now.isoformat()},
        )

    def list_bookings(self, params: ListParams) -> Page[Booking]:
        """Search, filter, sort and paginate bookings.

        guide_id and tourist_id filters are served from their GSIs.
        """
        guide_id = params.filters.get("guide_id")
        tourist_id = params.filters.get("tourist_id")
        if guide_id:
            items = self.db.query_by_gsi(BOOKINGS_TABLE, "guide_id-index", "guide_id", str(guide_id))
        elif tourist_id:
            items = self.db.query_by_gsi(
                BOOKINGS_TABLE, "tourist_id-index", "tourist_id", str(tourist_id)
            )
        else:
            items = self.db.scan(BOOKINGS_TABLE)

        bookings = [Booking.model_validate(item) for item in items]
        return run_listing(bookings, params, BOOKING_LISTING)
