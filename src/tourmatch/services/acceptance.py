"""Acceptance transaction: pick one application, reject the rest, book it.

Everything happens in a single TransactWriteItems call. The checks made
on the read side are repeated as condition expressions, so a concurrent
acceptance or a new submission landing between read and write cancels
the transaction instead of producing a second winner or an unrejected
sibling.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from ..models import (
    Application,
    ApplicationStatus,
    Booking,
    BookingStatus,
    ErrorCode,
    MarketplaceError,
    RequestStatus,
    TourRequest,
)
from ..utils.logging import get_logger, log_acceptance_event, log_lifecycle_transition
from .applications import ApplicationService
from .dynamodb import (
    APPLICATIONS_TABLE,
    BOOKINGS_TABLE,
    REQUESTS_TABLE,
    TRANSACTION_ITEM_LIMIT,
    to_item,
)
from .requests import TourRequestService

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class AcceptanceService:
    """Coordinator for accepting a guide application."""

    MAX_ATTEMPTS = 3

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize acceptance service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db
        self.requests = TourRequestService(db)
        self.applications = ApplicationService(db)

    def _generate_booking_id(self, now: dt.datetime) -> str:
        """Generate a booking ID like BKG-2025-1A2B3C4D."""
        return f"BKG-{now.year}-{uuid.uuid4().hex[:8].upper()}"

    def _list_siblings(self, request_id: str, application_id: str) -> list[Application]:
        """All other applications of the request (authoritative, not the counter)."""
        return [
            app
            for app in self.applications.query_applications(request_id)
            if app.application_id != application_id
        ]

    def _reject(
        self,
        request_id: str,
        application_id: str,
        code: ErrorCode,
        details: dict[str, Any],
        message: str | None = None,
    ) -> MarketplaceError:
        log_acceptance_event(logger, request_id, application_id, "rejected", error=code.value)
        return MarketplaceError(code, details=details, message=message)

    def _check(
        self,
        request_id: str,
        application_id: str,
        tourist_id: str | None,
    ) -> tuple[TourRequest, Application]:
        """Read-side checks, in the order callers see failures."""
        try:
            request = self.requests.get_request(request_id)
        except MarketplaceError as e:
            log_acceptance_event(logger, request_id, application_id, "rejected", error=e.code.value)
            raise

        if tourist_id is not None and request.tourist_id != tourist_id:
            raise self._reject(
                request_id, application_id, ErrorCode.FORBIDDEN,
                {"request_id": request_id},
            )
        if request.status != RequestStatus.OPEN:
            raise self._reject(
                request_id, application_id, ErrorCode.INVALID_STATE,
                {"request_id": request_id, "status": request.status.value},
                "This tour request has already been resolved",
            )

        try:
            application = self.applications.get_application(request_id, application_id)
        except MarketplaceError as e:
            log_acceptance_event(logger, request_id, application_id, "rejected", error=e.code.value)
            raise

        if application.status != ApplicationStatus.PENDING:
            raise self._reject(
                request_id, application_id, ErrorCode.INVALID_STATE,
                {"application_id": application_id, "status": application.status.value},
                "Only pending applications can be accepted",
            )
        return request, application

    def _build_transaction(
        self,
        request: TourRequest,
        application: Application,
        siblings: list[Application],
        booking: Booking,
        now: dt.datetime,
    ) -> list[dict[str, Any]]:
        """One Update per entity touched plus the booking Put."""
        items = [
            self.db.transact_update(
                REQUESTS_TABLE,
                key={"request_id": request.request_id},
                update_expression=(
                    "SET #status = :accepted, #version = #version + :one, "
                    "#updated_at = :now, accepted_at = :now, "
                    "selected_application_id = :app_id, selected_guide_id = :guide_id, "
                    "selected_guide_name = :guide_name, selected_guide_email = :guide_email, "
                    "selected_price = :price, booking_id = :booking_id"
                ),
                expression_attribute_names={
                    "#status": "status",
                    "#version": "version",
                    "#updated_at": "updated_at",
                },
                expression_attribute_values={
                    ":accepted": RequestStatus.ACCEPTED.value,
                    ":open": RequestStatus.OPEN.value,
                    ":expected_version": request.version,
                    ":one": 1,
                    ":now": now,
                    ":app_id": application.application_id,
                    ":guide_id": application.guide_id,
                    ":guide_name": application.guide_name,
                    ":guide_email": application.guide_email,
                    ":price": application.proposed_price,
                    ":booking_id": booking.booking_id,
                },
                condition_expression="#status = :open AND #version = :expected_version",
            ),
            self.db.transact_update(
                APPLICATIONS_TABLE,
                key={
                    "request_id": request.request_id,
                    "application_id": application.application_id,
                },
                update_expression=(
                    "SET #status = :selected, agreed_price = :price, #updated_at = :now"
                ),
                expression_attribute_names={"#status": "status", "#updated_at": "updated_at"},
                expression_attribute_values={
                    ":selected": ApplicationStatus.SELECTED.value,
                    ":pending": ApplicationStatus.PENDING.value,
                    ":price": application.proposed_price,
                    ":now": now,
                },
                condition_expression="#status = :pending AND proposed_price = :price",
            ),
        ]

        for sibling in siblings:
            items.append(
                self.db.transact_update(
                    APPLICATIONS_TABLE,
                    key={
                        "request_id": sibling.request_id,
                        "application_id": sibling.application_id,
                    },
                    update_expression="SET #status = :rejected, #updated_at = :now",
                    expression_attribute_names={"#status": "status", "#updated_at": "updated_at"},
                    expression_attribute_values={
                        ":rejected": ApplicationStatus.REJECTED.value,
                        ":now": now,
                    },
                    condition_expression="attribute_exists(application_id)",
                )
            )

        items.append(
            self.db.transact_put(
                BOOKINGS_TABLE,
                to_item(booking),
                condition_expression="attribute_not_exists(booking_id)",
            )
        )
        return items

    def accept_application(
        self,
        request_id: str,
        application_id: str,
        tourist_id: str | None = None,
    ) -> Booking:
        """Accept one application of an open request.

        In one atomic write: the request becomes accepted, the application
        selected (agreed_price = its proposal), every sibling rejected, and
        a pending booking is created. Retried when the write is cancelled
        by a concurrent change; a retry that finds the request resolved
        fails with INVALID_STATE.

        Args:
            request_id: Request being resolved
            application_id: Application to accept
            tourist_id: Caller; when given it must own the request

        Returns:
            The created booking

        Raises:
            MarketplaceError: REQUEST_NOT_FOUND, APPLICATION_NOT_FOUND,
                FORBIDDEN, INVALID_STATE, POLICY_VIOLATION (too many
                applications for one transaction) or CONCURRENT_MODIFICATION
        """
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            request, application = self._check(request_id, application_id, tourist_id)

            siblings = self._list_siblings(request_id, application_id)
            write_count = len(siblings) + 3
            if write_count > TRANSACTION_ITEM_LIMIT:
                raise self._reject(
                    request_id, application_id, ErrorCode.APPLICATION_LIMIT_REACHED,
                    {"request_id": request_id, "applications": len(siblings) + 1},
                    "Too many applications to resolve in one transaction",
                )

            now = dt.datetime.now(dt.UTC)
            booking = Booking(
                booking_id=self._generate_booking_id(now),
                request_id=request.request_id,
                application_id=application.application_id,
                tourist_id=request.tourist_id,
                tourist_name=request.tourist_name,
                guide_id=application.guide_id,
                guide_name=application.guide_name,
                guide_email=application.guide_email,
                title=request.title,
                destination=request.destination,
                start_date=request.start_date,
                end_date=request.end_date,
                tour_type=request.tour_type,
                number_of_people=request.number_of_people,
                budget=request.budget,
                status=BookingStatus.PENDING,
                agreed_price=application.proposed_price,
                created_at=now,
                updated_at=now,
            )

            items = self._build_transaction(request, application, siblings, booking, now)
            if self.db.transact_write(items):
                log_acceptance_event(
                    logger, request_id, application_id, "committed",
                    booking_id=booking.booking_id, rejected=len(siblings),
                )
                log_lifecycle_transition(
                    logger, "request", request_id, RequestStatus.OPEN.value,
                    RequestStatus.ACCEPTED.value, booking_id=booking.booking_id,
                )
                log_lifecycle_transition(
                    logger, "booking", booking.booking_id, None, BookingStatus.PENDING.value,
                    agreed_price=str(booking.agreed_price),
                )
                return booking

            log_acceptance_event(
                logger, request_id, application_id, "conflict",
                error="TransactionCanceled", attempt=attempt,
            )

        raise MarketplaceError(
            ErrorCode.CONCURRENT_MODIFICATION,
            details={"request_id": request_id, "application_id": application_id},
        )
