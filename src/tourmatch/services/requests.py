"""Tour request lifecycle: create, read, edit while open, soft cancel."""

import datetime as dt
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from ..models import (
    ErrorCode,
    ListParams,
    MarketplaceError,
    Page,
    RequestStatus,
    TourRequest,
    TourRequestCreate,
    TourRequestUpdate,
)
from ..utils.logging import get_logger, log_lifecycle_transition
from .dynamodb import REQUESTS_TABLE, to_attribute, to_item
from .query import REQUEST_LISTING, run_listing

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# Free-text fields trimmed on write
TEXT_FIELDS = ("title", "destination", "tour_type", "description", "requirements")


def normalize_languages(languages: list[str]) -> list[str]:
    """Trim, drop blanks and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for language in languages:
        cleaned = language.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def validate_request_fields(values: dict[str, Any]) -> None:
    """Check the single-field rules for whichever fields are present.

    Raises:
        MarketplaceError: VALIDATION_FAILED naming the first violating field
    """
    for name in ("title", "destination"):
        if name in values and not values[name]:
            raise MarketplaceError.validation(name, f"{name} must not be blank")
    if "budget" in values and Decimal(values["budget"]) <= 0:
        raise MarketplaceError.validation("budget", "budget must be greater than 0")
    if "number_of_people" in values and values["number_of_people"] <= 0:
        raise MarketplaceError.validation(
            "number_of_people", "number_of_people must be greater than 0"
        )


class TourRequestService:
    """Service owning the tour request state machine.

    open -> accepted happens only inside the acceptance transaction;
    this service handles creation, edits while open and soft cancellation.
    """

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize tour request service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def _generate_request_id(self, now: dt.datetime) -> str:
        """Generate a request ID like REQ-2025-1A2B3C4D."""
        return f"REQ-{now.year}-{uuid.uuid4().hex[:8].upper()}"

    def create_request(
        self,
        tourist_id: str,
        data: TourRequestCreate,
        tourist_name: str | None = None,
    ) -> TourRequest:
        """Create an open tour request owned by tourist_id.

        Args:
            tourist_id: Owning tourist
            data: Request details
            tourist_name: Display name copied onto the request

        Returns:
            The stored request (its request_id is the new identifier)

        Raises:
            MarketplaceError: VALIDATION_FAILED for blank title/destination,
                non-positive budget or party size, or start after end
        """
        values = data.model_dump()
        for name in TEXT_FIELDS:
            if isinstance(values.get(name), str):
                values[name] = values[name].strip()
        values["languages"] = normalize_languages(values["languages"])

        validate_request_fields(values)
        if values["start_date"] > values["end_date"]:
            raise MarketplaceError.validation(
                "end_date", "end_date must be on or after start_date"
            )

        now = dt.datetime.now(dt.UTC)
        request = TourRequest(
            request_id=self._generate_request_id(now),
            tourist_id=tourist_id,
            tourist_name=tourist_name,
            status=RequestStatus.OPEN,
            application_count=0,
            version=0,
            created_at=now,
            updated_at=now,
            **values,
        )

        self.db.put_item(
            REQUESTS_TABLE,
            to_item(request),
            condition_expression="attribute_not_exists(request_id)",
        )
        log_lifecycle_transition(
            logger, "request", request.request_id, None, RequestStatus.OPEN.value,
            tourist_id=tourist_id,
        )
        return request

    def get_request(self, request_id: str) -> TourRequest:
        """Get a request by ID.

        Raises:
            MarketplaceError: REQUEST_NOT_FOUND
        """
        item = self.db.get_item(REQUESTS_TABLE, {"request_id": request_id})
        if not item:
            raise MarketplaceError(
                ErrorCode.REQUEST_NOT_FOUND, details={"request_id": request_id}
            )
        return TourRequest.model_validate(item)

    def _check_owner(self, request: TourRequest, tourist_id: str | None) -> None:
        if tourist_id is not None and request.tourist_id != tourist_id:
            raise MarketplaceError(
                ErrorCode.FORBIDDEN, details={"request_id": request.request_id}
            )

    def update_request(
        self,
        request_id: str,
        patch: TourRequestUpdate,
        tourist_id: str | None = None,
    ) -> TourRequest:
        """Apply a partial update to an open request.

        A lone start_date is checked against the stored end_date and vice
        versa. Only fields set on the patch are written; an explicit null
        clears `requirements` and is ignored for every other field.

        Args:
            request_id: Request to update
            patch: Fields to change
            tourist_id: Caller; when given it must own the request

        Returns:
            The updated request

        Raises:
            MarketplaceError: REQUEST_NOT_FOUND, FORBIDDEN, INVALID_STATE
                (not open) or VALIDATION_FAILED
        """
        current = self.get_request(request_id)
        self._check_owner(current, tourist_id)
        if current.status != RequestStatus.OPEN:
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"request_id": request_id, "status": current.status.value},
                message="Only open tour requests can be edited",
            )

        changes = {
            name: value
            for name, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or name == "requirements"
        }
        for name in TEXT_FIELDS:
            if isinstance(changes.get(name), str):
                changes[name] = changes[name].strip()
        if "languages" in changes:
            changes["languages"] = normalize_languages(changes["languages"])

        validate_request_fields(changes)
        start = changes.get("start_date", current.start_date)
        end = changes.get("end_date", current.end_date)
        if start > end:
            field = "end_date" if "end_date" in changes else "start_date"
            raise MarketplaceError.validation(
                field, "start_date must be on or before end_date"
            )

        if not changes:
            return current

        now = dt.datetime.now(dt.UTC)
        names = {"#status": "status", "#updated_at": "updated_at", "#version": "version"}
        values: dict[str, Any] = {
            ":open": RequestStatus.OPEN.value,
            ":updated_at": now.isoformat(),
            ":one": 1,
        }
        set_parts = ["#updated_at = :updated_at", "#version = #version + :one"]
        remove_parts = []
        for name, value in changes.items():
            names[f"#{name}"] = name
            if value is None:
                remove_parts.append(f"#{name}")
            else:
                set_parts.append(f"#{name} = :{name}")
                values[f":{name}"] = to_attribute(value)

        update_expression = "SET " + ", ".join(set_parts)
        if remove_parts:
            update_expression += " REMOVE " + ", ".join(remove_parts)

        attrs = self.db.update_item(
            REQUESTS_TABLE,
            key={"request_id": request_id},
            update_expression=update_expression,
            expression_attribute_values=values,
            expression_attribute_names=names,
            condition_expression="#status = :open",
        )
        if attrs is None:
            # Accepted or cancelled between the read and the write
            latest = self.get_request(request_id)
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"request_id": request_id, "status": latest.status.value},
                message="Only open tour requests can be edited",
            )

        logger.info(
            "Tour request updated",
            extra={"request_id": request_id, "fields": sorted(changes)},
        )
        return TourRequest.model_validate(attrs)

    def cancel_request(
        self,
        request_id: str,
        tourist_id: str | None = None,
    ) -> TourRequest:
        """Soft-cancel a request.

        Allowed from open and accepted; cancelling an already cancelled
        request returns it unchanged. Applications and bookings are left
        as they are.

        Raises:
            MarketplaceError: REQUEST_NOT_FOUND, FORBIDDEN, INVALID_STATE
                (completed)
        """
        current = self.get_request(request_id)
        self._check_owner(current, tourist_id)

        if current.status == RequestStatus.CANCELLED:
            logger.info("Tour request already cancelled", extra={"request_id": request_id})
            return current
        if current.status == RequestStatus.COMPLETED:
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"request_id": request_id, "status": current.status.value},
                message="Completed tour requests cannot be cancelled",
            )
        if current.status != RequestStatus.OPEN:
            logger.warning(
                "Cancelling a tour request that is no longer open",
                extra={
                    "request_id": request_id,
                    "status": current.status.value,
                    "booking_id": current.booking_id,
                },
            )

        now = dt.datetime.now(dt.UTC)
        attrs = self.db.update_item(
            REQUESTS_TABLE,
            key={"request_id": request_id},
            update_expression=(
                "SET #status = :cancelled, #updated_at = :updated_at, "
                "#version = #version + :one"
            ),
            expression_attribute_values={
                ":cancelled": RequestStatus.CANCELLED.value,
                ":expected": current.status.value,
                ":updated_at": now.isoformat(),
                ":one": 1,
            },
            expression_attribute_names={
                "#status": "status",
                "#updated_at": "updated_at",
                "#version": "version",
            },
            condition_expression="#status = :expected",
        )
        if attrs is None:
            latest = self.get_request(request_id)
            if latest.status == RequestStatus.CANCELLED:
                return latest
            if latest.status == RequestStatus.ACCEPTED:
                # Lost a race with the acceptance transaction; retry from accepted
                return self.cancel_request(request_id, tourist_id)
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"request_id": request_id, "status": latest.status.value},
            )

        log_lifecycle_transition(
            logger, "request", request_id, current.status.value,
            RequestStatus.CANCELLED.value,
        )
        return TourRequest.model_validate(attrs)

    def list_requests(self, params: ListParams) -> Page[TourRequest]:
        """Search, filter, sort and paginate tour requests.

        A tourist_id filter is served from the tourist_id-index instead of
        a table scan.
        """
        tourist_id = params.filters.get("tourist_id")
        if tourist_id:
            items = self.db.query_by_gsi(
                REQUESTS_TABLE, "tourist_id-index", "tourist_id", str(tourist_id)
            )
        else:
            items = self.db.scan(REQUESTS_TABLE)

        requests = [TourRequest.model_validate(item) for item in items]
        return run_listing(requests, params, REQUEST_LISTING)

    def list_request_ids(self) -> list[str]:
        """IDs of every stored request."""
        items = self.db.scan(REQUESTS_TABLE, projection=["request_id"])
        return [item["request_id"] for item in items]

