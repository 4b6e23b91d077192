"""Guide application lifecycle: submit (upsert), edit while pending, list."""

import datetime as dt
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key

from ..models import (
    Application,
    ApplicationStatus,
    ApplicationSubmit,
    ApplicationUpdate,
    ErrorCode,
    GuideIdentity,
    ListParams,
    MarketplaceError,
    Page,
    RequestStatus,
)
from ..utils.logging import get_logger, log_lifecycle_transition
from .dynamodb import (
    APPLICATIONS_TABLE,
    REQUESTS_TABLE,
    TRANSACTION_ITEM_LIMIT,
    to_attribute,
    to_item,
)
from .query import APPLICATION_LISTING, GUIDE_APPLICATION_LISTING, run_listing
from .requests import TourRequestService

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

# The acceptance transaction writes the request, the booking and every
# application, so this many applications is all one request can resolve.
MAX_APPLICATIONS_PER_REQUEST = TRANSACTION_ITEM_LIMIT - 2

MAX_SUBMIT_ATTEMPTS = 3


class ApplicationService:
    """Service for guide applications against tour requests."""

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize application service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db
        self.requests = TourRequestService(db)

    def submit_application(
        self,
        request_id: str,
        guide: GuideIdentity,
        data: ApplicationSubmit,
    ) -> Application:
        """Create or overwrite the guide's application for a request.

        The first submission writes the application and increments the
        request's application_count and version in one transaction, both
        conditional on the request still being open. A resubmission only
        replaces price and cover letter (created_at is kept).

        Args:
            request_id: Request being applied to
            guide: Identity of the submitting guide
            data: Proposed price and cover letter

        Returns:
            The stored application

        Raises:
            MarketplaceError: VALIDATION_FAILED, REQUEST_NOT_FOUND,
                INVALID_STATE (request not open or application resolved),
                APPLICATION_LIMIT_REACHED or CONCURRENT_MODIFICATION
        """
        if data.proposed_price <= 0:
            raise MarketplaceError.validation(
                "proposed_price", "proposed_price must be greater than 0"
            )
        cover_letter = data.cover_letter.strip()
        if not cover_letter:
            raise MarketplaceError.validation(
                "cover_letter", "cover_letter must not be blank"
            )

        key = {"request_id": request_id, "application_id": guide.guide_id}

        for attempt in range(1, MAX_SUBMIT_ATTEMPTS + 1):
            request = self.requests.get_request(request_id)
            if request.status != RequestStatus.OPEN:
                raise MarketplaceError(
                    ErrorCode.INVALID_STATE,
                    details={"request_id": request_id, "status": request.status.value},
                    message="This tour request is no longer accepting applications",
                )

            existing_item = self.db.get_item(APPLICATIONS_TABLE, key)
            existing = Application.model_validate(existing_item) if existing_item else None
            if existing is not None and existing.status != ApplicationStatus.PENDING:
                raise MarketplaceError(
                    ErrorCode.INVALID_STATE,
                    details={
                        "request_id": request_id,
                        "application_id": guide.guide_id,
                        "status": existing.status.value,
                    },
                    message="This application has already been resolved",
                )
            if existing is None:
                count = self.db.count(APPLICATIONS_TABLE, Key("request_id").eq(request_id))
                if count >= MAX_APPLICATIONS_PER_REQUEST:
                    raise MarketplaceError(
                        ErrorCode.APPLICATION_LIMIT_REACHED,
                        details={"request_id": request_id, "applications": count},
                    )

            now = dt.datetime.now(dt.UTC)
            application = Application(
                request_id=request_id,
                application_id=guide.guide_id,
                guide_id=guide.guide_id,
                guide_name=guide.display_name,
                guide_email=guide.guide_email,
                proposed_price=data.proposed_price,
                cover_letter=cover_letter,
                status=ApplicationStatus.PENDING,
                tour_title=request.title,
                destination=request.destination,
                start_date=request.start_date,
                end_date=request.end_date,
                tour_type=request.tour_type,
                tourist_id=request.tourist_id,
                tourist_name=request.tourist_name,
                tourist_budget=request.budget,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )

            if existing is None:
                items = [
                    self.db.transact_update(
                        REQUESTS_TABLE,
                        key={"request_id": request_id},
                        update_expression=(
                            "SET #count = if_not_exists(#count, :zero) + :one, "
                            "#version = #version + :one"
                        ),
                        expression_attribute_names={
                            "#count": "application_count",
                            "#version": "version",
                            "#status": "status",
                        },
                        expression_attribute_values={
                            ":zero": 0,
                            ":one": 1,
                            ":open": RequestStatus.OPEN.value,
                        },
                        condition_expression="#status = :open",
                    ),
                    self.db.transact_put(
                        APPLICATIONS_TABLE,
                        to_item(application),
                        condition_expression="attribute_not_exists(application_id)",
                    ),
                ]
            else:
                items = [
                    self.db.transact_condition_check(
                        REQUESTS_TABLE,
                        key={"request_id": request_id},
                        condition_expression="#status = :open",
                        expression_attribute_names={"#status": "status"},
                        expression_attribute_values={":open": RequestStatus.OPEN.value},
                    ),
                    self.db.transact_put(
                        APPLICATIONS_TABLE,
                        to_item(application),
                        condition_expression="#status = :pending",
                        expression_attribute_names={"#status": "status"},
                        expression_attribute_values={
                            ":pending": ApplicationStatus.PENDING.value
                        },
                    ),
                ]

            if self.db.transact_write(items):
                if existing is None:
                    log_lifecycle_transition(
                        logger, "application", f"{request_id}/{guide.guide_id}",
                        None, ApplicationStatus.PENDING.value,
                        proposed_price=str(application.proposed_price),
                    )
                else:
                    logger.info(
                        "Application resubmitted",
                        extra={"request_id": request_id, "application_id": guide.guide_id},
                    )
                return application

            logger.info(
                "Application submission conflicted, retrying",
                extra={"request_id": request_id, "application_id": guide.guide_id, "attempt": attempt},
            )

        raise MarketplaceError(
            ErrorCode.CONCURRENT_MODIFICATION,
            details={"request_id": request_id, "application_id": guide.guide_id},
        )

    def get_application(self, request_id: str, application_id: str) -> Application:
        """Get one application of a request.

        Raises:
            MarketplaceError: APPLICATION_NOT_FOUND
        """
        item = self.db.get_item(
            APPLICATIONS_TABLE,
            {"request_id": request_id, "application_id": application_id},
        )
        if not item:
            raise MarketplaceError(
                ErrorCode.APPLICATION_NOT_FOUND,
                details={"request_id": request_id, "application_id": application_id},
            )
        return Application.model_validate(item)

    def edit_application(
        self,
        request_id: str,
        application_id: str,
        guide_id: str,
        patch: ApplicationUpdate,
    ) -> Application:
        """Change price and/or cover letter of the guide's pending application.

        Ownership is checked before status, so a foreign guide is refused
        whatever state the application is in.

        Raises:
            MarketplaceError: APPLICATION_NOT_FOUND, FORBIDDEN,
                INVALID_STATE (not pending) or VALIDATION_FAILED
        """
        current = self.get_application(request_id, application_id)
        if current.guide_id != guide_id:
            raise MarketplaceError(
                ErrorCode.FORBIDDEN,
                details={"request_id": request_id, "application_id": application_id},
            )
        if current.status != ApplicationStatus.PENDING:
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={
                    "request_id": request_id,
                    "application_id": application_id,
                    "status": current.status.value,
                },
                message="Only pending applications can be edited",
            )

        changes: dict[str, Any] = {
            name: value
            for name, value in patch.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if "proposed_price" in changes and changes["proposed_price"] < 0:
            raise MarketplaceError.validation(
                "proposed_price", "proposed_price must not be negative"
            )
        if "cover_letter" in changes:
            changes["cover_letter"] = changes["cover_letter"].strip()
            if not changes["cover_letter"]:
                raise MarketplaceError.validation(
                    "cover_letter", "cover_letter must not be blank"
                )
        if not changes:
            return current

        now = dt.datetime.now(dt.UTC)
        names = {"#status": "status", "#updated_at": "updated_at"}
        values: dict[str, Any] = {
            ":pending": ApplicationStatus.PENDING.value,
            ":updated_at": now.isoformat(),
        }
        set_parts = ["#updated_at = :updated_at"]
        for name, value in changes.items():
            names[f"#{name}"] = name
            values[f":{name}"] = to_attribute(value)
            set_parts.append(f"#{name} = :{name}")

        attrs = self.db.update_item(
            APPLICATIONS_TABLE,
            key={"request_id": request_id, "application_id": application_id},
            update_expression="SET " + ", ".join(set_parts),
            expression_attribute_values=values,
            expression_attribute_names=names,
            condition_expression="#status = :pending",
        )
        if attrs is None:
            # Resolved by an acceptance between the read and the write
            raise MarketplaceError(
                ErrorCode.INVALID_STATE,
                details={"request_id": request_id, "application_id": application_id},
                message="Only pending applications can be edited",
            )

        logger.info(
            "Application edited",
            extra={
                "request_id": request_id,
                "application_id": application_id,
                "fields": sorted(changes),
            },
        )
        return Application.model_validate(attrs)

    def query_applications(self, request_id: str) -> list[Application]:
        """Every application of a request, read consistently from the base table."""
        items = self.db.query(
            APPLICATIONS_TABLE,
            Key("request_id").eq(request_id),
            consistent_read=True,
        )
        return [Application.model_validate(item) for item in items]

    def list_applications(self, request_id: str, params: ListParams) -> Page[Application]:
        """Search, filter, sort and paginate the applications of a request.

        Raises:
            MarketplaceError: REQUEST_NOT_FOUND
        """
        self.requests.get_request(request_id)
        return run_listing(self.query_applications(request_id), params, APPLICATION_LISTING)

    def list_guide_applications(
        self,
        guide_id: str,
        params: ListParams,
    ) -> Page[Application]:
        """Every application the guide has submitted, across all requests.

        Each application is addressed through its parent request's key, so
        the guide's applications are fetched with one batch get per 100
        requests.
        """
        keys = [
            {"request_id": request_id, "application_id": guide_id}
            for request_id in self.requests.list_request_ids()
        ]
        items = self.db.batch_get(APPLICATIONS_TABLE, keys)
        applications = [Application.model_validate(item) for item in items]
        return run_listing(applications, params, GUIDE_APPLICATION_LISTING)
