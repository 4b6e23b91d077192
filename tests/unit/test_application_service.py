"""Unit tests for ApplicationService against mocked DynamoDB."""

from decimal import Decimal
from unittest.mock import patch

import pytest

from conftest import GUIDE_A, GUIDE_B, TOURIST_ID
from tourmatch.models import (
    ApplicationStatus,
    ApplicationSubmit,
    ApplicationUpdate,
    ErrorCode,
    ErrorKind,
    GuideIdentity,
    ListParams,
    MarketplaceError,
    SortOrder,
    TourRequest,
    TourRequestCreate,
)
from tourmatch.services.acceptance import AcceptanceService
from tourmatch.services.applications import ApplicationService
from tourmatch.services.dynamodb import APPLICATIONS_TABLE, DynamoDBService
from tourmatch.services.requests import TourRequestService


def submit(service: ApplicationService, request_id: str, guide: GuideIdentity, price: str):
    return service.submit_application(
        request_id,
        guide,
        ApplicationSubmit(proposed_price=Decimal(price), cover_letter=f"Pick {guide.guide_id}"),
    )


class TestSubmitApplication:
    def test_first_submission_increments_counter_and_version(
        self,
        application_service: ApplicationService,
        request_service: TourRequestService,
        open_request: TourRequest,
    ) -> None:
        application = submit(application_service, open_request.request_id, GUIDE_A, "450")

        assert application.application_id == GUIDE_A.guide_id
        assert application.status == ApplicationStatus.PENDING
        assert application.guide_name == "Ana"
        # Denormalized from the request
        assert application.tour_title == open_request.title
        assert application.tourist_budget == Decimal("500")
        assert application.tourist_id == TOURIST_ID

        request = request_service.get_request(open_request.request_id)
        assert request.application_count == 1
        assert request.version == 1

    def test_resubmission_overwrites_and_keeps_created_at(
        self,
        application_service: ApplicationService,
        request_service: TourRequestService,
        open_request: TourRequest,
    ) -> None:
        first = submit(application_service, open_request.request_id, GUIDE_A, "450")

        second = application_service.submit_application(
            open_request.request_id,
            GUIDE_A,
            ApplicationSubmit(proposed_price=Decimal("420"), cover_letter="Better offer"),
        )

        stored = application_service.get_application(open_request.request_id, GUIDE_A.guide_id)
        assert stored.proposed_price == Decimal("420")
        assert stored.cover_letter == "Better offer"
        assert stored.created_at == first.created_at
        assert second.updated_at >= first.updated_at
        # Counter untouched by a resubmission
        assert request_service.get_request(open_request.request_id).application_count == 1

    def test_guide_name_falls_back_to_email(
        self, application_service: ApplicationService, open_request: TourRequest
    ) -> None:
        guide = GuideIdentity(guide_id="guide-x", guide_email="xavier@example.com")

        application = submit(application_service, open_request.request_id, guide, "400")

        assert application.guide_name == "xavier"

    @pytest.mark.parametrize(
        "price,letter,field",
        [
            ("0", "Hi", "proposed_price"),
            ("-5", "Hi", "proposed_price"),
            ("100", "   ", "cover_letter"),
        ],
    )
    def test_validation(
        self,
        application_service: ApplicationService,
        open_request: TourRequest,
        price: str,
        letter: str,
        field: str,
    ) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            application_service.submit_application(
                open_request.request_id,
                GUIDE_A,
                ApplicationSubmit(proposed_price=Decimal(price), cover_letter=letter),
            )

        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.details == {"field": field}

    def test_missing_request_is_not_found(self, application_service: ApplicationService) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            submit(application_service, "REQ-NOPE", GUIDE_A, "450")

        assert exc_info.value.code == ErrorCode.REQUEST_NOT_FOUND

    def test_cancelled_request_is_invalid_state(
        self,
        application_service: ApplicationService,
        request_service: TourRequestService,
        open_request: TourRequest,
    ) -> None:
        request_service.cancel_request(open_request.request_id)

        with pytest.raises(MarketplaceError) as exc_info:
            submit(application_service, open_request.request_id, GUIDE_A, "450")

        assert exc_info.value.kind == ErrorKind.INVALID_STATE

    def test_limit_reached(
        self, application_service: ApplicationService, open_request: TourRequest
    ) -> None:
        with patch.object(application_service.db, "count", return_value=98):
            with pytest.raises(MarketplaceError) as exc_info:
                submit(application_service, open_request.request_id, GUIDE_A, "450")

        assert exc_info.value.code == ErrorCode.APPLICATION_LIMIT_REACHED
        assert exc_info.value.kind == ErrorKind.POLICY_VIOLATION

    def test_request_closing_mid_submission_is_invalid_state(
        self,
        application_service: ApplicationService,
        request_service: TourRequestService,
        open_request: TourRequest,
    ) -> None:
        """A request cancelled between the read and the write refuses the new application."""
        original_count = application_service.db.count

        def cancel_then_count(*args, **kwargs):
            request_service.cancel_request(open_request.request_id)
            return original_count(*args, **kwargs)

        with patch.object(application_service.db, "count", side_effect=cancel_then_count):
            with pytest.raises(MarketplaceError) as exc_info:
                submit(application_service, open_request.request_id, GUIDE_A, "450")

        assert exc_info.value.kind == ErrorKind.INVALID_STATE
        with pytest.raises(MarketplaceError):
            application_service.get_application(open_request.request_id, GUIDE_A.guide_id)

    def test_resolved_application_cannot_be_resubmitted(
        self,
        db: DynamoDBService,
        application_service: ApplicationService,
        request_with_applications: TourRequest,
    ) -> None:
        db.update_item(
            APPLICATIONS_TABLE,
            key={"request_id": request_with_applications.request_id, "application_id": GUIDE_B.guide_id},
            update_expression="SET #s = :s",
            expression_attribute_values={":s": "rejected"},
            expression_attribute_names={"#s": "status"},
        )

        with pytest.raises(MarketplaceError) as exc_info:
            submit(application_service, request_with_applications.request_id, GUIDE_B, "300")

        assert exc_info.value.kind == ErrorKind.INVALID_STATE


class TestEditApplication:
    def test_owner_edits_pending_application(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        edited = application_service.edit_application(
            request_with_applications.request_id,
            GUIDE_A.guide_id,
            GUIDE_A.guide_id,
            ApplicationUpdate(proposed_price=Decimal("440"), cover_letter="  Updated  "),
        )

        assert edited.proposed_price == Decimal("440")
        assert edited.cover_letter == "Updated"

    def test_zero_price_is_allowed_on_edit(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        edited = application_service.edit_application(
            request_with_applications.request_id,
            GUIDE_A.guide_id,
            GUIDE_A.guide_id,
            ApplicationUpdate(proposed_price=Decimal("0")),
        )

        assert edited.proposed_price == Decimal("0")

    def test_negative_price_is_rejected(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            application_service.edit_application(
                request_with_applications.request_id,
                GUIDE_A.guide_id,
                GUIDE_A.guide_id,
                ApplicationUpdate(proposed_price=Decimal("-1")),
            )

        assert exc_info.value.details == {"field": "proposed_price"}

    def test_foreign_guide_forbidden_while_pending(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            application_service.edit_application(
                request_with_applications.request_id,
                GUIDE_A.guide_id,
                GUIDE_B.guide_id,
                ApplicationUpdate(cover_letter="Hijack"),
            )

        assert exc_info.value.kind == ErrorKind.FORBIDDEN

    def test_foreign_guide_forbidden_after_resolution(
        self,
        acceptance_service: AcceptanceService,
        application_service: ApplicationService,
        request_with_applications: TourRequest,
    ) -> None:
        """Ownership is checked before status."""
        acceptance_service.accept_application(
            request_with_applications.request_id, GUIDE_A.guide_id
        )

        for target in (GUIDE_A.guide_id, GUIDE_B.guide_id):
            caller = GUIDE_B.guide_id if target == GUIDE_A.guide_id else GUIDE_A.guide_id
            with pytest.raises(MarketplaceError) as exc_info:
                application_service.edit_application(
                    request_with_applications.request_id,
                    target,
                    caller,
                    ApplicationUpdate(cover_letter="Too late"),
                )
            assert exc_info.value.kind == ErrorKind.FORBIDDEN

    def test_owner_cannot_edit_resolved_application(
        self,
        acceptance_service: AcceptanceService,
        application_service: ApplicationService,
        request_with_applications: TourRequest,
    ) -> None:
        acceptance_service.accept_application(
            request_with_applications.request_id, GUIDE_A.guide_id
        )

        with pytest.raises(MarketplaceError) as exc_info:
            application_service.edit_application(
                request_with_applications.request_id,
                GUIDE_B.guide_id,
                GUIDE_B.guide_id,
                ApplicationUpdate(proposed_price=Decimal("1")),
            )

        assert exc_info.value.kind == ErrorKind.INVALID_STATE

    def test_missing_application_is_not_found(
        self, application_service: ApplicationService, open_request: TourRequest
    ) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            application_service.edit_application(
                open_request.request_id, "guide-z", "guide-z", ApplicationUpdate(cover_letter="x")
            )

        assert exc_info.value.code == ErrorCode.APPLICATION_NOT_FOUND


class TestListApplications:
    def test_sorted_by_price(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        page = application_service.list_applications(
            request_with_applications.request_id,
            ListParams(sort_by="proposed_price", sort_order=SortOrder.ASC),
        )

        assert [(a.guide_id, a.proposed_price) for a in page.items] == [
            (GUIDE_A.guide_id, Decimal("450")),
            (GUIDE_B.guide_id, Decimal("480")),
        ]

    def test_price_filter(
        self, application_service: ApplicationService, request_with_applications: TourRequest
    ) -> None:
        page = application_service.list_applications(
            request_with_applications.request_id, ListParams(filters={"min_price": 460})
        )

        assert [a.guide_id for a in page.items] == [GUIDE_B.guide_id]

    def test_missing_request_is_not_found(self, application_service: ApplicationService) -> None:
        with pytest.raises(MarketplaceError) as exc_info:
            application_service.list_applications("REQ-NOPE", ListParams())

        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    def test_guide_sees_own_applications_across_requests(
        self,
        application_service: ApplicationService,
        request_service: TourRequestService,
        sample_request_data: TourRequestCreate,
    ) -> None:
        first = request_service.create_request(TOURIST_ID, sample_request_data)
        second = request_service.create_request(
            "tourist-2", sample_request_data.model_copy(update={"destination": "Porto"})
        )
        submit(application_service, first.request_id, GUIDE_A, "450")
        submit(application_service, second.request_id, GUIDE_A, "300")
        submit(application_service, second.request_id, GUIDE_B, "310")

        page = application_service.list_guide_applications(
            GUIDE_A.guide_id, ListParams(search="porto")
        )

        assert page.pagination.total == 1
        assert page.items[0].request_id == second.request_id
        assert page.items[0].guide_id == GUIDE_A.guide_id
