"""Pytest configuration and fixtures for the tour matching tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Lifecycle services wired to the mocked tables
- Sample request/application data
"""

import datetime as dt
import os
from decimal import Decimal
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set before any service is constructed
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-tourmatch")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from tourmatch.models import (  # noqa: E402
    ApplicationSubmit,
    GuideIdentity,
    TourRequest,
    TourRequestCreate,
)
from tourmatch.services.acceptance import AcceptanceService  # noqa: E402
from tourmatch.services.applications import ApplicationService  # noqa: E402
from tourmatch.services.bookings import BookingService  # noqa: E402
from tourmatch.services.dynamodb import DynamoDBService  # noqa: E402
from tourmatch.services.requests import TourRequestService  # noqa: E402
from tourmatch.services.schema import table_definitions  # noqa: E402

TOURIST_ID = "tourist-1"
GUIDE_A = GuideIdentity(guide_id="guide-a", guide_name="Ana", guide_email="ana@example.com")
GUIDE_B = GuideIdentity(guide_id="guide-b", guide_name="Bruno", guide_email="bruno@example.com")
START_DATE = dt.date(2025, 6, 1)
END_DATE = dt.date(2025, 6, 5)


# === DynamoDB Fixtures ===


@pytest.fixture(autouse=True)
def reset_dynamodb_singleton() -> Generator[None, None, None]:
    """Reset the DynamoDB singleton and cached API services around each test.

    Tests using mock_aws then get a fresh service instance inside the mock
    context rather than one from a previous test.
    """
    from tourmatch_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create the requests, applications and bookings tables."""
    for definition in table_definitions(os.environ["DYNAMODB_TABLE_PREFIX"]):
        dynamodb_client.create_table(**definition)


@pytest.fixture
def db(create_tables: None) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService()


# === Service Fixtures ===


@pytest.fixture
def request_service(db: DynamoDBService) -> TourRequestService:
    return TourRequestService(db)


@pytest.fixture
def application_service(db: DynamoDBService) -> ApplicationService:
    return ApplicationService(db)


@pytest.fixture
def acceptance_service(db: DynamoDBService) -> AcceptanceService:
    return AcceptanceService(db)


@pytest.fixture
def booking_service(db: DynamoDBService) -> BookingService:
    return BookingService(db)


# === Sample Data Fixtures ===


@pytest.fixture
def sample_request_data() -> TourRequestCreate:
    """Request body used by the lifecycle scenario."""
    return TourRequestCreate(
        title="Old town walking tour",
        destination="Lisbon",
        start_date=START_DATE,
        end_date=END_DATE,
        budget=Decimal("500"),
        number_of_people=2,
        tour_type="cultural",
        languages=["en", "pt"],
        description="History and food in Alfama",
    )


@pytest.fixture
def open_request(
    request_service: TourRequestService,
    sample_request_data: TourRequestCreate,
) -> TourRequest:
    """An open request owned by TOURIST_ID."""
    return request_service.create_request(
        TOURIST_ID, sample_request_data, tourist_name="Tina Tourist"
    )


@pytest.fixture
def request_with_applications(
    open_request: TourRequest,
    application_service: ApplicationService,
) -> TourRequest:
    """Open request with guide A at 450 and guide B at 480."""
    application_service.submit_application(
        open_request.request_id,
        GUIDE_A,
        ApplicationSubmit(proposed_price=Decimal("450"), cover_letter="Local historian"),
    )
    application_service.submit_application(
        open_request.request_id,
        GUIDE_B,
        ApplicationSubmit(proposed_price=Decimal("480"), cover_letter="Food lover"),
    )
    return open_request


# === API Fixtures ===


def auth_headers(user_id: str, name: str | None = None, email: str | None = None) -> dict[str, str]:
    """Identity headers as injected by API Gateway after JWT validation."""
    headers = {"x-user-sub": user_id}
    if name:
        headers["x-user-name"] = name
    if email:
        headers["x-user-email"] = email
    return headers


TOURIST_HEADERS = auth_headers(TOURIST_ID, "Tina Tourist")
GUIDE_A_HEADERS = auth_headers(GUIDE_A.guide_id, GUIDE_A.guide_name, GUIDE_A.guide_email)
GUIDE_B_HEADERS = auth_headers(GUIDE_B.guide_id, GUIDE_B.guide_name, GUIDE_B.guide_email)

REQUEST_BODY: dict[str, Any] = {
    "title": "Old town walking tour",
    "destination": "Lisbon",
    "start_date": "2025-06-01",
    "end_date": "2025-06-05",
    "budget": 500,
    "number_of_people": 2,
    "tour_type": "cultural",
    "languages": ["en", "pt"],
    "description": "History and food in Alfama",
}


@pytest.fixture
def client(create_tables: None) -> Any:
    """TestClient for the FastAPI app, backed by the mocked tables."""
    from fastapi.testclient import TestClient

    from tourmatch_api.main import app

    return TestClient(app)
