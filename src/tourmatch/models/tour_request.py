"""Tour request model: a tourist's posted trip brief."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .common import Money
from .enums import RequestStatus


class TourRequest(BaseModel):
    """A tour request as stored in the tour-requests table.

    `application_count` is a cached projection maintained on submission.
    Nothing may rely on it for correctness: the applications table is the
    source of truth. `version` increases on every mutation that the
    acceptance transaction must not race with.
    """

    # strict=False: items come back from DynamoDB with Decimal numbers
    # and ISO strings for dates
    model_config = ConfigDict(strict=False)

    request_id: str = Field(..., description="Unique tour request ID")
    title: str = Field(..., description="Short title of the trip")
    destination: str = Field(..., description="Where the tour takes place")
    start_date: date = Field(..., description="First day of the tour")
    end_date: date = Field(..., description="Last day of the tour")
    budget: Money = Field(..., gt=0, description="Tourist budget")
    number_of_people: int = Field(..., gt=0, description="Party size")
    tour_type: str = Field(default="", description="Kind of tour (e.g. cultural)")
    languages: list[str] = Field(default_factory=list, description="Requested languages")
    description: str = Field(default="", description="Free-text trip description")
    requirements: str | None = Field(default=None, description="Special requirements")
    tourist_id: str = Field(..., description="Owning tourist")
    tourist_name: str | None = Field(default=None, description="Tourist display name")
    application_count: int = Field(default=0, ge=0, description="Advisory applicant count")
    status: RequestStatus = Field(default=RequestStatus.OPEN)
    version: int = Field(default=0, ge=0, description="Compare-and-swap counter")
    created_at: datetime
    updated_at: datetime

    # Set by the acceptance transaction
    selected_application_id: str | None = None
    selected_guide_id: str | None = None
    selected_guide_name: str | None = None
    selected_guide_email: str | None = None
    selected_price: Money | None = None
    booking_id: str | None = None
    accepted_at: datetime | None = None


class TourRequestCreate(BaseModel):
    """Data a tourist submits to post a request.

    Business rules (positive budget, date order, ...) are checked by
    TourRequestService so they surface as validation errors naming the
    offending field.
    """

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "title": "Old town walking tour",
                    "destination": "Lisbon",
                    "start_date": "2025-06-01",
                    "end_date": "2025-06-05",
                    "budget": 500,
                    "number_of_people": 2,
                    "tour_type": "cultural",
                    "languages": ["en", "pt"],
                    "description": "Looking for a local guide for history and food",
                }
            ]
        },
    )

    title: str
    destination: str
    start_date: date
    end_date: date
    budget: Decimal
    number_of_people: int
    tour_type: str = ""
    languages: list[str] = Field(default_factory=list)
    description: str = ""
    requirements: str | None = None


class TourRequestUpdate(BaseModel):
    """Partial update of an open request. Only set fields are applied."""

    model_config = ConfigDict(strict=False)

    title: str | None = None
    destination: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal | None = None
    number_of_people: int | None = None
    tour_type: str | None = None
    languages: list[str] | None = None
    description: str | None = None
    requirements: str | None = None
