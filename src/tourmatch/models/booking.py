"""Booking model: the engagement created by accepting an application."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import Money
from .enums import BookingStatus


class Booking(BaseModel):
    """A booking between a tourist and the selected guide.

    Only the acceptance transaction creates bookings. `agreed_price` is
    copied from the accepted proposal at acceptance time and never
    recomputed.
    """

    model_config = ConfigDict(strict=False)

    booking_id: str = Field(..., description="Unique booking ID")
    request_id: str = Field(..., description="Originating tour request")
    application_id: str = Field(..., description="Accepted application")
    tourist_id: str
    tourist_name: str | None = None
    guide_id: str
    guide_name: str | None = None
    guide_email: str | None = None

    # Trip details copied from the request
    title: str
    destination: str
    start_date: date
    end_date: date
    tour_type: str | None = None
    number_of_people: int | None = None
    budget: Money | None = None

    status: BookingStatus = Field(default=BookingStatus.PENDING)
    agreed_price: Money = Field(..., ge=0)
    cancelled_by: str | None = Field(default=None, description="Who cancelled, if cancelled")
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
