"""API models for booking endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from tourmatch.models import Booking, GuideDecision, Page

BookingListResponse = Page[Booking]


class BookingDecisionRequest(BaseModel):
    """Guide's answer to a pending booking."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={"examples": [{"decision": "upcoming"}]},
    )

    decision: GuideDecision = Field(
        ...,
        description="'upcoming' to confirm the booking, 'cancelled' to decline it",
    )


class CancellationPolicyResponse(BaseModel):
    """Cancellation policy text shown before a tourist cancels."""

    model_config = ConfigDict(strict=True)

    minimum_notice_hours: int
    description: str
