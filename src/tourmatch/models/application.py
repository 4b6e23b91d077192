"""Guide application model, always owned by one tour request."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .common import Money
from .enums import ApplicationStatus


class GuideIdentity(BaseModel):
    """Resolved identity of the guide submitting an application."""

    model_config = ConfigDict(strict=True)

    guide_id: str
    guide_name: str | None = None
    guide_email: str | None = None

    @property
    def display_name(self) -> str:
        """Name shown to tourists, falling back to the email local part."""
        if self.guide_name:
            return self.guide_name
        if self.guide_email:
            return self.guide_email.split("@")[0]
        return self.guide_id


class Application(BaseModel):
    """A guide's bid on a tour request.

    The application ID is the guide ID, so a guide holds at most one
    application per request. Request fields are copied in at submission
    time so guide-facing listings need no joins.
    """

    model_config = ConfigDict(strict=False)

    request_id: str = Field(..., description="Parent tour request")
    application_id: str = Field(..., description="Application ID (the guide ID)")
    guide_id: str
    guide_name: str
    guide_email: str | None = None
    proposed_price: Money = Field(..., ge=0)
    cover_letter: str
    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING)
    agreed_price: Money | None = Field(default=None, description="Set when selected")

    # Denormalized from the parent request
    tour_title: str | None = None
    destination: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    tour_type: str | None = None
    tourist_id: str | None = None
    tourist_name: str | None = None
    tourist_budget: Money | None = None

    created_at: datetime
    updated_at: datetime


class ApplicationSubmit(BaseModel):
    """Price and pitch a guide submits for a request."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "proposed_price": 450,
                    "cover_letter": "Born and raised in Alfama, I run food walks daily.",
                }
            ]
        },
    )

    proposed_price: Decimal
    cover_letter: str


class ApplicationUpdate(BaseModel):
    """Edit of a pending application. Only set fields are applied."""

    model_config = ConfigDict(strict=False)

    proposed_price: Decimal | None = None
    cover_letter: str | None = None
