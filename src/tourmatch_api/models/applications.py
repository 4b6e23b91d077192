"""API models for application endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from tourmatch.models import Application, Booking, Page

ApplicationListResponse = Page[Application]


class AcceptanceResponse(BaseModel):
    """Result of accepting an application."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    request_id: str = Field(..., description="Request that was resolved")
    application_id: str = Field(..., description="Accepted application")
    booking: Booking = Field(..., description="Booking created by the acceptance")
