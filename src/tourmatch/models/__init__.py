"""Pydantic models for tour matching data entities."""

from .application import Application, ApplicationSubmit, ApplicationUpdate, GuideIdentity
from .booking import Booking
from .common import Money
from .enums import (
    ApplicationStatus,
    BookingStatus,
    GuideDecision,
    RequestStatus,
    SortOrder,
)
from .errors import (
    ERROR_KINDS,
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorKind,
    ErrorResponse,
    MarketplaceError,
)
from .listing import ListParams, Page, Pagination
from .tour_request import TourRequest, TourRequestCreate, TourRequestUpdate

__all__ = [
    # Enums
    "ApplicationStatus",
    "BookingStatus",
    "GuideDecision",
    "RequestStatus",
    "SortOrder",
    # Tour request
    "TourRequest",
    "TourRequestCreate",
    "TourRequestUpdate",
    # Application
    "Application",
    "ApplicationSubmit",
    "ApplicationUpdate",
    "GuideIdentity",
    # Booking
    "Booking",
    # Listing
    "ListParams",
    "Page",
    "Pagination",
    # Types
    "Money",
    # Errors
    "ERROR_KINDS",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorKind",
    "ErrorResponse",
    "MarketplaceError",
]
