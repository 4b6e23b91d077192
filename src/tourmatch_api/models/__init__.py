"""API-specific request/response models.

Request bodies and response schemas specific to the REST layer. Domain
models are imported from tourmatch.models.
"""

from .applications import AcceptanceResponse, ApplicationListResponse
from .bookings import BookingDecisionRequest, BookingListResponse, CancellationPolicyResponse
from .common import ValidationErrorDetail, ValidationErrorResponse, format_validation_errors
from .requests import TourRequestListResponse

__all__ = [
    "AcceptanceResponse",
    "ApplicationListResponse",
    "BookingDecisionRequest",
    "BookingListResponse",
    "CancellationPolicyResponse",
    "TourRequestListResponse",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "format_validation_errors",
]
