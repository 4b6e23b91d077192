"""Lifecycle services for tour requests, applications and bookings."""

from .acceptance import AcceptanceService
from .applications import MAX_APPLICATIONS_PER_REQUEST, ApplicationService
from .bookings import BookingService
from .cancellation_policy import CancellationEvaluation, CancellationPolicyService
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .requests import TourRequestService

__all__ = [
    "AcceptanceService",
    "ApplicationService",
    "BookingService",
    "CancellationEvaluation",
    "CancellationPolicyService",
    "DynamoDBService",
    "MAX_APPLICATIONS_PER_REQUEST",
    "TourRequestService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
]
