"""Enumeration types for tour matching data models."""

from enum import Enum


class RequestStatus(str, Enum):
    """Lifecycle status of a tour request."""

    OPEN = "open"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ApplicationStatus(str, Enum):
    """Lifecycle status of a guide application."""

    PENDING = "pending"
    SELECTED = "selected"
    REJECTED = "rejected"


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class GuideDecision(str, Enum):
    """Response a guide can give to a pending booking."""

    UPCOMING = "upcoming"  # Accept the engagement
    CANCELLED = "cancelled"  # Decline it


class SortOrder(str, Enum):
    """Sort direction for listings."""

    ASC = "asc"
    DESC = "desc"
