"""API routes package.

Routers are organized by entity:

- health: Health check endpoint
- requests: Tour request lifecycle
- applications: Guide applications and acceptance
- bookings: Booking lifecycle

All routers are registered in main.py with /api prefix.
"""

from .applications import router as applications_router
from .bookings import router as bookings_router
from .health import router as health_router
from .requests import router as requests_router

__all__ = [
    "applications_router",
    "bookings_router",
    "health_router",
    "requests_router",
]
