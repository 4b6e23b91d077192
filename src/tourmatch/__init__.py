"""Tour request matching core: requests, guide applications and bookings."""

__version__ = "0.1.0"
