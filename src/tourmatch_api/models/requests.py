"""API models for tour request endpoints."""

from tourmatch.models import Page, TourRequest

# Bodies reuse TourRequestCreate / TourRequestUpdate from tourmatch.models;
# the owning tourist comes from the caller identity, not the body.
TourRequestListResponse = Page[TourRequest]
