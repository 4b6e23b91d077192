"""Listing parameters and paginated result models."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .enums import SortOrder

T = TypeVar("T")


class ListParams(BaseModel):
    """Search, filter, sort and page parameters for a listing.

    `filters` maps the listing's filter parameter names (e.g.
    ``min_budget``) to raw values; unknown names are ignored.
    """

    model_config = ConfigDict(strict=False)

    search: str | None = None
    sort_by: str | None = None
    # Unknown orders are kept and fall back to the listing default
    sort_order: SortOrder | str | None = None
    page: int = 1
    limit: int = 10
    filters: dict[str, Any] = Field(default_factory=dict)


class Pagination(BaseModel):
    """Pagination metadata returned with every listing."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class Page(BaseModel, Generic[T]):
    """One page of a listing."""

    items: list[T]
    pagination: Pagination
