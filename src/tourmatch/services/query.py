"""Search, filter, sort and paginate listings of lifecycle entities.

Every listing runs the same pipeline over an in-memory collection:
search, then filter, then sort, then paginate. What differs per entity
(searchable fields, filter parameters, sort keys, defaults) is captured
in a ListingSpec.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel

from ..models.enums import SortOrder
from ..models.errors import MarketplaceError
from ..models.listing import ListParams, Page, Pagination

T = TypeVar("T", bound=BaseModel)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class FieldFilter:
    """Maps a filter parameter to an entity field.

    op is "eq" (exact match), "min" (field >= value) or "max"
    (field <= value). kind is "text", "number" or "date".
    """

    param: str
    field: str
    op: str = "eq"
    kind: str = "text"


@dataclass(frozen=True)
class ListingSpec:
    """Per-entity listing configuration."""

    search_fields: tuple[str, ...]
    filters: tuple[FieldFilter, ...]
    sort_keys: tuple[str, ...]
    default_sort: str
    default_order: SortOrder


REQUEST_LISTING = ListingSpec(
    search_fields=("title", "destination", "description", "tour_type", "tourist_name"),
    filters=(
        FieldFilter("tour_type", "tour_type"),
        FieldFilter("status", "status"),
        FieldFilter("tourist_id", "tourist_id"),
        FieldFilter("min_budget", "budget", "min", "number"),
        FieldFilter("max_budget", "budget", "max", "number"),
        FieldFilter("min_people", "number_of_people", "min", "number"),
        FieldFilter("max_people", "number_of_people", "max", "number"),
        FieldFilter("start_date_from", "start_date", "min", "date"),
        FieldFilter("start_date_to", "start_date", "max", "date"),
    ),
    sort_keys=("budget", "start_date", "application_count", "created_at"),
    default_sort="created_at",
    default_order=SortOrder.DESC,
)

APPLICATION_LISTING = ListingSpec(
    search_fields=("guide_name", "cover_letter"),
    filters=(
        FieldFilter("status", "status"),
        FieldFilter("min_price", "proposed_price", "min", "number"),
        FieldFilter("max_price", "proposed_price", "max", "number"),
    ),
    sort_keys=("proposed_price", "created_at", "updated_at", "guide_name"),
    default_sort="updated_at",
    default_order=SortOrder.DESC,
)

GUIDE_APPLICATION_LISTING = ListingSpec(
    search_fields=("tour_title", "destination", "tour_type", "tourist_name"),
    filters=(
        FieldFilter("status", "status"),
        FieldFilter("min_proposed_price", "proposed_price", "min", "number"),
        FieldFilter("max_proposed_price", "proposed_price", "max", "number"),
        FieldFilter("min_agreed_price", "agreed_price", "min", "number"),
        FieldFilter("max_agreed_price", "agreed_price", "max", "number"),
    ),
    sort_keys=("start_date", "proposed_price", "agreed_price", "created_at", "updated_at"),
    default_sort="updated_at",
    default_order=SortOrder.DESC,
)

BOOKING_LISTING = ListingSpec(
    search_fields=("title", "destination", "tourist_name", "guide_name", "tour_type"),
    filters=(
        FieldFilter("status", "status"),
        FieldFilter("guide_id", "guide_id"),
        FieldFilter("tourist_id", "tourist_id"),
        FieldFilter("min_price", "agreed_price", "min", "number"),
        FieldFilter("max_price", "agreed_price", "max", "number"),
        FieldFilter("start_date_from", "start_date", "min", "date"),
        FieldFilter("start_date_to", "start_date", "max", "date"),
    ),
    sort_keys=(
        "start_date",
        "end_date",
        "agreed_price",
        "title",
        "destination",
        "status",
        "created_at",
    ),
    default_sort="start_date",
    default_order=SortOrder.ASC,
)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _text(value: Any) -> str:
    value = _plain(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _number(param: str, value: Any) -> Decimal:
    try:
        bound = Decimal(str(value))
    except InvalidOperation:
        raise MarketplaceError.validation(param, f"{param} must be a number") from None
    # NaN and infinities parse but cannot be ordered
    if not bound.is_finite():
        raise MarketplaceError.validation(param, f"{param} must be a finite number")
    return bound


def _sort_order(value: Any, default: SortOrder) -> SortOrder:
    """Parse a sort order leniently; anything unrecognised is the default."""
    raw = _plain(value)
    if isinstance(raw, str):
        try:
            return SortOrder(raw.strip().lower())
        except ValueError:
            pass
    return default


def apply_search(items: Sequence[T], search: str | None, fields: Sequence[str]) -> list[T]:
    """Keep items where any field contains the search term (case-insensitive)."""
    term = (search or "").strip().lower()
    if not term:
        return list(items)

    def matches(item: T) -> bool:
        for name in fields:
            value = getattr(item, name, None)
            if value is not None and term in _text(value).lower():
                return True
        return False

    return [item for item in items if matches(item)]


def apply_filters(
    items: Sequence[T],
    filters: dict[str, Any],
    listing: ListingSpec,
) -> list[T]:
    """Apply every supplied filter parameter the listing knows about.

    Unknown parameters and None values are ignored. Missing numeric fields
    count as 0; items missing a date field never match a date range.
    """
    result = list(items)
    for field_filter in listing.filters:
        raw = filters.get(field_filter.param)
        if raw is None or raw == "":
            continue

        if field_filter.kind == "number":
            bound = _number(field_filter.param, raw)

            def value_of(item: T, name: str = field_filter.field) -> Decimal:
                value = getattr(item, name, None)
                return Decimal(str(value)) if value is not None else Decimal(0)

            if field_filter.op == "min":
                result = [i for i in result if value_of(i) >= bound]
            else:
                result = [i for i in result if value_of(i) <= bound]
        elif field_filter.kind == "date":
            bound_text = _text(raw)

            def date_of(item: T, name: str = field_filter.field) -> str | None:
                value = getattr(item, name, None)
                return _text(value) if value is not None else None

            if field_filter.op == "min":
                result = [i for i in result if (d := date_of(i)) is not None and d >= bound_text]
            else:
                result = [i for i in result if (d := date_of(i)) is not None and d <= bound_text]
        else:
            expected = _text(raw)
            result = [
                i
                for i in result
                if getattr(i, field_filter.field, None) is not None
                and _text(getattr(i, field_filter.field)) == expected
            ]
    return result


def sort_items(
    items: Sequence[T],
    sort_by: str | None,
    sort_order: SortOrder | str | None,
    listing: ListingSpec,
) -> list[T]:
    """Stable single-key sort.

    An unknown key falls back to the entity default key; a missing or
    unknown order falls back to the entity default order. Strings compare
    case-insensitively; missing values sort before present ones ascending.
    """
    key_name = sort_by if sort_by in listing.sort_keys else listing.default_sort
    order = _sort_order(sort_order, listing.default_order)

    def sort_key(item: T) -> tuple[bool, Any]:
        value = _plain(getattr(item, key_name, None))
        if value is None:
            return (False, 0)
        if isinstance(value, str):
            return (True, value.lower())
        return (True, value)

    return sorted(items, key=sort_key, reverse=order == SortOrder.DESC)


def paginate(items: Sequence[T], page: int = 1, limit: int = DEFAULT_LIMIT) -> Page[T]:
    """Slice one page out of items.

    page is clamped to >= 1 and limit to [1, 100].
    """
    page = max(1, int(page or 1))
    limit = min(MAX_LIMIT, max(1, int(limit or DEFAULT_LIMIT)))

    total = len(items)
    total_pages = math.ceil(total / limit)
    start = (page - 1) * limit

    return Page(
        items=list(items[start : start + limit]),
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )


def run_listing(items: Sequence[T], params: ListParams, listing: ListingSpec) -> Page[T]:
    """Search, filter, sort and paginate items according to the listing config."""
    result = apply_search(items, params.search, listing.search_fields)
    result = apply_filters(result, params.filters, listing)
    result = sort_items(result, params.sort_by, params.sort_order, listing)
    return paginate(result, params.page, params.limit)
