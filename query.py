"""Search, filter, sort and paginate a list of events.

The pipeline runs in a fixed order: text search over title and description,
exact event-type filter, a stable sort on one wire field, then a page slice.
``total_events`` counts the filtered events before slicing.
"""
from dataclasses import dataclass
from math import ceil
from typing import Iterable, Optional

from errors import ValidationError
from models import Event, EventType
from utils import as_utc, parse_date

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_DIR = "desc"

# Wire field name -> Event attribute
SORTABLE_FIELDS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "eventType": "event_type",
    "imageUrl": "image_url",
    "location": "location",
    "startDate": "start_date",
    "endDate": "end_date",
    "createdBy": "created_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
NUMERIC_FIELDS = {"id", "createdBy"}
DATE_FIELDS = {"startDate", "endDate", "createdAt", "updatedAt"}


@dataclass
class EventQuery:
    search: Optional[str] = None
    type: Optional[str] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = DEFAULT_SORT_BY
    sort_dir: str = DEFAULT_SORT_DIR


@dataclass
class EventPage:
    events: list[Event]
    total_events: int
    current_page: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "events": [e.to_dict() for e in self.events],
            "totalEvents": self.total_events,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
        }


def matches_search(event: Event, search: str) -> bool:
    needle = search.lower()
    return needle in (event.title or "").lower() or needle in (event.description or "").lower()


def sort_key(field: str):
    """Key function for a wire field; missing values sort first, as an empty string would."""
    attr = SORTABLE_FIELDS[field]

    def key(event: Event):
        value = getattr(event, attr)
        if field in DATE_FIELDS:
            # Inputs may mix formats and offsets, so compare the instants
            return (False,) if value is None else (True, as_utc(parse_date(value)))
        if value is None:
            return ""
        if field in NUMERIC_FIELDS:
            return value
        if isinstance(value, EventType):
            return value.value
        return str(value)

    return key


def run_query(events: Iterable[Event], query: EventQuery) -> EventPage:
    if query.page < 1:
        raise ValidationError("page must be at least 1")
    if query.limit < 1:
        raise ValidationError("limit must be at least 1")
    if query.sort_by not in SORTABLE_FIELDS:
        raise ValidationError(f"Cannot sort by {query.sort_by!r}")
    if query.sort_dir not in ("asc", "desc"):
        raise ValidationError("sortDir must be 'asc' or 'desc'")
    event_type = None
    if query.type:
        try:
            event_type = EventType(query.type)
        except ValueError:
            allowed = ", ".join(t.value for t in EventType)
            raise ValidationError(f"type must be one of: {allowed}")

    results = list(events)
    if query.search:
        results = [e for e in results if matches_search(e, query.search)]
    if event_type is not None:
        results = [e for e in results if e.event_type == event_type]

    # sorted() is stable for reverse=True too, so ties keep input order
    results = sorted(results, key=sort_key(query.sort_by), reverse=query.sort_dir == "desc")

    total = len(results)
    start = (query.page - 1) * query.limit
    return EventPage(
        events=results[start:start + query.limit],
        total_events=total,
        current_page=query.page,
        total_pages=max(1, ceil(total / query.limit)),
    )
