from datetime import datetime, UTC
import logging

from errors import Forbidden, ValidationError

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO string with a fixed microsecond width."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


def parse_date(date_str: str) -> datetime:
    """Parse a date string into a datetime object."""
    try:
        return datetime.fromisoformat(date_str)
    except (TypeError, ValueError):
        try:
            return datetime.strptime(date_str, "%Y-%m-%d %H:%M")
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid date format: {date_str!r}")


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_date(date_str):
    """Rewrite an accepted date string in ISO form; empty values become None."""
    if not date_str:
        return None
    return parse_date(date_str).isoformat()


def check_date_range(start_date, end_date):
    """Validate optional start/end dates; the end may not precede the start."""
    start = parse_date(start_date) if start_date else None
    end = parse_date(end_date) if end_date else None
    if start and end and as_utc(end) < as_utc(start):
        raise ValidationError("End date must not be before start date")


def check_event_permission(event, current_user):
    """Check if the user has permission to modify an event."""
    if current_user.is_admin:
        return
    if event.created_by != current_user.user_id:
        logger.info(f"User {current_user.user_id} denied access to event {event.id}")
        raise Forbidden("Access denied: you are not the event creator")
