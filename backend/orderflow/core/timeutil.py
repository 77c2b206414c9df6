"""Time helpers.

Timestamps are stored as naive UTC datetimes.
"""

from datetime import datetime, timedelta, timezone

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_day(value: datetime) -> str:
    """Format as ``DD-Mon-YYYY`` independent of the process locale."""
    return f"{value.day:02d}-{MONTH_ABBR[value.month - 1]}-{value.year}"


def delivery_estimate(start: datetime, min_days: int, max_days: int) -> str:
    """Delivery window promised at checkout, e.g. ``25-Oct-2026 - 27-Oct-2026``."""
    return f"{format_day(start + timedelta(days=min_days))} - {format_day(start + timedelta(days=max_days))}"
