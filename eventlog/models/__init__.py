"""Event log domain models."""

from eventlog.models.event import Event, utc_now

__all__ = [
    "Event",
    "utc_now",
]
