"""Append-only audit event log stored as a delimited text file.

Each record says who (issuer) did what (action) to what (scope), with an
identifier, a timestamp and optional free-form data fields.

Usage:
    from eventlog import Event, EventLog

    with EventLog.open("events.csv") as log:
        log.append(Event(id="42", issuer="alice", scope="invoice", action="approve"))
        log.find("42")
"""

from eventlog.exceptions import (
    CorruptRecordError,
    EventLogError,
    LogClosedError,
    LogIOError,
    StopReplay,
    VisitorError,
)
from eventlog.log import EventLog, open_log
from eventlog.models import Event

__all__ = [
    "CorruptRecordError",
    "Event",
    "EventLog",
    "EventLogError",
    "LogClosedError",
    "LogIOError",
    "StopReplay",
    "VisitorError",
    "open_log",
]
