"""Exception hierarchy for the event log.

All errors inherit from EventLogError, which records the name of the
operation that failed. The string form is ``"{op}: {message}"`` so a
caller can tell from the message alone where a failure came from.
"""

from collections.abc import Sequence


class EventLogError(Exception):
    """Base exception for all event log errors."""

    def __init__(self, op: str, message: str) -> None:
        self.op = op
        self.message = message
        super().__init__(f"{op}: {message}")


class LogIOError(EventLogError):
    """Raised when the underlying file cannot be opened, read, written or closed."""


class LogClosedError(EventLogError):
    """Raised when an operation is attempted on a closed log."""

    def __init__(self, op: str) -> None:
        super().__init__(op, "event log is closed")


class CorruptRecordError(EventLogError):
    """Raised when replay meets a record it cannot decode.

    ``line`` is the 1-based physical line on which the record starts.
    """

    def __init__(
        self,
        line: int,
        message: str,
        fields: Sequence[str] | None = None,
    ) -> None:
        self.line = line
        self.fields = list(fields) if fields is not None else None
        super().__init__("revive", f"line {line}: {message}")


class VisitorError(EventLogError):
    """Raised when a replay visitor fails; the original error is chained."""


class StopReplay(Exception):  # noqa: N818
    """Raised by a replay visitor to end the scan early without error."""
