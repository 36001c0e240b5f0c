"""Event model for the event log."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class Event(BaseModel):
    """A single audit record.

    Captures who (issuer) did what (action) to what (scope). Events are
    immutable once created; ``find`` hands out deep copies so a caller
    mutating ``data`` never touches the log.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Caller-supplied identifier")
    issuer: str = Field(..., description="Actor who produced the event")
    scope: str = Field(..., description="Entity the event applies to")
    action: str = Field(..., description="What happened")
    time: datetime = Field(
        default_factory=utc_now,
        description="Event time, stamped by the log on append",
    )
    data: list[str] = Field(
        default_factory=list, description="Free-form payload fields"
    )
