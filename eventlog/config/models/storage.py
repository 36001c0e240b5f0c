"""Storage configuration for the event log file."""

from pathlib import Path

from pydantic import BaseModel, Field

from eventlog.codec import TimestampPrecision


class StorageConfig(BaseModel):
    """Where the log lives and how records are stamped."""

    path: Path = Field(
        default=Path("data/events.csv"),
        description="Path of the log file",
    )
    timestamp_precision: TimestampPrecision = Field(
        default="seconds",
        description="Fractional precision of stamped times",
    )
    create_parents: bool = Field(
        default=True,
        description="Create missing parent directories on open",
    )
