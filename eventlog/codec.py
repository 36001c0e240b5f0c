"""On-disk record format.

One record per line, comma separated, CSV-style quoting::

    id,issuer,scope,action,timestamp,data_0,data_1,...

Timestamps are RFC 3339 and always carry an offset; UTC is written as ``Z``.
Lines starting with ``#`` at a record boundary are comments and are skipped
on read, as are blank lines.
"""

import csv
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from typing import BinaryIO, Literal

from eventlog.exceptions import CorruptRecordError
from eventlog.models import Event

TimestampPrecision = Literal["seconds", "milliseconds", "microseconds"]

ENCODING = "utf-8"
FIELD_SEPARATOR = ","
QUOTE_CHAR = '"'
LINE_TERMINATOR = "\n"
COMMENT_MARKER = "#"
COMMENT_BYTE = COMMENT_MARKER.encode(ENCODING)

# id, issuer, scope, action, timestamp
MIN_FIELDS = 5


def format_timestamp(
    value: datetime, precision: TimestampPrecision = "seconds"
) -> str:
    """Render a datetime as RFC 3339 text.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.isoformat(timespec=precision)
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(text: str) -> datetime:
    """Parse RFC 3339 text into an aware datetime.

    Raises:
        ValueError: If the text is not a full date-time with an offset
    """
    if "T" not in text:
        raise ValueError(f"not an RFC 3339 date-time: {text!r}")
    if text[-1:] in ("z", "Z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        raise ValueError(f"timestamp has no offset: {text!r}")
    return value


def _needs_quotes(field: str) -> bool:
    if field == "":
        return False
    if any(c in field for c in (FIELD_SEPARATOR, QUOTE_CHAR, "\r", "\n")):
        return True
    # Leading whitespace is trimmed on read unless quoted
    return field[0].isspace()


def _quote(field: str) -> str:
    if not _needs_quotes(field):
        return field
    escaped = field.replace(QUOTE_CHAR, QUOTE_CHAR * 2)
    return f"{QUOTE_CHAR}{escaped}{QUOTE_CHAR}"


def encode_record(fields: Iterable[str]) -> bytes:
    """Encode positional fields as one terminated record.

    The first field is also quoted when it starts with the comment marker,
    otherwise the record would read back as a comment.
    """
    parts = [_quote(field) for field in fields]
    if parts and parts[0].startswith(COMMENT_MARKER):
        parts[0] = f"{QUOTE_CHAR}{parts[0]}{QUOTE_CHAR}"
    return (FIELD_SEPARATOR.join(parts) + LINE_TERMINATOR).encode(ENCODING)


def encode_event(event: Event, stamp: str) -> bytes:
    """Encode an event using ``stamp`` in place of the event's own time."""
    return encode_record(
        [event.id, event.issuer, event.scope, event.action, stamp, *event.data]
    )


class _RecordLines:
    """Line iterator feeding csv.reader from a binary stream.

    Drops comment and blank lines where a new record begins, before any
    decoding, so hand annotations in another encoding never fail a replay.
    Kept lines are decoded one at a time, and quoted fields spanning several
    lines are never cut. Tracks the physical line number on which the
    current record starts.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._lines = iter(stream)
        self.at_record_start = True
        self.line_num = 0
        self.record_line = 0

    def __iter__(self) -> "_RecordLines":
        return self

    def __next__(self) -> str:
        while True:
            raw = next(self._lines)
            self.line_num += 1
            if self.at_record_start:
                if raw.startswith(COMMENT_BYTE) or not raw.strip(b"\r\n"):
                    continue
                self.record_line = self.line_num
                self.at_record_start = False
            try:
                return raw.decode(ENCODING)
            except UnicodeDecodeError as exc:
                raise CorruptRecordError(
                    self.line_num, f"invalid {ENCODING}: {exc.reason}"
                ) from exc


def iter_records(stream: BinaryIO) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(line_number, fields)`` for each record in a binary stream.

    Field counts may vary from record to record.

    Raises:
        CorruptRecordError: On malformed quoting or undecodable bytes
    """
    lines = _RecordLines(stream)
    reader = csv.reader(
        lines,
        delimiter=FIELD_SEPARATOR,
        quotechar=QUOTE_CHAR,
        skipinitialspace=True,
        strict=True,
    )
    while True:
        lines.at_record_start = True
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            raise CorruptRecordError(
                lines.record_line or lines.line_num, f"malformed record: {exc}"
            ) from exc
        yield lines.record_line, fields


def decode_event(line: int, fields: list[str]) -> Event:
    """Build an Event from the raw fields of one record.

    Raises:
        CorruptRecordError: If there are too few fields or the timestamp
            does not parse
    """
    if len(fields) < MIN_FIELDS:
        raise CorruptRecordError(line, f"unexpected record {fields!r}", fields)
    try:
        time = parse_timestamp(fields[4])
    except ValueError as exc:
        raise CorruptRecordError(line, str(exc), fields) from exc
    return Event(
        id=fields[0],
        issuer=fields[1],
        scope=fields[2],
        action=fields[3],
        time=time,
        data=fields[MIN_FIELDS:],
    )


class RecordWriter:
    """Writes encoded records to a binary handle, flushing after each one."""

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    def write(self, record: bytes) -> None:
        self._handle.write(record)
        self._handle.flush()

    def flush(self) -> None:
        self._handle.flush()
