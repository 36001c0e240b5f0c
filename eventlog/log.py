"""Append-only event log backed by a single CSV-style file.

All operations share one file handle and one cursor, so every public
method holds the same non-reentrant lock for its whole duration. Any
method that moves the cursor to read puts it back at end-of-file before
releasing the lock, which keeps every append a true append.
"""

import os
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from eventlog.codec import (
    RecordWriter,
    TimestampPrecision,
    decode_event,
    encode_event,
    format_timestamp,
    iter_records,
    parse_timestamp,
)
from eventlog.config import get_settings
from eventlog.exceptions import (
    CorruptRecordError,
    LogClosedError,
    LogIOError,
    StopReplay,
    VisitorError,
)
from eventlog.models import Event, utc_now
from eventlog.observability.logging import get_logger

logger = get_logger(__name__)

Visitor = Callable[[Event], object]

DUMP_CHUNK_SIZE = 64 * 1024


class EventLog:
    """Thread-safe append-only event log.

    Lookups are full scans. Only callers within one process are
    coordinated; nothing guards against another process writing the file.

    Usage:
        with EventLog.open("events.csv") as log:
            log.append(Event(id="1", issuer="alice", scope="doc", action="read"))
            event = log.find("1")
    """

    def __init__(
        self,
        handle: BinaryIO,
        *,
        path: Path | None = None,
        clock: Callable[[], datetime] = utc_now,
        precision: TimestampPrecision = "seconds",
    ) -> None:
        """Wrap an already open binary handle.

        The handle must support read, write and seek. Prefer ``open``.
        """
        self._handle = handle
        self._path = path
        self._clock = clock
        self._precision = precision
        self._lock = threading.Lock()
        self._writer = RecordWriter(handle)
        self._closed = False
        self._log = logger.bind(path=str(path) if path else None)
        try:
            self._handle.seek(0, os.SEEK_END)
        except OSError as exc:
            raise LogIOError("open", str(exc)) from exc

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        clock: Callable[[], datetime] | None = None,
        precision: TimestampPrecision = "seconds",
        create_parents: bool = False,
    ) -> "EventLog":
        """Open the log at ``path``, creating the file if it is absent.

        Existing content is not validated here; corrupt records surface on
        replay.

        Args:
            path: Log file location
            clock: Source of append timestamps, UTC now by default
            precision: Fractional precision of stamped times
            create_parents: Create missing parent directories

        Raises:
            LogIOError: If the file cannot be opened or created
        """
        path = Path(path)
        try:
            if create_parents:
                path.parent.mkdir(parents=True, exist_ok=True)
            handle = path.open("a+b")
        except OSError as exc:
            logger.error("event_log_open_failed", path=str(path), error=str(exc))
            raise LogIOError("open", f"{path}: {exc}") from exc

        log = cls(handle, path=path, clock=clock or utc_now, precision=precision)
        log._log.info("event_log_opened")
        return log

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "EventLog":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _ensure_open(self, op: str) -> None:
        if self._closed:
            raise LogClosedError(op)

    def _seek_end(self, op: str) -> None:
        try:
            self._handle.seek(0, os.SEEK_END)
        except OSError as exc:
            self._log.error("event_log_seek_failed", op=op, error=str(exc))
            raise LogIOError(op, f"cannot restore end of log: {exc}") from exc

    def append(self, event: Event) -> Event:
        """Append an event and return it as persisted.

        The stored time is taken from the log's clock at call time; the
        time carried by ``event`` is ignored. The record is flushed before
        returning. A failed write is not rolled back.

        Raises:
            LogClosedError: If the log is closed
            LogIOError: If the record cannot be encoded or written
        """
        stamp = format_timestamp(self._clock(), self._precision)
        try:
            record = encode_event(event, stamp)
        except UnicodeEncodeError as exc:
            self._log.error(
                "event_encode_failed", event_id=repr(event.id), error=exc.reason
            )
            raise LogIOError(
                "append", f"cannot encode event {event.id!r}: {exc.reason}"
            ) from exc

        with self._lock:
            self._ensure_open("append")
            try:
                self._writer.write(record)
            except OSError as exc:
                self._log.error(
                    "event_append_failed", event_id=event.id, error=str(exc)
                )
                raise LogIOError("append", str(exc)) from exc

        self._log.debug(
            "event_appended", event_id=event.id, data_fields=len(event.data)
        )
        return event.model_copy(update={"time": parse_timestamp(stamp)}, deep=True)

    def find(self, event_id: str) -> Event | None:
        """Return the first event with ``event_id``, or None.

        The result is a deep copy; mutating it never affects the log.

        Raises:
            LogClosedError: If the log is closed
            CorruptRecordError: If a corrupt record precedes the match
            LogIOError: If the file cannot be read
        """
        found: Event | None = None

        def visit(event: Event) -> None:
            nonlocal found
            if event.id == event_id:
                found = event.model_copy(deep=True)
                raise StopReplay

        with self._lock:
            self._ensure_open("find")
            self._revive_unlocked(visit)
        return found

    def dump(self, destination: BinaryIO) -> int:
        """Copy the raw bytes of the log to ``destination``.

        Returns:
            Number of bytes copied

        Raises:
            LogClosedError: If the log is closed
            LogIOError: If reading the log or writing the destination fails
        """
        copied = 0
        with self._lock:
            self._ensure_open("dump")
            try:
                self._handle.seek(0)
                while chunk := self._handle.read(DUMP_CHUNK_SIZE):
                    try:
                        destination.write(chunk)
                    except Exception as exc:
                        self._log.error("event_log_dump_failed", error=str(exc))
                        raise LogIOError(
                            "dump", f"cannot write destination: {exc}"
                        ) from exc
                    copied += len(chunk)
            except OSError as exc:
                self._log.error("event_log_dump_failed", error=str(exc))
                raise LogIOError("dump", str(exc)) from exc
            finally:
                self._seek_end("dump")

        self._log.info("event_log_dumped", bytes=copied)
        return copied

    def revive(self, visit: Visitor) -> None:
        """Replay every event in append order, calling ``visit`` on each.

        ``visit`` may raise StopReplay to end the scan early. Any other
        exception stops the scan and is raised as VisitorError. Events
        delivered before a failure stay delivered. ``visit`` runs under the
        log's lock and must not call back into the log.

        Raises:
            LogClosedError: If the log is closed
            CorruptRecordError: On a record with too few fields or a bad
                timestamp
            VisitorError: If ``visit`` raises
            LogIOError: If the file cannot be read
        """
        with self._lock:
            self._ensure_open("revive")
            self._revive_unlocked(visit)

    def events(self) -> list[Event]:
        """Return all events in append order."""
        collected: list[Event] = []
        self.revive(collected.append)
        return collected

    def _revive_unlocked(self, visit: Visitor) -> None:
        """Replay without taking the lock.

        Callers must already hold ``self._lock``.
        """
        try:
            self._handle.seek(0)
        except OSError as exc:
            raise LogIOError("revive", str(exc)) from exc

        try:
            for line, fields in iter_records(self._handle):
                event = decode_event(line, fields)
                try:
                    visit(event)
                except StopReplay:
                    return
                except Exception as exc:
                    raise VisitorError(
                        "revive", f"visitor failed at line {line}: {exc}"
                    ) from exc
        except CorruptRecordError as exc:
            self._log.warning(
                "event_log_replay_corrupt", line=exc.line, error=exc.message
            )
            raise
        except OSError as exc:
            raise LogIOError("revive", str(exc)) from exc
        finally:
            self._seek_end("revive")

    def close(self) -> None:
        """Flush pending output and close the file.

        Closing twice is a no-op. Every other operation on a closed log
        raises LogClosedError.

        Raises:
            LogIOError: If flushing or closing fails
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                try:
                    self._writer.flush()
                finally:
                    self._handle.close()
            except OSError as exc:
                self._log.error("event_log_close_failed", error=str(exc))
                raise LogIOError("close", str(exc)) from exc

        self._log.info("event_log_closed")


def open_log(path: str | os.PathLike[str] | None = None) -> EventLog:
    """Open an event log using configured storage settings.

    ``path`` overrides the configured ``storage.path``.
    """
    storage = get_settings().storage
    return EventLog.open(
        path if path is not None else storage.path,
        precision=storage.timestamp_precision,
        create_parents=storage.create_parents,
    )
