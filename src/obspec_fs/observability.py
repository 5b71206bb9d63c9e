"""Per-operation observability for files and file systems.

Every public operation emits exactly one [FileLog][obspec_fs.observability.FileLog],
on success and on failure alike: a DEBUG record on the ``obspec_fs`` logger
carrying the log fields as record extras, and one histogram observation (see
[obspec_fs.metrics][]).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Literal

from obspec_fs import metrics

logger = logging.getLogger("obspec_fs")

STATUS_SUCCESS = "SUCCESS"
STATUS_ERROR = "ERROR"

Status = Literal["SUCCESS", "ERROR"]

# LogRecord attributes set from a FileLog; ``message`` is reserved by logging.
FILE_LOG_FIELDS = ("operation", "location", "status", "duration_us", "provider", "detail")


@dataclass
class FileLog:
    """Record of a single file or file system operation.

    Note
    ----
    ``duration`` is in microseconds. ``status`` starts as ``"ERROR"`` and is
    flipped by the operation once it has succeeded, so an operation that
    raises is always recorded as failed.
    """

    operation: str
    location: str
    status: Status = STATUS_ERROR
    message: str | None = None
    duration: int = 0
    provider: str = "S3"

    def as_extra(self) -> dict[str, object]:
        """Fields attached to the emitted ``logging.LogRecord``."""
        return {
            "operation": self.operation,
            "location": self.location,
            "status": self.status,
            "duration_us": self.duration,
            "provider": self.provider,
            "detail": self.message,
        }

    def succeed(self, message: str | None = None) -> None:
        """Mark the operation successful, optionally with a message."""
        self.status = STATUS_SUCCESS
        if message is not None:
            self.message = message

    def __str__(self) -> str:
        line = f"{self.provider} {self.operation} {self.status} {self.duration}µs {self.location}"
        if self.message:
            line += f" {self.message}"
        return line


@contextmanager
def observe(
    operation: str,
    location: str,
    *,
    provider: str = "S3",
    log: logging.Logger | None = None,
) -> Generator[FileLog, None, None]:
    """Context manager that times an operation and emits its FileLog.

    Yields the FileLog for the caller to mark successful and annotate.
    The record is emitted even if the operation raises.
    """
    record = FileLog(operation=operation, location=location, provider=provider)
    start_time = time.perf_counter()
    try:
        yield record
    finally:
        elapsed = time.perf_counter() - start_time
        record.duration = int(elapsed * 1_000_000)
        (log or logger).debug("%s", record, extra=record.as_extra())
        metrics.observe_operation(operation, record.status, elapsed)


__all__ = [
    "FILE_LOG_FIELDS",
    "FileLog",
    "STATUS_ERROR",
    "STATUS_SUCCESS",
    "observe",
]
