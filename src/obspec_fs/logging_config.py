"""Log output setup for obspec-fs.

FileLog records carry their fields as record extras (see
[FileLog.as_extra][obspec_fs.observability.FileLog.as_extra]). The JSON
formatter nests them under a ``"file"`` key so that file operations can be
filtered apart from ordinary log lines.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING

from obspec_fs import metrics
from obspec_fs.observability import FILE_LOG_FIELDS

if TYPE_CHECKING:
    from obspec_fs.config import ObservabilityConfig

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Every line has ``timestamp``, ``level``, ``logger`` and ``message``, plus
    ``exception`` when the record carries one. Records emitted by
    [observe][obspec_fs.observability.observe] also get a ``file`` object with
    the operation, location, status, duration, provider and detail message.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        file_log = {
            field: getattr(record, field)
            for field in FILE_LOG_FIELDS
            if getattr(record, field, None) is not None
        }
        if file_log:
            entry["file"] = file_log
        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO",
    fmt: str = "text",
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Send all logging to a single handler on the root logger.

    Parameters
    ----------
    level
        Level name. FileLog records are emitted at DEBUG, so they only show
        up with ``"DEBUG"``. Unknown names fall back to INFO.
    fmt
        ``"json"`` for [JSONFormatter][obspec_fs.logging_config.JSONFormatter],
        anything else for plain text.
    stream
        Where to write; stderr by default.

    Returns
    -------
    logging.Handler
        The installed handler. Handlers installed before are removed.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric_level)
    return handler


def configure_observability(config: ObservabilityConfig) -> None:
    """Apply an [ObservabilityConfig][obspec_fs.config.ObservabilityConfig]."""
    configure_logging(config.log_level, config.log_format)
    if config.metrics:
        metrics.init_metrics()


__all__ = ["JSONFormatter", "configure_logging", "configure_observability"]
