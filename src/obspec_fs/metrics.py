"""Prometheus metrics definitions for obspec-fs.

All metrics use the ``obspec_fs_`` prefix. Nothing is registered until
``init_metrics()`` is called, so importing the package never touches the
global registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Histogram

if TYPE_CHECKING:
    from prometheus_client import CollectorRegistry

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# ---------------------------------------------------------------------------
# File operation latency  (labels: operation, status)
# ---------------------------------------------------------------------------
file_operation_duration: Histogram | None = None

_DURATION_BUCKETS = (
    0.0001,
    0.0005,
    0.001,
    0.005,
    0.01,
    0.05,
    0.1,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)


def init_metrics(registry: CollectorRegistry | None = None) -> None:
    """Create and register the file operation histogram.

    Call once when metrics are enabled. Pass ``registry`` to register into a
    private [CollectorRegistry][prometheus_client.CollectorRegistry] instead of
    the process-wide default.
    """
    global _initialized, file_operation_duration

    if _initialized:
        return

    kwargs = {} if registry is None else {"registry": registry}
    file_operation_duration = Histogram(
        "obspec_fs_file_operation_duration_seconds",
        "Latency of file and file system operations by type and outcome",
        ["operation", "status"],
        buckets=_DURATION_BUCKETS,
        **kwargs,
    )

    _initialized = True


def observe_operation(operation: str, status: str, seconds: float) -> None:
    """Record one operation; a no-op until ``init_metrics()`` has run."""
    if file_operation_duration is None:
        return
    file_operation_duration.labels(operation=operation, status=status).observe(
        seconds
    )


__all__ = ["file_operation_duration", "init_metrics", "observe_operation"]
