import logging

import pytest
from prometheus_client import CollectorRegistry

from obspec_fs import RemoteFile, metrics
from obspec_fs.observability import STATUS_ERROR, STATUS_SUCCESS, FileLog, observe

from .conftest import BUCKET
from .mocks import MockFileStore

HISTOGRAM = "obspec_fs_file_operation_duration_seconds"


@pytest.fixture
def registry(monkeypatch):
    """Metrics initialised into a private registry for the duration of a test."""
    monkeypatch.setattr(metrics, "_initialized", False)
    monkeypatch.setattr(metrics, "file_operation_duration", None)
    registry = CollectorRegistry()
    metrics.init_metrics(registry=registry)
    return registry


def count(registry, operation, status):
    return registry.get_sample_value(
        f"{HISTOGRAM}_count", {"operation": operation, "status": status}
    )


class TestFileLog:
    def test_starts_failed(self):
        log = FileLog("READ", "bucket/key")
        assert log.status == STATUS_ERROR
        assert log.message is None
        assert log.provider == "S3"

    def test_succeed(self):
        log = FileLog("READ", "bucket/key")
        log.succeed("read 3 bytes")
        assert log.status == STATUS_SUCCESS
        assert log.message == "read 3 bytes"

    def test_succeed_keeps_message(self):
        log = FileLog("READ", "bucket/key", message="earlier")
        log.succeed()
        assert log.message == "earlier"

    def test_str(self):
        log = FileLog("STAT", "/bucket", duration=42, message="ok")
        log.succeed()
        assert str(log) == "S3 STAT SUCCESS 42µs /bucket ok"

    def test_as_extra(self):
        log = FileLog("STAT", "/bucket", duration=42, provider="GCS")
        assert log.as_extra() == {
            "operation": "STAT",
            "location": "/bucket",
            "status": "ERROR",
            "duration_us": 42,
            "provider": "GCS",
            "detail": None,
        }


class TestObserve:
    def test_success(self, file_logs):
        with observe("GETWD", "/bucket") as log:
            log.succeed()

        (record,) = file_logs()
        assert record.levelno == logging.DEBUG
        assert record.name == "obspec_fs"
        assert record.operation == "GETWD"
        assert record.status == STATUS_SUCCESS
        assert record.duration_us >= 0

    def test_emits_when_operation_raises(self, file_logs):
        with pytest.raises(KeyError):
            with observe("OPEN", "/bucket"):
                raise KeyError("boom")

        (record,) = file_logs()
        assert record.status == STATUS_ERROR

    def test_unmarked_operation_is_failed(self, file_logs):
        with observe("OPEN", "/bucket"):
            pass
        assert [r.status for r in file_logs()] == [STATUS_ERROR]

    def test_provider_label(self, file_logs):
        with observe("OPEN", "/bucket", provider="MINIO") as log:
            log.succeed()
        assert file_logs()[0].provider == "MINIO"

    def test_custom_logger(self, caplog):
        caplog.set_level(logging.DEBUG, logger="custom")
        with observe("OPEN", "/bucket", log=logging.getLogger("custom")) as log:
            log.succeed()
        assert [r.name for r in caplog.records] == ["custom"]

    def test_duration_recorded(self):
        with observe("OPEN", "/bucket") as log:
            log.succeed()
        assert log.duration >= 0


class TestMetrics:
    def test_disabled_by_default_is_noop(self, monkeypatch):
        monkeypatch.setattr(metrics, "file_operation_duration", None)
        metrics.observe_operation("READ", STATUS_SUCCESS, 0.01)

    def test_observe_records_status(self, registry):
        with observe("READ", "bucket/key") as log:
            log.succeed()
        with pytest.raises(ValueError):
            with observe("READ", "bucket/key"):
                raise ValueError("bad")

        assert count(registry, "READ", STATUS_SUCCESS) == 1.0
        assert count(registry, "READ", STATUS_ERROR) == 1.0

    def test_init_is_idempotent(self, registry):
        histogram = metrics.file_operation_duration
        metrics.init_metrics(registry=registry)
        assert metrics.file_operation_duration is histogram

    def test_file_operations_are_measured(self, registry):
        store = MockFileStore({"data.txt": b"0123456789"})

        f = RemoteFile(store, f"{BUCKET}/data.txt", size=10)
        f.read(4)
        f.read_at(2, 0)
        f.seek(2)

        assert count(registry, "READ", STATUS_SUCCESS) == 1.0
        assert count(registry, "READAT", STATUS_SUCCESS) == 1.0
        assert count(registry, "SEEK", STATUS_SUCCESS) == 1.0
        assert count(registry, "WRITE", STATUS_SUCCESS) is None
