import logging
import time

import pytest

from obspec_fs import FileSystem, StorageConfig

from .mocks import MockFileStore

BUCKET = "test-bucket"


def pytest_addoption(parser):
    parser.addoption(
        "--network",
        action="store_true",
        default=False,
        help="run tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--network"):
        # --network given: do not skip network tests
        return
    skip_network = pytest.mark.skip(reason="need --network option to run")
    for item in items:
        if "network" in item.keywords:
            item.add_marker(skip_network)


@pytest.fixture
def store():
    return MockFileStore()


@pytest.fixture
def fs(store):
    return FileSystem(StorageConfig(bucket_name=BUCKET), store=store)


@pytest.fixture
def file_logs(caplog):
    """FileLog records emitted while the test runs."""
    caplog.set_level(logging.DEBUG, logger="obspec_fs")

    def records():
        return [r for r in caplog.records if hasattr(r, "operation")]

    return records


@pytest.fixture(scope="session")
def container():
    import docker

    client = docker.from_env()
    port = 9000
    minio_container = client.containers.run(
        "quay.io/minio/minio",
        "server /data",
        detach=True,
        ports={f"{port}/tcp": port},
        environment={
            "MINIO_ACCESS_KEY": "minioadmin",
            "MINIO_SECRET_KEY": "minioadmin",
        },
    )
    time.sleep(3)  # give it time to boot
    yield {
        "port": port,
        "endpoint": f"http://localhost:{port}",
        "username": "minioadmin",
        "password": "minioadmin",
    }
    minio_container.stop()
    minio_container.remove()


@pytest.fixture(scope="session")
def minio_bucket(container):
    from minio import Minio

    bucket = "my-bucket"
    client = Minio(
        f"localhost:{container['port']}",
        access_key=container["username"],
        secret_key=container["password"],
        secure=False,
    )
    client.make_bucket(bucket)
    yield {
        "endpoint": container["endpoint"],
        "username": container["username"],
        "password": container["password"],
        "bucket": bucket,
        "client": client,
    }
