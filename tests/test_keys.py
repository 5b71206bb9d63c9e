import pytest

from obspec_fs._keys import (
    base_name,
    container_location,
    has_extension,
    join_name,
    put_attributes,
    split_name,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("bucket/dir/file.txt", ("bucket", "dir/file.txt")),
        ("bucket/file.txt", ("bucket", "file.txt")),
        ("bucket/dir/", ("bucket", "dir/")),
        ("bucket", ("bucket", "")),
    ],
)
def test_split_name(name, expected):
    assert split_name(name) == expected
    if expected[1]:
        assert join_name(*expected) == name


def test_container_location():
    assert container_location("bucket") == "/bucket"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("bucket/dir/file.txt", "file.txt"),
        ("bucket/dir/", "dir"),
        ("bucket/dir", "dir"),
        ("file.txt", "file.txt"),
    ],
)
def test_base_name(name, expected):
    assert base_name(name) == expected


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("file.txt", True),
        ("dir/archive.tar.gz", True),
        ("dir", False),
        ("dir/sub/", False),
        ("v1.2/data", False),
    ],
)
def test_has_extension(name, expected):
    assert has_extension(name) is expected


def test_put_attributes_known_type():
    assert put_attributes("data/users.json") == {
        "Content-Disposition": "attachment",
        "Content-Type": "application/json",
    }


def test_put_attributes_unknown_type():
    assert put_attributes("data/blob.unknownext") == {
        "Content-Disposition": "attachment"
    }
