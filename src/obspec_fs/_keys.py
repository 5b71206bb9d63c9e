"""Helpers for ``"<container>/<key>"`` names and object attributes."""

from __future__ import annotations

import mimetypes
import posixpath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from obspec import Attributes

SEPARATOR = "/"


def split_name(name: str) -> tuple[str, str]:
    """
    Split a composite name into its container and object key.

    >>> split_name("my-bucket/data/file.csv")
    ('my-bucket', 'data/file.csv')
    >>> split_name("my-bucket")
    ('my-bucket', '')
    """
    container, _, key = name.partition(SEPARATOR)
    return container, key


def join_name(container: str, key: str) -> str:
    """Inverse of [split_name][obspec_fs._keys.split_name]."""
    return f"{container}{SEPARATOR}{key}"


def container_location(container: str) -> str:
    """The absolute location logged for container-wide operations."""
    return SEPARATOR + container


def base_name(name: str) -> str:
    """
    Last path segment, ignoring a trailing separator.

    >>> base_name("my-bucket/data/")
    'data'
    """
    return posixpath.basename(name.rstrip(SEPARATOR))


def has_extension(name: str) -> bool:
    """Whether the last segment has a file extension; extension-less names are directories."""
    return posixpath.splitext(name.rstrip(SEPARATOR))[1] != ""


def put_attributes(key: str) -> Attributes:
    """
    Attributes sent with every whole-object put.

    The content type is guessed from the key extension and omitted when it
    cannot be; objects are always marked as downloads.
    """
    attributes: Attributes = {"Content-Disposition": "attachment"}
    content_type, _ = mimetypes.guess_type(key)
    if content_type:
        attributes["Content-Type"] = content_type
    return attributes
