"""File handles for object stores.

This module provides a random-access file (read, write, seek, tell) emulated
on top of whole-object get and put, and the row readers returned by
[RemoteFile.read_all][obspec_fs.files.RemoteFile.read_all].
"""

from obspec_fs.files._remote import RemoteFile
from obspec_fs.files._rows import (
    JSONArrayRowReader,
    JSONObjectRowReader,
    RowReader,
    TextRowReader,
)

__all__ = [
    "JSONArrayRowReader",
    "JSONObjectRowReader",
    "RemoteFile",
    "RowReader",
    "TextRowReader",
]
