"""Protocols for object store backed files.

This module defines the core protocols used throughout obspec-fs.
"""

from obspec_fs.protocols._protocols import FileInfo, FileStore

__all__ = ["FileInfo", "FileStore"]
