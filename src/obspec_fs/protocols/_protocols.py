"""Core protocol definitions for object store backed files."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from obspec import Copy, Delete, Get, Head, List, Put

if TYPE_CHECKING:
    from datetime import datetime


@runtime_checkable
class FileStore(
    Copy,
    Delete,
    Get,
    Head,
    List,
    Put,
    Protocol,
):
    """
    Store interface required by [FileSystem][obspec_fs.filesystem.FileSystem].

    This protocol combines the obspec protocols needed to emulate a file system
    on top of a flat object namespace:

    - [Get][obspec.Get]: Download entire objects (every read is a full fetch)
    - [Put][obspec.Put]: Replace entire objects (every write is a full put)
    - [Delete][obspec.Delete]: Remove objects
    - [Head][obspec.Head]: Get object metadata (size, last modified, etag)
    - [List][obspec.List]: List objects under a prefix (directory emulation)
    - [Copy][obspec.Copy]: Copy objects within the store (rename)

    Any obstore store ([S3Store][obstore.store.S3Store],
    [MemoryStore][obstore.store.MemoryStore], ...) implements it.

    !!! Warning
        It's recommended to define your own protocols. This protocol may change without warning.
    """

    pass


@runtime_checkable
class FileInfo(Protocol):
    """
    Protocol for the metadata view of a file or simulated directory.

    [RemoteFile][obspec_fs.files.RemoteFile] implements it, and so do the
    entries returned by [FileSystem.read_dir][obspec_fs.filesystem.FileSystem.read_dir]
    and [FileSystem.stat][obspec_fs.filesystem.FileSystem.stat].
    """

    @property
    def name(self) -> str:
        """Base name of the file or directory."""
        ...

    @property
    def size(self) -> int:
        """Length in bytes; the summed size of its contents for a directory."""
        ...

    @property
    def mod_time(self) -> datetime | None:
        """Last modification time, if the store reported one."""
        ...

    @property
    def is_dir(self) -> bool:
        """Whether the entry is a simulated directory."""
        ...

    @property
    def mode(self) -> int:
        """Permission bits. Object stores have none, so this is a placeholder."""
        ...


__all__ = ["FileInfo", "FileStore"]
