"""Random-access file emulated on top of whole-object get and put."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Protocol

from obspec import Get, Put

from obspec_fs._keys import base_name, put_attributes, split_name
from obspec_fs.exceptions import OutOfRangeError, ResponseNilError
from obspec_fs.files._rows import RowReader, json_row_reader, text_row_reader
from obspec_fs.observability import observe

if TYPE_CHECKING:
    from collections.abc import Buffer
    from datetime import datetime

    from obspec import GetResult, ObjectMeta, UpdateVersion

logger = logging.getLogger(__name__)


def _splice(existing: bytes, data: bytes, offset: int) -> bytes:
    """Overwrite ``existing`` with ``data`` starting at ``offset``, keeping the tail."""
    return existing[:offset] + data + existing[offset + len(data) :]


class RemoteFile:
    """
    A seekable, writable file backed by a single object.

    Object stores only get and put whole objects, so every operation maps onto
    them:

    - `read` / `read_at` fetch the entire object and slice the requested range.
    - `write` at offset 0 replaces the object with the written bytes.
    - `write` at any other offset, and `write_at`, fetch the object, splice the
      new bytes in, and put the whole result back.
    - `seek` only moves the cursor; it is validated against the cached size.

    Nothing is cached between calls apart from the object size, which is kept
    in step with every successful write.

    Warning
    -------
    A RemoteFile is not safe for concurrent use, and a splice is a
    read-modify-write of the whole object: two writers to the same key, in
    this process or any other, can lose each other's updates. Open the file
    system with ``conditional_writes=True`` to make every splice conditional
    on the e-tag it was read with; a concurrent update then makes the write
    fail instead of being silently overwritten.

    Examples
    --------
    ```python
    from obstore.store import MemoryStore
    from obspec_fs import FileSystem, StorageConfig

    fs = FileSystem(StorageConfig(bucket_name="my-bucket"), store=MemoryStore())
    with fs.create("greeting.txt") as f:
        f.write(b"Hello, World!")
        f.write_at(b"GoFr", 7)
        f.seek(0)
        assert f.read() == b"Hello, GoFrd!"
    ```
    """

    class Store(Get, Put, Protocol):
        """
        Store protocol required by RemoteFile.

        Combines [Get][obspec.Get] and [Put][obspec.Put] from obspec.
        """

        pass

    def __init__(
        self,
        store: RemoteFile.Store,
        name: str,
        *,
        size: int = 0,
        content_type: str | None = None,
        last_modified: datetime | None = None,
        body: GetResult | None = None,
        conditional_writes: bool = False,
        provider: str = "S3",
    ) -> None:
        """
        Create a handle for an object.

        Handles are normally obtained from
        [FileSystem.create][obspec_fs.filesystem.FileSystem.create] or
        [FileSystem.open][obspec_fs.filesystem.FileSystem.open].

        Parameters
        ----------
        store
            Any object implementing [Get][obspec.Get] and [Put][obspec.Put].
        name
            Composite ``"<container>/<key>"`` name. The container is the first
            path segment; the rest is the object key within ``store``.
        size
            Current object size in bytes.
        content_type
            Content type captured when the object was opened.
        last_modified
            Modification time captured when the object was opened.
        body
            Result of the get issued when the object was opened. It is
            drained by the first `read_all` and released by `close`.
        conditional_writes
            Make splice writes conditional on the e-tag/version they read.
        provider
            Provider label attached to every emitted FileLog.
        """
        self._store = store
        self._name = name
        self._container, self._key = split_name(name)
        self._size = size
        self._cursor = 0
        self._content_type = content_type
        self._last_modified = last_modified
        self._body = body
        self._body_current = body is not None
        self._closed = False
        self._conditional_writes = conditional_writes
        self._provider = provider

    def __repr__(self) -> str:
        return f"RemoteFile({self._name!r}, size={self._size}, cursor={self._cursor})"

    # -- backend access ------------------------------------------------------

    def _fetch(self) -> tuple[bytes, ObjectMeta]:
        """Download the whole object."""
        try:
            result = self._store.get(self._key)
        except Exception as e:
            logger.error("Failed to retrieve %r: %s", self._key, e)
            raise
        if result is None:
            raise ResponseNilError(self._name)
        return bytes(result.buffer()), result.meta

    def _put(self, data: bytes, meta: ObjectMeta | None = None) -> None:
        """Replace the whole object, conditionally on ``meta`` when enabled."""
        kwargs = {}
        if self._conditional_writes and meta is not None:
            # put modes only accept string e-tags and versions
            mode: UpdateVersion = {
                key: meta[key] for key in ("e_tag", "version") if meta.get(key)
            }
            if mode:
                kwargs["mode"] = mode
        try:
            self._store.put(
                self._key, data, attributes=put_attributes(self._key), **kwargs
            )
        except Exception as e:
            logger.error("Failed to store %r: %s", self._key, e)
            raise
        self._body_current = False

    def _read_from(self, offset: int, length: int) -> bytes:
        """Fetch the object and return up to ``length`` bytes from ``offset``."""
        data, _ = self._fetch()
        end = len(data) if length < 0 else offset + length
        return data[offset:end]

    def _check_range(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > self._size:
            raise OutOfRangeError(offset, self._size, length)

    # -- sequential access ---------------------------------------------------

    def read(self, size: int = -1, /) -> bytes:
        """
        Read up to `size` bytes from the cursor and advance it.

        The whole object is fetched on every call. Fewer bytes than requested
        (down to ``b""``) means the end of the object was reached.

        Parameters
        ----------
        size
            Number of bytes to read. If -1, read from the cursor to the end.

        Returns
        -------
        bytes
            The data read.

        Raises
        ------
        ResponseNilError
            If the store returned no body.
        """
        with observe("READ", self._name, provider=self._provider) as log:
            start = self._cursor
            data = self._read_from(start, size)
            self._cursor += len(data)
            log.succeed(f"Read {len(data)} bytes from offset {start}")
            return data

    def readinto(self, buffer: Buffer, /) -> int:
        """
        Fill `buffer` from the cursor and advance it.

        Returns the number of bytes copied; only that prefix of `buffer` is
        valid. A count smaller than ``len(buffer)`` means the end of the object
        was reached.
        """
        view = memoryview(buffer).cast("B")
        with observe("READ", self._name, provider=self._provider) as log:
            start = self._cursor
            data = self._read_from(start, len(view))
            view[: len(data)] = data
            self._cursor += len(data)
            log.succeed(f"Read {len(data)} bytes from offset {start}")
            return len(data)

    def write(self, data: Buffer, /) -> int:
        """
        Write `data` at the cursor and advance it.

        At offset 0 the object is replaced by `data` alone, truncating whatever
        followed. At any other offset the object is fetched and `data`
        overwrites the bytes from the cursor on, keeping any tail beyond them.

        Returns
        -------
        int
            ``len(data)``.
        """
        data = bytes(data)
        with observe("WRITE", self._name, provider=self._provider) as log:
            if self._cursor == 0:
                buffer = data
                self._put(buffer)
            else:
                existing, meta = self._fetch()
                if self._cursor > len(existing):
                    raise OutOfRangeError(self._cursor, len(existing))
                buffer = _splice(existing, data, self._cursor)
                self._put(buffer, meta)

            start = self._cursor
            self._cursor += len(data)
            self._size = len(buffer)
            log.succeed(f"Wrote {len(data)} bytes at offset {start}")
            return len(data)

    def seek(self, offset: int, whence: int = os.SEEK_SET, /) -> int:
        """
        Move the cursor.

        Parameters
        ----------
        offset
            Position offset.
        whence
            Reference point: 0=start (SEEK_SET), 1=cursor (SEEK_CUR), 2=end (SEEK_END).

        Returns
        -------
        int
            The new cursor.

        Raises
        ------
        ValueError
            If `whence` is not one of the three reference points.
        OutOfRangeError
            If the target falls outside ``[0, size]``. The cursor is unchanged.
        """
        with observe("SEEK", self._name, provider=self._provider) as log:
            if whence == os.SEEK_SET:
                target = offset
            elif whence == os.SEEK_CUR:
                target = self._cursor + offset
            elif whence == os.SEEK_END:
                target = self._size + offset
            else:
                raise ValueError(f"Invalid whence value: {whence}")

            if target < 0 or target > self._size:
                logger.error("Seek failed on %r: offset %d out of range", self._name, target)
                raise OutOfRangeError(target, self._size)

            self._cursor = target
            log.succeed(f"Offset set to {target} for file at path {self._name!r}")
            return target

    def tell(self) -> int:
        """Return the cursor."""
        return self._cursor

    # -- positional access ---------------------------------------------------

    def read_at(self, size: int, offset: int, /) -> bytes:
        """
        Read `size` bytes from `offset` without moving the cursor.

        Raises
        ------
        OutOfRangeError
            If ``offset + size`` exceeds the cached size. Checked before any
            request is made.
        ResponseNilError
            If the store returned no body.
        """
        with observe("READAT", self._name, provider=self._provider) as log:
            self._check_range(offset, size)
            data = self._read_from(offset, size)
            log.succeed(f"Read {len(data)} bytes from offset {offset}")
            return data

    def readinto_at(self, buffer: Buffer, offset: int, /) -> int:
        """Fill `buffer` from `offset` without moving the cursor."""
        view = memoryview(buffer).cast("B")
        with observe("READAT", self._name, provider=self._provider) as log:
            self._check_range(offset, len(view))
            data = self._read_from(offset, len(view))
            view[: len(data)] = data
            log.succeed(f"Read {len(data)} bytes from offset {offset}")
            return len(data)

    def write_at(self, data: Buffer, offset: int, /) -> int:
        """
        Overwrite the object from `offset` on without moving the cursor.

        The object is always fetched first, even at offset 0, so bytes past
        the end of `data` are kept.

        Raises
        ------
        OutOfRangeError
            If `offset` lies outside the current object. Nothing is written.
        """
        data = bytes(data)
        with observe("WRITEAT", self._name, provider=self._provider) as log:
            if offset < 0:
                raise OutOfRangeError(offset, self._size)
            existing, meta = self._fetch()
            if offset > len(existing):
                raise OutOfRangeError(offset, len(existing))

            buffer = _splice(existing, data, offset)
            self._put(buffer, meta)
            self._size = len(buffer)
            log.succeed(f"Wrote {len(data)} bytes at offset {offset}")
            return len(data)

    # -- rows ------------------------------------------------------------------

    def read_all(self) -> RowReader:
        """
        Buffer the whole object and return a row reader over it.

        Names ending in ``.json`` get a JSON reader (array elements, or the
        single top-level value); everything else gets a line reader. The body
        held since the file was opened is used once, provided nothing has been
        written through this handle since; otherwise the object is fetched.

        Raises
        ------
        json.JSONDecodeError
            If a ``.json`` object is not valid JSON. No reader is returned.
        """
        with observe("READALL", self._name, provider=self._provider) as log:
            if self._body_current:
                self._body_current = False
                data = bytes(self._body.buffer())
            else:
                data, _ = self._fetch()

            if self._key.endswith(".json"):
                reader: RowReader = json_row_reader(data)
                log.succeed("JSON reader created")
            else:
                reader = text_row_reader(data)
                log.succeed("Text/CSV reader created")
            return reader

    # -- lifecycle -------------------------------------------------------------

    @property
    def closed(self) -> bool:
        """Whether `close` has been called."""
        return self._closed

    def close(self) -> None:
        """
        Release the body held since the file was opened.

        Calling it again is a no-op. An error raised while closing the body is
        propagated.
        """
        with observe("CLOSE", self._name, provider=self._provider) as log:
            body, self._body = self._body, None
            self._body_current = False
            self._closed = True
            close_body = getattr(body, "close", None)
            if close_body is not None:
                close_body()
            log.succeed(f"Closed {self._name!r}")

    def __enter__(self) -> RemoteFile:
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the context manager and close the file."""
        self.close()

    # -- metadata --------------------------------------------------------------

    @property
    def name(self) -> str:
        """Base name of the object, without container or directories."""
        with observe("GET NAME", self._name, provider=self._provider) as log:
            log.succeed()
            return base_name(self._name)

    @property
    def size(self) -> int:
        """Cached size in bytes; the summed size of the contents for a directory."""
        with observe("FILE/DIR SIZE", self._name, provider=self._provider) as log:
            log.succeed()
            return self._size

    @property
    def mod_time(self) -> datetime | None:
        """Modification time captured when the object was opened."""
        with observe("LAST MODIFIED", self._name, provider=self._provider) as log:
            log.succeed()
            return self._last_modified

    @property
    def is_dir(self) -> bool:
        """Whether the name ends with the separator, i.e. is a directory marker."""
        with observe("IS DIR", self._name, provider=self._provider) as log:
            log.succeed()
            return self._name.endswith("/")

    @property
    def mode(self) -> int:
        """Always 0: object stores have no permission bits."""
        with observe("FILE MODE", self._name, provider=self._provider) as log:
            log.succeed(f"Not supported for {self._provider}")
            return 0

    @property
    def content_type(self) -> str | None:
        """Content type captured when the object was opened."""
        return self._content_type


__all__ = ["RemoteFile"]
