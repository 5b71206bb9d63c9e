"""A hierarchical file system simulated over a flat object namespace."""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from obstore.store import S3Store

from obspec_fs._keys import (
    SEPARATOR,
    container_location,
    has_extension,
    join_name,
    put_attributes,
)
from obspec_fs.config import StorageConfig
from obspec_fs.exceptions import OperationNotPermittedError, ResponseNilError
from obspec_fs.files import RemoteFile
from obspec_fs.observability import observe

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime

    from obspec import ObjectMeta

    from obspec_fs.protocols import FileStore

logger = logging.getLogger(__name__)

DIRECTORY_CONTENT_TYPE = "application/x-directory"


def _normalize(name: str) -> str:
    """Object key for a user supplied name; keys never start with a separator."""
    return name.lstrip(SEPARATOR)


def _directory_prefix(name: str) -> str:
    """Listing prefix for a directory name; ``""`` for the bucket root."""
    key = _normalize(name)
    if key in ("", "."):
        return ""
    return key.rstrip(SEPARATOR) + SEPARATOR


def _latest(metas: list[ObjectMeta]) -> datetime | None:
    return max(
        (meta["last_modified"] for meta in metas if meta.get("last_modified")),
        default=None,
    )


class FileSystem:
    """
    File system operations on one bucket of an object store.

    Directories do not exist in an object store. They are simulated with
    key prefixes (``a/b/file.txt`` lives in directory ``a/b``) and with
    zero-length *directory marker* objects whose keys end in ``/``, which
    `mkdir` creates so that empty directories can exist. Names without a file
    extension are treated as directories by `remove_all`, `rename` and `stat`.

    Files are returned as [RemoteFile][obspec_fs.files.RemoteFile] handles
    named ``"<bucket>/<key>"``.

    Examples
    --------
    ```python
    from obstore.store import MemoryStore
    from obspec_fs import FileSystem, StorageConfig

    fs = FileSystem(StorageConfig(bucket_name="my-bucket"), store=MemoryStore())
    fs.mkdir("reports/2024")
    with fs.create("reports/2024/summary.csv") as f:
        f.write(b"id,total\\n1,10\\n")

    for entry in fs.read_dir("reports"):
        print(entry.name, entry.is_dir)
    ```

    Connecting to S3 from configuration:

    ```python
    fs = FileSystem(StorageConfig(bucket_name="my-bucket", region="eu-west-1"))
    fs.connect()
    ```
    """

    def __init__(
        self,
        config: StorageConfig,
        store: FileStore | None = None,
    ) -> None:
        """
        Create a file system over a bucket.

        Parameters
        ----------
        config
            Bucket and connection settings.
        store
            Any object implementing [FileStore][obspec_fs.protocols.FileStore],
            already scoped to the bucket. If omitted, `connect` builds an
            [S3Store][obstore.store.S3Store] from `config`.
        """
        self._config = config
        self._bucket = config.bucket_name
        self._location = container_location(self._bucket)
        self._store = store

    def connect(self) -> None:
        """
        Build the S3 store from configuration if no store was given.

        Credentials left unset in the configuration are resolved by obstore
        from the environment. Buckets are never created.
        """
        if self._store is not None:
            return

        client_options = {"allow_http": True} if self._config.allow_http else None
        self._store = S3Store(
            self._config.bucket_name,
            client_options=client_options,
            **self._config.s3_options(),
        )
        logger.info("Connected to bucket %r", self._bucket)

    @property
    def store(self) -> FileStore:
        """The underlying store."""
        if self._store is None:
            raise RuntimeError("FileSystem is not connected; call connect() first")
        return self._store

    @property
    def bucket(self) -> str:
        """Name of the bucket every key belongs to."""
        return self._bucket

    def _observe(self, operation: str):
        return observe(operation, self._location, provider=self._config.provider)

    def _file(self, key: str, **kwargs) -> RemoteFile:
        return RemoteFile(
            self.store,
            join_name(self._bucket, key),
            conditional_writes=self._config.conditional_writes,
            provider=self._config.provider,
            **kwargs,
        )

    def _list(self, prefix: str) -> Iterator[ObjectMeta]:
        for chunk in self.store.list(prefix=prefix or None):
            yield from chunk

    # -- files -----------------------------------------------------------------

    def create(self, name: str) -> RemoteFile:
        """
        Create an empty object and return a handle positioned at offset 0.

        An existing object with the same key is truncated.
        """
        key = _normalize(name)
        with self._observe("CREATE") as log:
            self.store.put(key, b"", attributes=put_attributes(key))
            log.succeed(f"File with path {key!r} created")
            logger.info("File with name %s created.", key)
            return self._file(key)

    def open(self, name: str) -> RemoteFile:
        """
        Open an existing object.

        Size, content type and modification time are captured from the get,
        whose body is held by the handle until `read_all` or `close`.

        Raises
        ------
        FileNotFoundError
            If the key does not exist.
        """
        key = _normalize(name)
        with self._observe("OPEN") as log:
            result = self.store.get(key)
            if result is None:
                raise ResponseNilError(key)
            meta = result.meta
            file = self._file(
                key,
                size=meta["size"],
                content_type=result.attributes.get("Content-Type"),
                last_modified=meta.get("last_modified"),
                body=result,
            )
            log.succeed(f"File with path {key!r} opened")
            return file

    def open_file(self, name: str, flag: int = 0, perm: int = 0o644) -> RemoteFile:
        """Same as `open`; flags and permissions have no meaning for objects."""
        return self.open(name)

    def remove(self, name: str) -> None:
        """Delete one object."""
        key = _normalize(name)
        with self._observe("REMOVE") as log:
            self.store.delete(key)
            log.succeed(f"File with path {key!r} deleted")
            logger.info("File with path %r deleted.", key)

    def rename(self, old_name: str, new_name: str) -> None:
        """
        Rename a file, or every object under a directory.

        Objects are copied to the new key and the originals deleted. Renaming
        to the same name leaves everything in place.

        Raises
        ------
        ValueError
            If the two names have different extensions.
        """
        old_key, new_key = _normalize(old_name), _normalize(new_name)
        with self._observe("RENAME") as log:
            if posixpath.splitext(old_key)[1] != posixpath.splitext(new_key)[1]:
                raise ValueError(
                    f"incorrect file type of new name {new_name!r}: "
                    f"extension must match {old_name!r}"
                )

            if old_key.rstrip(SEPARATOR) == new_key.rstrip(SEPARATOR):
                log.succeed(f"{old_key!r} already has the requested name")
                return

            if has_extension(old_key):
                self.store.copy(old_key, new_key)
                self.store.delete(old_key)
            else:
                old_prefix = old_key.rstrip(SEPARATOR) + SEPARATOR
                new_prefix = new_key.rstrip(SEPARATOR) + SEPARATOR
                paths = [meta["path"] for meta in self._list(old_prefix)]
                for path in paths:
                    self.store.copy(path, new_prefix + path[len(old_prefix) :])
                if paths:
                    self.store.delete(paths)

            log.succeed(f"{old_key!r} renamed to {new_key!r}")
            logger.info("File %s renamed to %s.", old_key, new_key)

    # -- directories -----------------------------------------------------------

    def mkdir(self, name: str, perm: int = 0o755) -> None:
        """Create a directory marker for `name` and each of its parents."""
        with self._observe("MKDIR") as log:
            current = ""
            for part in _normalize(name).split(SEPARATOR):
                if not part:
                    continue
                current = posixpath.join(current, part)
                try:
                    self.store.put(current + SEPARATOR, b"")
                except Exception as e:
                    log.message = f"failed to create directory {current!r}: {e}"
                    raise

            log.succeed(f"Directories on path {name!r} created successfully")
            logger.info("Created directories on path %r", name)

    def mkdir_all(self, name: str, perm: int = 0o755) -> None:
        """Same as `mkdir`, which already creates every missing parent."""
        self.mkdir(name, perm)

    def remove_all(self, name: str) -> None:
        """
        Delete a directory and everything under it.

        A name with a file extension is removed as a single file. A directory
        that does not exist is not an error.
        """
        if has_extension(name):
            self.remove(name)
            return

        prefix = _normalize(name).rstrip(SEPARATOR) + SEPARATOR
        with self._observe("REMOVEALL") as log:
            paths = [meta["path"] for meta in self._list(prefix)]
            if paths:
                try:
                    self.store.delete(paths)
                except Exception as e:
                    logger.error("Error while deleting directory: %s", e)
                    raise

            log.succeed(f"Directory with path {name!r} deleted successfully")
            logger.info("Directory %s deleted.", name)

    def read_dir(self, name: str) -> list[RemoteFile]:
        """
        List the entries one level below a directory.

        Objects nested deeper are collapsed into one entry per subdirectory
        (named ``"<sub>/"``) whose size is the total size of its contents and
        whose modification time is the latest among them. ``"."`` lists the
        bucket root.
        """
        prefix = _directory_prefix(name)

        with self._observe("READDIR") as log:
            files: dict[str, ObjectMeta] = {}
            directories: dict[str, list[ObjectMeta]] = {}

            for meta in self._list(prefix):
                path = meta["path"]
                if path == prefix:
                    continue
                head, sep, _ = path[len(prefix) :].partition(SEPARATOR)
                if sep:
                    directories.setdefault(prefix + head + SEPARATOR, []).append(meta)
                else:
                    files[path] = meta

            found = {
                path: {"size": meta["size"], "last_modified": meta.get("last_modified")}
                for path, meta in files.items()
            }
            for path, metas in directories.items():
                found[path] = {
                    "size": sum(meta["size"] for meta in metas),
                    "content_type": DIRECTORY_CONTENT_TYPE,
                    "last_modified": _latest(metas),
                }
            entries = [self._file(path, **found[path]) for path in sorted(found)]

            log.succeed(f"Directory/Files in directory with path {name!r} retrieved successfully")
            logger.info("Reading directory/files at path %r successful.", name)
            return entries

    def stat(self, name: str) -> RemoteFile:
        """
        Describe a file or a directory.

        An existing object is described as a file. Otherwise the objects under
        ``name/`` describe a directory, with their total size and latest
        modification time. ``"."`` describes the bucket root, which always
        exists.

        Raises
        ------
        FileNotFoundError
            If there is neither an object nor anything under the prefix.
        """
        prefix = _directory_prefix(name)
        with self._observe("STAT") as log:
            key = _normalize(name)
            if prefix and not key.endswith(SEPARATOR):
                try:
                    meta = self.store.head(key)
                except FileNotFoundError:
                    meta = None
                if meta is not None:
                    log.succeed(f"File with path {key!r} info retrieved successfully")
                    return self._file(
                        key,
                        size=meta["size"],
                        last_modified=meta.get("last_modified"),
                    )

            metas = list(self._list(prefix))
            if prefix and not metas:
                raise FileNotFoundError(f"no such file or directory: {name!r}")

            log.succeed(f"Directory with path {key!r} info retrieved successfully")
            return self._file(
                prefix,
                size=sum(meta["size"] for meta in metas),
                content_type=DIRECTORY_CONTENT_TYPE,
                last_modified=_latest(metas),
            )

    def chdir(self, name: str) -> None:
        """Always fails: the bucket is fixed and keys are absolute within it."""
        with self._observe("CHDIR") as log:
            log.message = "Changing directory not supported"
            raise OperationNotPermittedError(
                f"operation not permitted: {self._config.provider} has a flat file structure"
            )

    def getwd(self) -> str:
        """Return ``"/<bucket>"``."""
        with self._observe("GETWD") as log:
            log.succeed()
            return self._location


__all__ = ["DIRECTORY_CONTENT_TYPE", "FileSystem"]
