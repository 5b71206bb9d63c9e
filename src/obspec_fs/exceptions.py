"""Errors raised by obspec-fs.

Backend errors (obstore exceptions, `FileNotFoundError`, ...) are never
wrapped; they reach the caller as raised by the store.
"""


class FileSystemError(Exception):
    """Base class for errors raised by obspec-fs itself."""


class OutOfRangeError(FileSystemError, ValueError):
    """An offset or range falls outside ``[0, size]`` of the file."""

    def __init__(self, offset: int, size: int, length: int = 0) -> None:
        if length:
            message = f"range [{offset}, {offset + length}) out of range [0, {size}]"
        else:
            message = f"offset {offset} out of range [0, {size}]"
        super().__init__(message)
        self.offset = offset
        self.size = size
        self.length = length


class ResponseNilError(FileSystemError, EOFError):
    """The store reported success but returned no body."""

    def __init__(self, path: str) -> None:
        super().__init__(f"store returned no body for {path!r}")
        self.path = path


class OperationNotPermittedError(FileSystemError, PermissionError):
    """The operation has no meaning on a flat object namespace."""


class ScanTargetError(FileSystemError, TypeError):
    """A row was scanned into a type the reader cannot produce."""


class NoMoreRowsError(FileSystemError, EOFError):
    """A row was scanned after the reader was exhausted."""


__all__ = [
    "FileSystemError",
    "NoMoreRowsError",
    "OperationNotPermittedError",
    "OutOfRangeError",
    "ResponseNilError",
    "ScanTargetError",
]
