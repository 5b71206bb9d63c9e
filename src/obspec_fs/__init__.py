from ._version import __version__
from .config import Config, ObservabilityConfig, StorageConfig, load_config
from .exceptions import (
    FileSystemError,
    NoMoreRowsError,
    OperationNotPermittedError,
    OutOfRangeError,
    ResponseNilError,
    ScanTargetError,
)
from .files import RemoteFile, RowReader
from .filesystem import FileSystem

__all__ = [
    "__version__",
    "Config",
    "FileSystem",
    "FileSystemError",
    "NoMoreRowsError",
    "ObservabilityConfig",
    "OperationNotPermittedError",
    "OutOfRangeError",
    "RemoteFile",
    "ResponseNilError",
    "RowReader",
    "ScanTargetError",
    "StorageConfig",
    "load_config",
]
