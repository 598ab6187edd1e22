"""Storage contract and object key derivation.

Backends persist one object per build target. The contract is kept to
create/get/clear so a network object store can replace the local
filesystem without touching callers.
"""

from __future__ import annotations

from typing import BinaryIO, Protocol

from gobinaries.types import BuildTarget


class StorageError(Exception):
    """Raised on storage I/O failures other than a missing object."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        super().__init__(message)
        self.code = code


class ObjectNotFoundError(Exception):
    """Raised by get() when no object exists for the target.

    This is the cache-miss signal, not a failure.
    """

    def __init__(self, key: str, code: str = "object_not_found") -> None:
        super().__init__(f"No object stored under {key}")
        self.key = key
        self.code = code


class Storage(Protocol):
    """Object store for built binaries."""

    def create(self, target: BuildTarget, reader: BinaryIO) -> None:
        """Persist the stream under the target's key, replacing any object."""
        ...

    def get(self, target: BuildTarget) -> BinaryIO:
        """Open the stored object.

        Raises:
            ObjectNotFoundError: If nothing is stored for the target.
            StorageError: On other I/O failures.
        """
        ...

    def clear(self) -> None:
        """Remove every stored object."""
        ...


def escape_module(module: str) -> str:
    """Flatten a module path into one key element.

    "/" becomes "-". Existing "%" and "-" are percent-escaped first so that
    distinct module paths never map to the same element.

    Args:
        module: Module path such as example.com/tool.

    Returns:
        Escaped element such as example.com-tool.
    """
    return module.replace("%", "%25").replace("-", "%2D").replace("/", "-")


def object_key(target: BuildTarget, prefix: str = "") -> str:
    """Return the object key for a target.

    The key has the form <prefix>/<module>/<version>-<os>-<arch>-<cgo>.

    Args:
        target: Build target.
        prefix: Optional key prefix (e.g. production, staging).

    Returns:
        Object key using "/" separators.
    """
    directory = escape_module(target.module)
    filename = f"{target.version}-{target.os}-{target.arch}-{target.cgo}"
    prefix = prefix.strip("/")
    if prefix:
        return f"{prefix}/{directory}/{filename}"
    return f"{directory}/{filename}"


__all__ = [
    "ObjectNotFoundError",
    "Storage",
    "StorageError",
    "escape_module",
    "object_key",
]
