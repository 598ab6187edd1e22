"""Local filesystem object store.

Objects are written to a temporary file next to their final path and
renamed into place, so a reader sees the previous object, the new object,
or nothing, never a partial file.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from gobinaries.storage.base import ObjectNotFoundError, StorageError, object_key
from gobinaries.types import BuildTarget

logger = logging.getLogger(__name__)

# Chunk size for copying object streams
COPY_CHUNK_SIZE = 64 * 1024  # 64KB


class LocalStorage:
    """Filesystem object store for binaries.

    Attributes:
        root: Root directory of the store.
        prefix: Optional object key prefix.
    """

    def __init__(self, root: Path, prefix: str = "") -> None:
        prefix = prefix.strip("/")
        if prefix and any(part in ("", ".", "..") for part in prefix.split("/")):
            raise ValueError(f"invalid storage prefix: {prefix!r}")
        self.root = Path(root)
        self.prefix = prefix

    def path_for(self, target: BuildTarget) -> Path:
        """Return the filesystem path of a target's object."""
        return self.root.joinpath(*object_key(target, self.prefix).split("/"))

    def create(self, target: BuildTarget, reader: BinaryIO) -> None:
        """Persist a binary stream for a target.

        Args:
            target: Build target the object belongs to.
            reader: Readable binary stream, consumed to EOF.

        Raises:
            StorageError: If the object cannot be written.
        """
        path = self.path_for(target)
        tmp_path: Path | None = None
        committed = False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as tmp_file:
                tmp_path = Path(tmp_file.name)
                shutil.copyfileobj(reader, tmp_file, COPY_CHUNK_SIZE)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
                size = tmp_file.tell()
            tmp_path.chmod(0o644)
            os.replace(tmp_path, path)
            committed = True
        except OSError as e:
            raise StorageError(f"Failed to store binary for {target}") from e
        finally:
            if tmp_path is not None and not committed:
                tmp_path.unlink(missing_ok=True)

        logger.info("Stored %s (%d bytes)", object_key(target, self.prefix), size)

    def get(self, target: BuildTarget) -> BinaryIO:
        """Open the stored binary for a target.

        Args:
            target: Build target.

        Returns:
            Open binary file; the caller closes it.

        Raises:
            ObjectNotFoundError: If no object exists for the target.
            StorageError: On any other I/O failure.
        """
        key = object_key(target, self.prefix)
        try:
            return self.path_for(target).open("rb")
        except FileNotFoundError:
            raise ObjectNotFoundError(key) from None
        except OSError as e:
            raise StorageError(f"Failed to open stored binary for {target}") from e

    def clear(self) -> None:
        """Remove every object under this store's prefix.

        Raises:
            StorageError: If removal fails.
        """
        base = self.root / self.prefix if self.prefix else self.root
        if not base.exists():
            return
        logger.info("Clearing object store at %s", base)
        try:
            if self.prefix:
                shutil.rmtree(base)
            else:
                for child in base.iterdir():
                    if child.is_dir() and not child.is_symlink():
                        shutil.rmtree(child)
                    else:
                        child.unlink()
        except OSError as e:
            raise StorageError("Failed to clear object store") from e


__all__ = ["COPY_CHUNK_SIZE", "LocalStorage"]
