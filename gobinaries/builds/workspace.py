"""Ephemeral build workspaces.

This module handles:
- Allocating a private workspace per build attempt
- Removing it on every exit path, including read-only module cache trees
- Discovering the installed executable
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "gobinary_"

# Execute permission for owner, group and other
EXECUTE_ALL = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


@dataclass(frozen=True)
class Workspace:
    """Directory layout of one build attempt.

    Attributes:
        root: Workspace root, used as GOPATH.
    """

    root: Path

    @property
    def module_dir(self) -> Path:
        """Directory holding the placeholder go.mod."""
        return self.root / "module"

    @property
    def bin_dir(self) -> Path:
        """Install output directory ($GOPATH/bin)."""
        return self.root / "bin"

    @property
    def cache_dir(self) -> Path:
        """Go build cache (GOCACHE)."""
        return self.root / "cache"


def is_executable(mode: int) -> bool:
    """Return True if the execute bit is set for owner, group and other."""
    return mode & EXECUTE_ALL == EXECUTE_ALL


def _make_writable_and_retry(
    function: Callable[[str], object], path: str, exc: BaseException
) -> None:
    """rmtree error handler for the read-only module cache."""
    parent = os.path.dirname(path)
    os.chmod(parent, stat.S_IRWXU)
    if os.path.isdir(path) and not os.path.islink(path):
        os.chmod(path, stat.S_IRWXU)
    function(path)


def remove_workspace(path: Path) -> None:
    """Remove a workspace tree.

    Go writes its module cache read-only, so permissions are relaxed on
    the fly where removal fails.

    Args:
        path: Workspace root.

    Raises:
        OSError: If the tree cannot be removed.
    """
    if not path.exists():
        return
    shutil.rmtree(path, onexc=_make_writable_and_retry)


@contextmanager
def ephemeral_workspace(parent: Path | None = None) -> Iterator[Workspace]:
    """Create a fresh workspace and remove it on exit.

    Args:
        parent: Directory to create the workspace in (system temp if None).

    Yields:
        Workspace with its module directory created.
    """
    if parent is not None:
        parent.mkdir(parents=True, exist_ok=True)
    root = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
    workspace = Workspace(root=root)
    workspace.module_dir.mkdir()
    logger.debug("Created workspace %s", root)
    try:
        yield workspace
    finally:
        try:
            remove_workspace(root)
            logger.debug("Removed workspace %s", root)
        except OSError:
            logger.exception("Failed to remove workspace %s", root)


def find_executables(bin_dir: Path) -> list[Path]:
    """Find executables under an install directory.

    Cross-compiled commands land in a GOOS_GOARCH subdirectory, so the
    scan is recursive. Results are sorted for a deterministic choice.

    Args:
        bin_dir: Install output directory.

    Returns:
        Regular files executable by owner, group and other.
    """
    if not bin_dir.is_dir():
        return []

    executables: list[Path] = []
    for path in sorted(bin_dir.rglob("*")):
        info = path.lstat()
        if stat.S_ISREG(info.st_mode) and is_executable(info.st_mode):
            executables.append(path)
    return executables


__all__ = [
    "EXECUTE_ALL",
    "Workspace",
    "ephemeral_workspace",
    "find_executables",
    "is_executable",
    "remove_workspace",
]
