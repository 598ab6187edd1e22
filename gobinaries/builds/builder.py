"""Go binary builder.

This module handles:
- Building one target in a private, throwaway workspace
- Locating the produced command and streaming it to the caller
- Wiping the toolchain module cache
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from gobinaries.builds.environment import BuildEnvironment
from gobinaries.builds.runner import (
    BuildError,
    check_command,
    compose_clean_command,
    compose_init_command,
    compose_install_command,
    compose_require_command,
    dependency_spec,
    platform_env,
)
from gobinaries.builds.workspace import (
    Workspace,
    ephemeral_workspace,
    find_executables,
    is_executable,
)
from gobinaries.types import BuildTarget

logger = logging.getLogger(__name__)


class NotExecutableError(Exception):
    """Raised when a module builds but produces no command."""

    def __init__(self, target: BuildTarget, code: str = "not_executable") -> None:
        super().__init__(f"{target.module}@{target.version} is not a command")
        self.target = target
        self.code = code


class CacheClearError(Exception):
    """Raised when the module cache cannot be wiped."""

    def __init__(self, message: str, code: str = "cache_clear_failed") -> None:
        super().__init__(message)
        self.code = code


class Builder:
    """Builds Go commands with the go toolchain.

    Every build gets its own workspace used as GOPATH and GOCACHE, so
    concurrent builds share nothing on disk.
    """

    def __init__(
        self,
        environment: BuildEnvironment,
        scratch_dir: Path | None = None,
        go: str = "go",
        timeout: float | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            environment: Whitelisted environment snapshot for the toolchain.
            scratch_dir: Parent directory for workspaces (system temp if None).
            go: Toolchain executable.
            timeout: Timeout for each toolchain command, in seconds.
        """
        self.environment = environment
        self.scratch_dir = scratch_dir
        self.go = go
        self.timeout = timeout

    def _prepare_module(self, target: BuildTarget, workspace: Workspace) -> None:
        """Create the placeholder go.mod and require the target module."""
        env = self.environment.with_overrides(
            GOPATH=str(workspace.root),
            GOCACHE=str(workspace.cache_dir),
            GO111MODULE="on",
        )
        check_command(
            compose_init_command(self.go),
            cwd=workspace.module_dir,
            env=env,
            timeout=self.timeout,
        )
        check_command(
            compose_require_command(
                dependency_spec(target.module, target.version), self.go
            ),
            cwd=workspace.module_dir,
            env=env,
            timeout=self.timeout,
        )

    def _install(self, target: BuildTarget, workspace: Workspace) -> None:
        """Run go install for the target's commands."""
        env = self.environment.with_overrides(
            GOPATH=str(workspace.root),
            GOCACHE=str(workspace.cache_dir),
            **platform_env(target),
        )
        check_command(
            compose_install_command(target, self.go),
            cwd=workspace.module_dir,
            env=env,
            timeout=self.timeout,
        )

    def _locate_binary(self, target: BuildTarget, workspace: Workspace) -> Path:
        """Return the installed command.

        Raises:
            NotExecutableError: If nothing executable was installed.
        """
        executables = find_executables(workspace.bin_dir)
        if not executables:
            raise NotExecutableError(target)
        if len(executables) > 1:
            logger.warning(
                "%s installed %d commands, serving %s",
                target,
                len(executables),
                executables[0].name,
            )
        return executables[0]

    @contextmanager
    def build(self, target: BuildTarget) -> Iterator[BinaryIO]:
        """Build a target and yield the executable.

        The workspace is removed when the context exits, whether or not the
        caller finished reading.

        Args:
            target: Fully resolved build target.

        Yields:
            Open binary file of the produced executable.

        Raises:
            BuildError: If a toolchain command fails.
            NotExecutableError: If the module produced no command.
        """
        logger.info("Building %s", target)
        started = time.monotonic()

        with ephemeral_workspace(self.scratch_dir) as workspace:
            self._prepare_module(target, workspace)
            self._install(target, workspace)
            binary = self._locate_binary(target, workspace)

            with binary.open("rb") as f:
                if not is_executable(os.fstat(f.fileno()).st_mode):
                    raise NotExecutableError(target)
                logger.info(
                    "Built %s in %.1fs (%d bytes)",
                    target,
                    time.monotonic() - started,
                    os.fstat(f.fileno()).st_size,
                )
                yield f

    def clear_cache(self) -> None:
        """Wipe the host toolchain's shared module cache.

        This is the cache at the snapshot environment's GOPATH. Builds run
        with a private GOPATH per workspace and never write to it, so this
        does not invalidate any stored binary; only Storage.clear() does.

        Raises:
            CacheClearError: If go clean fails.
        """
        logger.info("Clearing Go module cache")
        try:
            check_command(
                compose_clean_command(self.go),
                cwd=None,
                env=self.environment.with_overrides(),
                timeout=self.timeout,
            )
        except BuildError as e:
            raise CacheClearError("Failed to clear the module cache") from e


__all__ = ["Builder", "BuildError", "CacheClearError", "NotExecutableError"]
