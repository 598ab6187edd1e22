"""Build runner for executing Go toolchain commands.

This module handles:
- Composing go mod / go install / go clean commands for a build target
- Deriving the platform environment (GOOS, GOARCH, GOARM, CGO_ENABLED)
- Executing commands with subprocess and capturing stderr
- Enforcing build timeouts
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from gobinaries.resolver.semver import major_version
from gobinaries.types import BuildTarget, module_major

logger = logging.getLogger(__name__)

# Root module of the throwaway go.mod in every workspace
PLACEHOLDER_MODULE = "github.com/gobinary"

# Program variable receiving the resolved version at link time
VERSION_VARIABLE = "main.version"

# GOARCH values of the form armv<N> select GOARCH=arm with GOARM=<N>
ARM_PROFILE_PREFIX = "armv"


class BuildError(Exception):
    """Raised when a toolchain command fails.

    The message never contains workspace paths; the captured stderr is kept
    separately for operators.
    """

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
        code: str = "build_failed",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr
        self.code = code


@dataclass
class CommandResult:
    """Result of a toolchain command.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit code.
        stderr: Captured standard error, stripped.
        duration: Wall time in seconds.
    """

    command: str
    exit_code: int
    stderr: str
    duration: float

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def compose_ldflags(version: str) -> str:
    """Strip symbols and embed the version into main.version."""
    return f"-s -w -X {VERSION_VARIABLE}={version}"


def module_path(module: str, major: int) -> str:
    """Return the module path for a major version.

    Modules at v2 and above are imported as <module>/v<major>.

    Args:
        module: Module path as requested.
        major: Major version of the tag being built.

    Returns:
        Module path including the major version suffix when required.
    """
    if major < 2 or module_major(module) == major:
        return module
    return f"{module}/v{major}"


def dependency_spec(module: str, version: str) -> str:
    """Return the go.mod requirement for a module version.

    Args:
        module: Module path.
        version: Concrete tag.

    Returns:
        Requirement such as github.com/foo/bar/v3@v3.1.0.

    Raises:
        InvalidVersionError: If the tag is not a semantic version.
    """
    return f"{module_path(module, major_version(version))}@{version}"


def platform_env(target: BuildTarget) -> dict[str, str]:
    """Return the cross-compilation variables for a target.

    Args:
        target: Build target.

    Returns:
        CGO_ENABLED, GOOS and GOARCH, plus GOARM for armv<N> targets.
    """
    env = {
        "CGO_ENABLED": target.cgo_enabled,
        "GOOS": target.os,
    }
    profile = target.arch.removeprefix(ARM_PROFILE_PREFIX)
    if target.arch.startswith(ARM_PROFILE_PREFIX) and profile.isdigit():
        env["GOARCH"] = "arm"
        env["GOARM"] = profile
    else:
        env["GOARCH"] = target.arch
    return env


def compose_init_command(go: str = "go") -> list[str]:
    """Compose the command creating the placeholder module."""
    return [go, "mod", "init", PLACEHOLDER_MODULE]


def compose_require_command(dependency: str, go: str = "go") -> list[str]:
    """Compose the command recording the target module as a requirement."""
    return [go, "mod", "edit", f"-require={dependency}"]


def compose_install_command(target: BuildTarget, go: str = "go") -> list[str]:
    """Compose the `go install` command for a target.

    Args:
        target: Build target.
        go: Toolchain executable.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    path = module_path(target.module, major_version(target.version))
    return [
        go,
        "install",
        "-trimpath",
        "-ldflags",
        compose_ldflags(target.version),
        f"{path}/...@{target.version}",
    ]


def compose_clean_command(go: str = "go") -> list[str]:
    """Compose the command wiping the module cache."""
    return [go, "clean", "-modcache"]


def _step(cmd: list[str]) -> str:
    """Name a command by its subcommands, e.g. "mod init"."""
    return " ".join(arg for arg in cmd[1:3] if not arg.startswith("-"))


def run_command(
    cmd: list[str],
    cwd: Path | None,
    env: dict[str, str],
    timeout: float | None = None,
) -> CommandResult:
    """Execute a toolchain command and capture stderr.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        env: Complete environment for the process.
        timeout: Timeout in seconds (None = no timeout).

    Returns:
        CommandResult with exit code and stderr.

    Raises:
        BuildError: If the command times out or cannot be started.
    """
    cmd_str = shlex.join(cmd)
    logger.debug("Executing: %s", cmd_str)
    started = time.monotonic()

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        logger.error("Command timed out after %s seconds: %s", timeout, cmd_str)
        raise BuildError(
            f"go {_step(cmd)} timed out after {timeout} seconds",
            exit_code=-1,
            code="build_timeout",
        ) from e
    except OSError as e:
        logger.error("Failed to execute %s: %s", cmd_str, e)
        raise BuildError(
            "Failed to execute the Go toolchain",
            exit_code=None,
            code="execution_error",
        ) from e

    duration = time.monotonic() - started
    return CommandResult(
        command=cmd_str,
        exit_code=result.returncode,
        stderr=(result.stderr or "").strip(),
        duration=duration,
    )


def check_command(
    cmd: list[str],
    cwd: Path | None,
    env: dict[str, str],
    timeout: float | None = None,
) -> CommandResult:
    """Execute a toolchain command and fail on non-zero exit.

    Raises:
        BuildError: If the command exits non-zero, times out, or cannot start.
    """
    result = run_command(cmd, cwd=cwd, env=env, timeout=timeout)
    if not result.success:
        logger.error(
            "Command failed with exit code %d: %s\n%s",
            result.exit_code,
            result.command,
            result.stderr,
        )
        raise BuildError(
            f"go {_step(cmd)} failed with exit code {result.exit_code}",
            exit_code=result.exit_code,
            stderr=result.stderr,
        )
    logger.debug("Command finished in %.1fs: %s", result.duration, result.command)
    return result


__all__ = [
    "ARM_PROFILE_PREFIX",
    "PLACEHOLDER_MODULE",
    "BuildError",
    "CommandResult",
    "check_command",
    "compose_clean_command",
    "compose_init_command",
    "compose_install_command",
    "compose_ldflags",
    "compose_require_command",
    "dependency_spec",
    "module_path",
    "platform_env",
    "run_command",
]
