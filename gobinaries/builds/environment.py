"""Toolchain environment whitelist.

Builds execute third-party code, so subprocesses never inherit the process
environment. A snapshot of a fixed set of variables is taken once at startup
and passed to the builder; each command gets that snapshot plus explicit
overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# Variables copied from the process environment into toolchain commands
ENVIRON_WHITELIST = (
    "PATH",
    "HOME",
    "PWD",
    "GOPATH",
    "GOLANG_VERSION",
    "TMPDIR",
)


@dataclass(frozen=True)
class BuildEnvironment:
    """Immutable snapshot of whitelisted environment variables.

    Attributes:
        variables: Whitelisted variable names mapped to their values.
    """

    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.variables) - set(ENVIRON_WHITELIST)
        if unknown:
            raise ValueError(f"variables not in whitelist: {sorted(unknown)}")
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> BuildEnvironment:
        """Take a snapshot of the whitelisted variables.

        Args:
            environ: Source mapping; defaults to os.environ.

        Returns:
            BuildEnvironment with the whitelisted variables that are set.
        """
        source = os.environ if environ is None else environ
        return cls({name: source[name] for name in ENVIRON_WHITELIST if name in source})

    def with_overrides(self, **overrides: str) -> dict[str, str]:
        """Return the environment for one command.

        Args:
            **overrides: Variables set for this command only (GOPATH, GOOS...).

        Returns:
            New dictionary suitable for subprocess env=.
        """
        env = dict(self.variables)
        env.update(overrides)
        return env


__all__ = ["ENVIRON_WHITELIST", "BuildEnvironment"]
