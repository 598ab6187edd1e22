"""Shared type definitions for gobinaries.

This module contains the value types shared across subpackages to avoid
circular imports.
"""

import re
from dataclasses import dataclass

# Sentinel requested version meaning "most recent stable release"
LATEST = "latest"

# v<major>.<minor>.<patch>[-prerelease][+build]; Go module versions need the "v"
SEMVER_TAG_RE = re.compile(
    r"^v(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# GOOS / GOARCH / cgo values never contain "-", which keeps object keys unambiguous
_PLATFORM_RE = re.compile(r"^[A-Za-z0-9_]+$")

CGO_VALUES = {"true": "1", "false": "0", "1": "1", "0": "0"}


@dataclass(frozen=True)
class BuildTarget:
    """A fully resolved request for one executable.

    Used as both the storage key and the single-flight key, so two targets
    are the same build iff all five fields are equal.

    Attributes:
        module: Import path of the Go module (e.g. github.com/tj/triage).
        version: Concrete, resolved tag (e.g. v1.2.0).
        os: Target GOOS.
        arch: Target GOARCH, or armv<N> for an ARM profile.
        cgo: CGO flag as a string (true, false, 1 or 0).
    """

    module: str
    version: str
    os: str
    arch: str
    cgo: str = "false"

    def __post_init__(self) -> None:
        """Validate fields after initialization."""
        validate_module_path(self.module)
        match = SEMVER_TAG_RE.match(self.version)
        if not match:
            raise ValueError(f"version must be a concrete tag: {self.version!r}")
        major = module_major(self.module)
        if major is not None and int(match.group("major")) != major:
            raise ValueError(
                f"{self.version} is not a v{major} version of {self.module}"
            )
        for name in ("os", "arch"):
            value = getattr(self, name)
            if not _PLATFORM_RE.match(value):
                raise ValueError(f"invalid {name}: {value!r}")
        if self.cgo not in CGO_VALUES:
            raise ValueError(f"cgo must be one of {sorted(CGO_VALUES)}: {self.cgo!r}")

    @property
    def cgo_enabled(self) -> str:
        """CGO_ENABLED value for the toolchain."""
        return CGO_VALUES[self.cgo]

    @property
    def name(self) -> str:
        """Binary name, the last element of the module path."""
        return self.module.rsplit("/", 1)[-1]

    def __str__(self) -> str:
        return f"{self.module}@{self.version} ({self.os}/{self.arch}, cgo={self.cgo})"


@dataclass(frozen=True)
class ResolvedVersion:
    """Output of a resolver.

    Attributes:
        module: Module the version was resolved for.
        version: Concrete tag as published upstream.
        major: Semantic-versioning major component of the tag.
    """

    module: str
    version: str
    major: int


# Trailing /v<N> element of a module path
_MAJOR_SUFFIX_RE = re.compile(r"/v(?P<major>[1-9]\d*)$")


def module_major(module: str) -> int | None:
    """Return the major version named by a module path's /v<N> suffix.

    Args:
        module: Module path such as github.com/foo/bar/v3.

    Returns:
        N for a /v<N> suffix with N >= 2, None when the path has no such
        suffix (the module is at v0 or v1).
    """
    match = _MAJOR_SUFFIX_RE.search(module)
    if match is None or int(match.group("major")) < 2:
        return None
    return int(match.group("major"))


def validate_module_path(module: str) -> None:
    """Validate a module import path.

    Args:
        module: Module path to check.

    Raises:
        ValueError: If the path is empty, contains whitespace, or has empty,
            "." or ".." elements.
    """
    if not module:
        raise ValueError("module must not be empty")
    if any(c.isspace() for c in module):
        raise ValueError(f"module must not contain whitespace: {module!r}")
    if any(part in ("", ".", "..") for part in module.split("/")):
        raise ValueError(f"invalid module path: {module!r}")


__all__ = [
    "CGO_VALUES",
    "LATEST",
    "SEMVER_TAG_RE",
    "BuildTarget",
    "ResolvedVersion",
    "module_major",
    "validate_module_path",
]
