"""Resolver contract and tag selection.

A resolver maps a module and a requested version expression to one concrete
tag. Implementations differ only in how they enumerate published tags; the
selection rules live here so every implementation resolves identically.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from gobinaries.resolver.errors import VersionNotFoundError
from gobinaries.resolver.semver import Constraint, Version, is_version, parse_version
from gobinaries.types import LATEST, ResolvedVersion, module_major

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    """Anything that can resolve a module version."""

    def resolve(self, module: str, version: str) -> ResolvedVersion:
        """Resolve a requested version to a concrete tag.

        Raises:
            ResolutionError: Or one of its subclasses.
        """
        ...


def _parse_tags(module: str, tags: Iterable[str]) -> list[tuple[str, Version]]:
    """Keep the tags the module can be built at, paired with their parsed form.

    Tags must be v-prefixed semantic versions. A module path ending in
    /v<N> only accepts tags of major version N.
    """
    major = module_major(module)
    parsed: list[tuple[str, Version]] = []
    for tag in tags:
        if not is_version(tag):
            logger.debug("Ignoring non-semver tag %r", tag)
            continue
        version = parse_version(tag)
        if major is not None and version.major != major:
            continue
        parsed.append((tag, version))
    return parsed


def select_version(module: str, tags: Iterable[str], requested: str) -> ResolvedVersion:
    """Select the tag satisfying a request.

    Args:
        module: Module the tags belong to; a /v<N> suffix restricts the
            candidates to major version N.
        tags: Published tag names.
        requested: "latest" (or empty), a literal tag (the "v" may be
            omitted), or a constraint.

    Returns:
        ResolvedVersion for the selected tag.

    Raises:
        VersionNotFoundError: If no tag satisfies the request.
        InvalidConstraintError: If the request is not a valid constraint.
    """
    requested = requested.strip()
    candidates = _parse_tags(module, tags)

    if not requested or requested == LATEST:
        matching = [c for c in candidates if not c[1].is_prerelease]
    elif is_version(requested) or is_version(f"v{requested}"):
        tag = requested if requested.startswith("v") else f"v{requested}"
        wanted = parse_version(tag)
        # Prefer the literal tag; otherwise any tag of equal precedence
        literal = [c for c in candidates if c[0] == tag]
        matching = literal or [c for c in candidates if c[1] == wanted]
    else:
        constraint = Constraint.parse(requested)
        matching = [c for c in candidates if constraint.matches(c[1])]

    if not matching:
        raise VersionNotFoundError(module, requested or LATEST)

    tag, version = max(matching, key=lambda c: c[1].sort_key)
    logger.debug("Resolved %s %r to %s", module, requested or LATEST, tag)
    return ResolvedVersion(module=module, version=tag, major=version.major)


__all__ = ["Resolver", "select_version"]
