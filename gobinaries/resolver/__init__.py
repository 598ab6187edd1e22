"""Version resolution module.

This module handles:
- Semantic version parsing and constraint matching
- Selecting the tag that satisfies a request
- Listing published tags upstream (GitHub)
"""

from gobinaries.resolver.base import Resolver, select_version
from gobinaries.resolver.errors import (
    InvalidConstraintError,
    InvalidVersionError,
    PackageNotFoundError,
    ResolutionError,
    VersionNotFoundError,
    is_not_found,
)
from gobinaries.resolver.github import GitHubResolver

__all__ = [
    "GitHubResolver",
    "InvalidConstraintError",
    "InvalidVersionError",
    "PackageNotFoundError",
    "ResolutionError",
    "Resolver",
    "VersionNotFoundError",
    "is_not_found",
    "select_version",
]
