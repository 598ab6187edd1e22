"""Build orchestration module.

This module handles:
- The whitelisted toolchain environment
- Running go commands in ephemeral workspaces
- Locating the produced executable
- Single-flight build coordination and caching
"""

from gobinaries.builds.builder import Builder, CacheClearError, NotExecutableError
from gobinaries.builds.environment import BuildEnvironment
from gobinaries.builds.runner import BuildError

__all__ = [
    "BuildEnvironment",
    "BuildError",
    "Builder",
    "CacheClearError",
    "NotExecutableError",
]
