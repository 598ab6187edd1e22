"""Resolution error types."""


class ResolutionError(Exception):
    """Raised when a module version cannot be resolved."""

    def __init__(self, message: str, code: str = "resolution_error") -> None:
        super().__init__(message)
        self.code = code


class PackageNotFoundError(ResolutionError):
    """Raised when the module does not exist upstream."""

    def __init__(self, module: str, code: str = "package_not_found") -> None:
        super().__init__(f"Package not found: {module}", code=code)
        self.module = module


class VersionNotFoundError(ResolutionError):
    """Raised when no published tag satisfies the requested version."""

    def __init__(
        self, module: str, requested: str, code: str = "version_not_found"
    ) -> None:
        super().__init__(f"No version of {module} matches {requested!r}", code=code)
        self.module = module
        self.requested = requested


class InvalidVersionError(ResolutionError):
    """Raised when a tag is not a semantic version."""

    def __init__(self, tag: str, code: str = "invalid_version") -> None:
        super().__init__(f"Invalid semantic version: {tag!r}", code=code)
        self.tag = tag


class InvalidConstraintError(ResolutionError):
    """Raised when a version constraint cannot be parsed."""

    def __init__(self, expression: str, code: str = "invalid_constraint") -> None:
        super().__init__(f"Invalid version constraint: {expression!r}", code=code)
        self.expression = expression


def is_not_found(error: ResolutionError) -> bool:
    """Return True if the error means "no such package/version"."""
    return isinstance(error, PackageNotFoundError | VersionNotFoundError)


__all__ = [
    "InvalidConstraintError",
    "InvalidVersionError",
    "PackageNotFoundError",
    "ResolutionError",
    "VersionNotFoundError",
    "is_not_found",
]
