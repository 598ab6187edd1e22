"""Build service module.

This module provides the high-level serving API:
- open_binary(): Main entry point - serve from cache, building on a miss
- Single-flight dedup so concurrent requests for a target share one build
- Persisting successful builds before waiters are released
- Whole-cache clearing
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO

from gobinaries.builds.builder import Builder
from gobinaries.builds.environment import BuildEnvironment
from gobinaries.config import get_settings
from gobinaries.resolver.github import GitHubResolver
from gobinaries.storage.base import ObjectNotFoundError, StorageError
from gobinaries.storage.local import LocalStorage
from gobinaries.types import BuildTarget

if TYPE_CHECKING:
    from gobinaries.config import Settings
    from gobinaries.resolver.base import Resolver
    from gobinaries.storage.base import Storage

logger = logging.getLogger(__name__)

# Builds one request runs or joins before giving up on a binary removed under it
BUILD_ATTEMPTS = 2


class BuildWaitTimeout(Exception):
    """Raised when a request gives up waiting on another request's build."""

    def __init__(
        self, target: BuildTarget, timeout: float, code: str = "build_wait_timeout"
    ) -> None:
        super().__init__(f"Timed out after {timeout}s waiting for build of {target}")
        self.target = target
        self.timeout = timeout
        self.code = code


@dataclass
class _Flight:
    """One in-progress build attempt shared by its waiters."""

    done: threading.Event = field(default_factory=threading.Event)
    error: BaseException | None = None
    waiters: int = 0


class BinaryService:
    """Resolve, build, cache and serve binaries.

    At most one build runs per BuildTarget; requests arriving while it runs
    wait for its outcome instead of starting their own.
    """

    def __init__(
        self,
        resolver: Resolver,
        builder: Builder,
        storage: Storage,
        wait_timeout: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            resolver: Version resolver.
            builder: Binary builder.
            storage: Object store for finished binaries.
            wait_timeout: Default time a request waits on another build.
        """
        self.resolver = resolver
        self.builder = builder
        self.storage = storage
        self.wait_timeout = wait_timeout
        self._lock = threading.Lock()
        self._flights: dict[BuildTarget, _Flight] = {}

    def resolve(
        self,
        module: str,
        version: str,
        os: str,
        arch: str,
        cgo: str = "false",
    ) -> BuildTarget:
        """Resolve a request into a concrete build target.

        Raises:
            ResolutionError: If the version cannot be resolved.
            ValueError: If a target field is invalid.
        """
        resolved = self.resolver.resolve(module, version)
        return BuildTarget(
            module=module, version=resolved.version, os=os, arch=arch, cgo=cgo
        )

    def in_flight(self, target: BuildTarget) -> bool:
        """Return True if a build for the target is running."""
        with self._lock:
            return target in self._flights

    def active_builds(self) -> int:
        """Return the number of builds currently running."""
        with self._lock:
            return len(self._flights)

    def _build_and_store(self, target: BuildTarget) -> None:
        """Build a target and persist it, unless another attempt already did."""
        try:
            self.storage.get(target).close()
            logger.info("Cache filled while waiting for %s", target)
            return
        except ObjectNotFoundError:
            pass

        with self.builder.build(target) as binary:
            self.storage.create(target, binary)

    def open_binary(
        self, target: BuildTarget, timeout: float | None = None
    ) -> BinaryIO:
        """Open the binary for a target, building it on a cache miss.

        Args:
            target: Fully resolved build target.
            timeout: How long to wait on a build started by another request;
                defaults to the service's wait_timeout.

        Returns:
            Open binary stream; the caller closes it.

        Raises:
            BuildError: If the build failed.
            NotExecutableError: If the module is not a command.
            BuildWaitTimeout: If waiting on another request's build timed out.
            StorageError: On storage failures.
        """
        try:
            stream = self.storage.get(target)
            logger.info("Cache hit for %s", target)
            return stream
        except ObjectNotFoundError:
            logger.info("Cache miss for %s", target)

        for _ in range(BUILD_ATTEMPTS):
            self._join_build(target, timeout)
            try:
                return self.storage.get(target)
            except ObjectNotFoundError:
                logger.warning("Binary for %s was removed after its build", target)
        raise StorageError(f"Binary for {target} was removed before it could be served")

    def _join_build(self, target: BuildTarget, timeout: float | None) -> None:
        """Run the build for a target, or wait for the one already running."""
        with self._lock:
            flight = self._flights.get(target)
            leader = flight is None
            if flight is None:
                flight = _Flight()
                self._flights[target] = flight
            else:
                flight.waiters += 1

        if leader:
            try:
                self._build_and_store(target)
            except BaseException as e:
                flight.error = e
                raise
            finally:
                with self._lock:
                    del self._flights[target]
                if flight.waiters:
                    logger.info(
                        "Releasing %d waiter(s) for %s", flight.waiters, target
                    )
                flight.done.set()
        else:
            if timeout is None:
                timeout = self.wait_timeout
            logger.info("Waiting for in-flight build of %s", target)
            if not flight.done.wait(timeout):
                raise BuildWaitTimeout(target, timeout or 0.0)
            if flight.error is not None:
                raise flight.error

    def serve(
        self,
        module: str,
        version: str,
        os: str,
        arch: str,
        cgo: str = "false",
    ) -> tuple[BuildTarget, BinaryIO]:
        """Resolve a request and open its binary.

        Returns:
            Tuple of (resolved BuildTarget, open binary stream).
        """
        target = self.resolve(module, version, os, arch, cgo)
        return target, self.open_binary(target)

    def close(self) -> None:
        """Release the resolver's HTTP resources."""
        close = getattr(self.resolver, "close", None)
        if close is not None:
            close()

    def clear_cache(self, artifacts: bool = True) -> None:
        """Wipe the host module cache and, optionally, stored binaries.

        Only artifacts=True invalidates served binaries; builds never read
        the host module cache.

        Raises:
            CacheClearError: If the module cache cannot be wiped.
            StorageError: If stored binaries cannot be removed.
        """
        self.builder.clear_cache()
        if artifacts:
            self.storage.clear()
        logger.info("Cache cleared (artifacts=%s)", artifacts)


def create_binary_service(
    settings: Settings | None = None,
    environment: BuildEnvironment | None = None,
) -> BinaryService:
    """Wire a BinaryService from settings.

    Args:
        settings: Application settings.
        environment: Environment snapshot; taken from the process if None.

    Returns:
        Configured BinaryService with a GitHub resolver and local storage.
    """
    if settings is None:
        settings = get_settings()
    if environment is None:
        environment = BuildEnvironment.from_environ()

    token = settings.github_token.get_secret_value() if settings.github_token else None
    resolver = GitHubResolver(
        token=token,
        base_url=settings.github_api_url,
        timeout=settings.resolve_timeout,
        max_pages=settings.max_tag_pages,
    )
    builder = Builder(
        environment=environment,
        scratch_dir=settings.scratch_dir,
        go=settings.go_binary,
        timeout=settings.build_timeout,
    )
    storage = LocalStorage(settings.storage_dir, prefix=settings.storage_prefix)
    return BinaryService(
        resolver=resolver,
        builder=builder,
        storage=storage,
        wait_timeout=settings.wait_timeout,
    )


__all__ = [
    "BinaryService",
    "BuildWaitTimeout",
    "create_binary_service",
]
