"""GitHub tag resolver.

This module handles:
- Mapping github.com module paths to repositories
- Listing published tags via the GitHub REST API, following pagination
- Translating HTTP failures into resolution errors
"""

from __future__ import annotations

import logging

import httpx

from gobinaries.resolver.base import select_version
from gobinaries.resolver.errors import PackageNotFoundError, ResolutionError
from gobinaries.types import ResolvedVersion, validate_module_path

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_HOST = "github.com"

# Maximum page size accepted by the tags endpoint
TAGS_PER_PAGE = 100


def repository_for_module(module: str, host: str = GITHUB_HOST) -> tuple[str, str]:
    """Return (owner, repo) for a module hosted on GitHub.

    Args:
        module: Module path such as github.com/tj/triage/v2.
        host: Expected host component.

    Returns:
        Tuple of (owner, repo).

    Raises:
        PackageNotFoundError: If the module is not a GitHub repository path.
    """
    try:
        validate_module_path(module)
    except ValueError:
        raise PackageNotFoundError(module) from None
    parts = module.split("/")
    if len(parts) < 3 or parts[0] != host:
        raise PackageNotFoundError(module)
    return parts[1], parts[2]


class GitHubResolver:
    """Resolve module versions from GitHub repository tags."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        token: str | None = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        max_pages: int = 10,
    ) -> None:
        """Initialize the resolver.

        Args:
            client: HTTPX client; one is created (and owned) if not given.
            token: Optional GitHub API token.
            base_url: GitHub REST API base URL.
            timeout: Per-request timeout in seconds.
            max_pages: Maximum number of tag pages to fetch.
        """
        self._owns_client = client is None
        self.client = client or httpx.Client()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_pages = max_pages
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._owns_client:
            self.client.close()

    def list_tags(self, module: str) -> list[str]:
        """List tag names of the module's repository.

        Args:
            module: Module path.

        Returns:
            Tag names in API order.

        Raises:
            PackageNotFoundError: If the repository does not exist.
            ResolutionError: On any other upstream failure.
        """
        owner, repo = repository_for_module(module)
        url: str | None = f"{self.base_url}/repos/{owner}/{repo}/tags"
        params: dict[str, int] | None = {"per_page": TAGS_PER_PAGE}
        tags: list[str] = []

        for _ in range(self.max_pages):
            if url is None:
                break
            logger.debug("Fetching tags from %s", url)
            try:
                response = self.client.get(
                    url, params=params, headers=self.headers, timeout=self.timeout
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    raise PackageNotFoundError(module) from e
                raise ResolutionError(
                    f"HTTP error listing tags for {module}: "
                    f"{e.response.status_code} {e.response.reason_phrase}",
                    code="http_error",
                ) from e
            except httpx.TimeoutException as e:
                raise ResolutionError(
                    f"Timeout listing tags for {module}",
                    code="timeout",
                ) from e
            except httpx.RequestError as e:
                raise ResolutionError(
                    f"Network error listing tags for {module}: {e}",
                    code="network_error",
                ) from e

            try:
                tags.extend(item["name"] for item in response.json())
            except (ValueError, KeyError, TypeError) as e:
                raise ResolutionError(
                    f"Unexpected tag listing for {module}",
                    code="invalid_response",
                ) from e

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None
        else:
            if url is not None:
                logger.warning(
                    "Stopped listing tags for %s after %d pages", module, self.max_pages
                )

        logger.info("Found %d tags for %s", len(tags), module)
        return tags

    def resolve(self, module: str, version: str) -> ResolvedVersion:
        """Resolve a requested version against the repository's tags.

        Raises:
            PackageNotFoundError: If the repository does not exist.
            VersionNotFoundError: If no tag satisfies the request.
            ResolutionError: On upstream failures or bad constraints.
        """
        return select_version(module, self.list_tags(module), version)


__all__ = [
    "GITHUB_API_URL",
    "GitHubResolver",
    "repository_for_module",
]
