"""Configuration endpoints."""

from typing import Any

from fastapi import APIRouter

from gobinaries.config import get_settings

router = APIRouter()


@router.get("")
def get_config() -> dict[str, Any]:
    """Get effective configuration.

    Secrets are reported only as set or unset.

    Returns:
        Current configuration as JSON.
    """
    settings = get_settings()
    return {
        "storage_prefix": settings.storage_prefix,
        "go_binary": settings.go_binary,
        "github_api_url": settings.github_api_url,
        "github_token_set": settings.github_token is not None,
        "log_level": settings.log_level,
        "default_os": settings.default_os,
        "default_arch": settings.default_arch,
        "build_timeout": settings.build_timeout,
        "resolve_timeout": settings.resolve_timeout,
        "wait_timeout": settings.wait_timeout,
        "max_tag_pages": settings.max_tag_pages,
    }
