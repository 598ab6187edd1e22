"""Configuration settings for gobinaries.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_storage_dir() -> Path:
    """Return the default object storage root."""
    return Path.home() / ".local" / "share" / "gobinaries" / "objects"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the GOBIN_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="GOBIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    storage_dir: Path = Field(
        default_factory=_default_storage_dir,
        description="Root directory of the local binary object store",
    )
    storage_prefix: str = Field(
        default="production",
        description="Object key prefix separating logical environments",
    )

    # Builds
    scratch_dir: Path | None = Field(
        default=None,
        description="Parent directory for ephemeral build workspaces "
        "(uses system default if not set)",
    )
    go_binary: str = Field(
        default="go",
        description="Go toolchain executable",
    )
    build_timeout: int = Field(
        default=600,
        ge=10,
        description="Timeout for a single go install, in seconds",
    )
    wait_timeout: float | None = Field(
        default=900.0,
        gt=0,
        description="How long a request waits on another request's build",
    )

    # Upstream
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    github_token: SecretStr | None = Field(
        default=None,
        description="GitHub API token",
    )
    resolve_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for upstream tag listing requests, in seconds",
    )
    max_tag_pages: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum number of tag pages fetched per module",
    )

    # Request defaults
    default_os: str = Field(default="linux", description="Default GOOS")
    default_arch: str = Field(default="amd64", description="Default GOARCH")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Secret values such as the GitHub token are masked.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
