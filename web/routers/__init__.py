"""Router modules for FastAPI web API."""

from web.routers import binaries, cache, config, health

__all__ = ["binaries", "cache", "config", "health"]
