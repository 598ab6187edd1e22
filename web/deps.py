"""Service dependency for FastAPI.

Provides the shared BinaryService to route handlers via FastAPI dependency
injection. The service is created once in the application lifespan so the
single-flight table and the environment snapshot are shared by every
request.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from gobinaries.builds.service import BinaryService


def get_binary_service(request: Request) -> BinaryService:
    """Get the binary service from app state.

    Args:
        request: FastAPI request object.

    Returns:
        Shared BinaryService.
    """
    service: Any = request.app.state.binary_service
    return service  # type: ignore[no-any-return]
