"""Liveness and service discovery endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from gobinaries import __version__
from gobinaries.builds.service import BinaryService
from web.deps import get_binary_service

router = APIRouter()

# Request templates advertised by the index endpoint
ENDPOINTS = {
    "resolve": "/resolve/{module}?version=latest",
    "binary": "/binaries/{module}?version=latest&os=&arch=&cgo=false",
    "clear_cache": "POST /cache/clear?artifacts=true",
}


@router.get("/health")
def health(
    service: BinaryService = Depends(get_binary_service),
) -> dict[str, Any]:
    """Report liveness and the number of builds in progress."""
    return {
        "status": "ok",
        "version": __version__,
        "active_builds": service.active_builds(),
    }


@router.get("/")
def index() -> dict[str, Any]:
    """Name the service and list its request templates."""
    return {"name": "gobinaries", "version": __version__, "endpoints": ENDPOINTS}
