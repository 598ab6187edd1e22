"""Binary endpoints.

- GET /resolve/{module} - Resolve a version request to a tag
- GET /binaries/{module} - Stream the binary, building it on a cache miss
"""

from collections.abc import Iterator
from typing import Any, BinaryIO, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status
from fastapi.responses import StreamingResponse

from gobinaries.builds.builder import NotExecutableError
from gobinaries.builds.runner import BuildError
from gobinaries.builds.service import BinaryService, BuildWaitTimeout
from gobinaries.config import get_settings
from gobinaries.resolver.errors import (
    InvalidConstraintError,
    InvalidVersionError,
    ResolutionError,
    is_not_found,
)
from gobinaries.storage.base import StorageError
from gobinaries.storage.local import COPY_CHUNK_SIZE
from gobinaries.types import LATEST
from web.deps import get_binary_service

router = APIRouter()

_BUILD_ERROR_STATUS = {
    "build_failed": 422,
    "build_timeout": http_status.HTTP_504_GATEWAY_TIMEOUT,
}


def _raise(status_code: int, code: str, message: str) -> NoReturn:
    raise HTTPException(
        status_code=status_code,
        detail={"code": code, "message": message},
    )


def _raise_for_resolution(e: ResolutionError) -> NoReturn:
    """Map a resolution error to an HTTP error."""
    if is_not_found(e):
        _raise(http_status.HTTP_404_NOT_FOUND, e.code, str(e))
    if isinstance(e, InvalidVersionError | InvalidConstraintError):
        _raise(http_status.HTTP_400_BAD_REQUEST, e.code, str(e))
    _raise(http_status.HTTP_502_BAD_GATEWAY, e.code, str(e))


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    """Yield a stream in chunks and close it."""
    with stream:
        while chunk := stream.read(COPY_CHUNK_SIZE):
            yield chunk


@router.get("/resolve/{module:path}")
def resolve_endpoint(
    module: str,
    version: str = Query(LATEST, description="Tag, constraint, or 'latest'"),
    service: BinaryService = Depends(get_binary_service),
) -> dict[str, Any]:
    """Resolve a version request.

    Args:
        module: Module path.
        version: Requested version.
        service: Binary service.

    Returns:
        Resolved module, version and major version.
    """
    try:
        resolved = service.resolver.resolve(module, version)
    except ResolutionError as e:
        _raise_for_resolution(e)
    return {
        "module": resolved.module,
        "version": resolved.version,
        "major": resolved.major,
    }


@router.get("/binaries/{module:path}")
def binary_endpoint(
    module: str,
    version: str = Query(LATEST, description="Tag, constraint, or 'latest'"),
    goos: str | None = Query(None, alias="os", description="Target GOOS"),
    goarch: str | None = Query(None, alias="arch", description="Target GOARCH"),
    cgo: str = Query("false", description="Enable CGO (true/false)"),
    service: BinaryService = Depends(get_binary_service),
) -> StreamingResponse:
    """Stream a module's binary.

    Args:
        module: Module path.
        version: Requested version.
        goos: Target OS (default from settings).
        goarch: Target architecture (default from settings).
        cgo: CGO flag.
        service: Binary service.

    Returns:
        The executable as an attachment.

    Raises:
        HTTPException: Mapped from resolution, build and storage errors.
    """
    settings = get_settings()
    try:
        target, stream = service.serve(
            module,
            version,
            goos or settings.default_os,
            goarch or settings.default_arch,
            cgo,
        )
    except ResolutionError as e:
        _raise_for_resolution(e)
    except ValueError as e:
        _raise(http_status.HTTP_400_BAD_REQUEST, "invalid_target", str(e))
    except NotExecutableError as e:
        _raise(422, e.code, str(e))
    except BuildError as e:
        status_code = _BUILD_ERROR_STATUS.get(
            e.code, http_status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        _raise(status_code, e.code, str(e))
    except BuildWaitTimeout as e:
        _raise(http_status.HTTP_504_GATEWAY_TIMEOUT, e.code, str(e))
    except StorageError as e:
        _raise(http_status.HTTP_500_INTERNAL_SERVER_ERROR, e.code, str(e))

    return StreamingResponse(
        _iter_stream(stream),
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="{target.name}"',
            "X-Binary-Version": target.version,
        },
    )
