"""Cache administration endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import status as http_status

from gobinaries.builds.builder import CacheClearError
from gobinaries.builds.service import BinaryService
from gobinaries.storage.base import StorageError
from web.deps import get_binary_service

router = APIRouter()


@router.post("/clear")
def clear_cache_endpoint(
    artifacts: bool = Query(True, description="Also remove stored binaries"),
    service: BinaryService = Depends(get_binary_service),
) -> dict[str, str | bool]:
    """Wipe the host Go module cache and, by default, every stored binary.

    Builds never read the host module cache, so only artifacts=true
    changes what is served.

    Raises:
        HTTPException: If the cache cannot be cleared.
    """
    try:
        service.clear_cache(artifacts=artifacts)
    except (CacheClearError, StorageError) as e:
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": e.code, "message": str(e)},
        ) from None
    return {
        "status": "cleared",
        "artifacts": artifacts,
        "binaries_invalidated": artifacts,
    }
