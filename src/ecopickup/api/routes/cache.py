"""Cache diagnostics and eviction endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import ProtectedKeyError
from ...schemas.cache import CacheCleanupResponse, CacheStatsResponse
from ...services.cache.manager import CacheManager
from ..dependencies import get_cache_manager

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsResponse, status_code=status.HTTP_200_OK)
async def cache_stats(manager: CacheManager = Depends(get_cache_manager)) -> CacheStatsResponse:
    stats = await manager.get_cache_stats()
    return CacheStatsResponse(
        total_keys=stats.total_keys,
        stale_keys=stats.stale_keys,
        fresh_keys=stats.fresh_keys,
    )


@router.post("/cleanup", response_model=CacheCleanupResponse, status_code=status.HTTP_200_OK)
async def cache_cleanup(manager: CacheManager = Depends(get_cache_manager)) -> CacheCleanupResponse:
    removed = await manager.cleanup_cache()
    return CacheCleanupResponse(removed_keys=removed)


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_key(key: str, manager: CacheManager = Depends(get_cache_manager)) -> None:
    try:
        await manager.invalidate_cache(key)
    except ProtectedKeyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_all(manager: CacheManager = Depends(get_cache_manager)) -> None:
    await manager.invalidate_all_cache()
