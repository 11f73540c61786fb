"""Cached data endpoints for the driver and customer apps."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...exceptions import FetchError, StorageError
from ...persistence.storage_keys import StorageKey, scoped_key
from ...schemas.cache import CachedDataResponse
from ...services.backend_client import BackendClient
from ...services.cache.manager import CacheManager
from ..dependencies import get_backend, get_cache_manager

router = APIRouter(tags=["data"])
logger = logging.getLogger(__name__)


def _fetcher(
    key: str,
    backend: Optional[BackendClient],
    call: Callable[[BackendClient], Awaitable[Any]],
) -> Callable[[], Awaitable[Any]]:
    async def fetch() -> Any:
        if backend is None:
            raise FetchError(key, "backend is not configured")
        return await call(backend)

    return fetch


async def _serve(
    manager: CacheManager,
    key: str,
    fetch: Callable[[], Awaitable[Any]],
    refresh: bool,
) -> CachedDataResponse:
    try:
        if refresh:
            data = await manager.refresh_cache(key, fetch)
            return CachedDataResponse(key=key, data=data, is_stale=False, source="network")
        result = await manager.get_cached_result(key, fetch)
    except FetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except StorageError as exc:
        logger.exception(f"Cache storage failure for '{key}': {exc}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return CachedDataResponse(key=key, data=result.value, is_stale=result.is_stale, source=result.source)


@router.get("/drivers/{driver_id}/jobs", response_model=CachedDataResponse)
async def driver_jobs(
    driver_id: str,
    refresh: bool = Query(False, description="Bypass staleness checks and fetch now."),
    manager: CacheManager = Depends(get_cache_manager),
    backend: Optional[BackendClient] = Depends(get_backend),
) -> CachedDataResponse:
    key = scoped_key(StorageKey.DRIVER_JOBS, driver_id)
    fetch = _fetcher(key, backend, lambda client: client.fetch_driver_jobs(driver_id))
    return await _serve(manager, key, fetch, refresh)


@router.get("/drivers/{driver_id}/routes", response_model=CachedDataResponse)
async def driver_routes(
    driver_id: str,
    refresh: bool = Query(False, description="Bypass staleness checks and fetch now."),
    manager: CacheManager = Depends(get_cache_manager),
    backend: Optional[BackendClient] = Depends(get_backend),
) -> CachedDataResponse:
    key = scoped_key(StorageKey.DRIVER_ROUTES, driver_id)
    fetch = _fetcher(key, backend, lambda client: client.fetch_driver_routes(driver_id))
    return await _serve(manager, key, fetch, refresh)


@router.get("/customers/{customer_id}/schedule", response_model=CachedDataResponse)
async def customer_schedule(
    customer_id: str,
    refresh: bool = Query(False, description="Bypass staleness checks and fetch now."),
    manager: CacheManager = Depends(get_cache_manager),
    backend: Optional[BackendClient] = Depends(get_backend),
) -> CachedDataResponse:
    key = scoped_key(StorageKey.CUSTOMER_SCHEDULE, customer_id)
    fetch = _fetcher(key, backend, lambda client: client.fetch_customer_schedule(customer_id))
    return await _serve(manager, key, fetch, refresh)
