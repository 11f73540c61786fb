"""Per-application service container and FastAPI dependency accessors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..config import settings
from ..exceptions import SyncError
from ..models.domain import QueuedAction
from ..persistence.cache_store import FileCacheStore, PersistentCache
from ..services.backend_client import BackendClient
from ..services.cache.manager import CacheManager
from ..services.routing.optimizer import RouteOptimizer
from ..services.sync.engine import SyncEngine
from ..services.sync.queue import OfflineActionQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppServices:
    cache_manager: CacheManager
    queue: OfflineActionQueue
    sync_engine: SyncEngine
    optimizer: RouteOptimizer
    backend: Optional[BackendClient] = None


async def _backend_not_configured(action: QueuedAction) -> None:
    raise SyncError(action.id, 1, "backend base URL is not configured")


def build_services(store: PersistentCache | None = None, backend: BackendClient | None = None) -> AppServices:
    store = store or FileCacheStore()
    if backend is None and settings.backend_base_url:
        backend = BackendClient()
    if backend is None:
        logger.warning("Backend not configured - cached data will not refresh and offline replay will fail")
    queue = OfflineActionQueue(store)
    return AppServices(
        cache_manager=CacheManager.with_default_policies(store),
        queue=queue,
        sync_engine=SyncEngine(queue, backend.push_action if backend else _backend_not_configured),
        optimizer=RouteOptimizer(),
        backend=backend,
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_cache_manager(request: Request) -> CacheManager:
    return get_services(request).cache_manager


def get_queue(request: Request) -> OfflineActionQueue:
    return get_services(request).queue


def get_sync_engine(request: Request) -> SyncEngine:
    return get_services(request).sync_engine


def get_optimizer(request: Request) -> RouteOptimizer:
    return get_services(request).optimizer


def get_backend(request: Request) -> Optional[BackendClient]:
    return get_services(request).backend
