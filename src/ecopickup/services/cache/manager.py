"""Stale-while-revalidate cache manager for list-shaped app data.

Availability wins over freshness: when a refresh fails and the policy allows
it, the last stored value is served (flagged as stale) instead of an error.
Concurrent calls for the same key are not coordinated; each may fetch and the
last write wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar

from ...config import settings
from ...exceptions import FetchError, ProtectedKeyError, StorageError
from ...models.cache import CachedResult, CachePolicy, CacheStats
from ...persistence.cache_store import PersistentCache
from ...persistence.storage_keys import WELL_KNOWN_KEYS, StorageKey, base_key

logger = logging.getLogger(__name__)

T = TypeVar("T")
FetchFn = Callable[[], Awaitable[T]]
PolicyOverride = CachePolicy | Mapping[str, Any]

# Presets carried over from the mobile app's original tuning.
DEFAULT_KEY_POLICIES: dict[str, dict[str, Any]] = {
    StorageKey.DRIVER_JOBS: {"max_age_minutes": 30, "auto_refresh": True, "fallback_to_cache": True},
    StorageKey.DRIVER_ROUTES: {"max_age_minutes": 60, "auto_refresh": True, "fallback_to_cache": True},
    StorageKey.CUSTOMER_SCHEDULE: {"max_age_minutes": 15, "auto_refresh": True, "fallback_to_cache": True},
}


def default_policy_from_settings() -> CachePolicy:
    return CachePolicy(
        max_age_minutes=settings.default_cache_max_age_minutes,
        auto_refresh=settings.default_cache_auto_refresh,
        fallback_to_cache=settings.default_cache_fallback_to_cache,
    )


class CacheManager:
    """Policy engine over a :class:`PersistentCache`.

    Policies resolve field by field: explicit argument, then the policy
    registered for the key, then the manager default. A scoped key such as
    ``driver_jobs:D1`` uses the policy registered for ``driver_jobs`` unless
    it has one of its own.
    """

    def __init__(
        self,
        store: PersistentCache,
        default_policy: CachePolicy | None = None,
        cleanup_max_age_minutes: float | None = None,
        fetch_timeout_seconds: float | None = None,
        preserved_keys: Iterable[str] = (StorageKey.OFFLINE_QUEUE,),
    ) -> None:
        self.store = store
        self.default_policy = default_policy or default_policy_from_settings()
        self.cleanup_max_age_minutes = (
            cleanup_max_age_minutes
            if cleanup_max_age_minutes is not None
            else settings.cache_cleanup_max_age_minutes
        )
        self.fetch_timeout_seconds = (
            fetch_timeout_seconds if fetch_timeout_seconds is not None else settings.cache_fetch_timeout_seconds
        )
        self.preserved_keys = frozenset(preserved_keys)
        self._policies: dict[str, CachePolicy] = {}

    @classmethod
    def with_default_policies(cls, store: PersistentCache, **kwargs: Any) -> "CacheManager":
        manager = cls(store, **kwargs)
        for key, overrides in DEFAULT_KEY_POLICIES.items():
            manager.register_policy(key, overrides)
        return manager

    def register_policy(self, key: str, policy: PolicyOverride) -> CachePolicy:
        resolved = policy if isinstance(policy, CachePolicy) else self.default_policy.merged(dict(policy))
        self._policies[key] = resolved
        return resolved

    def policy_for(self, key: str, override: Optional[PolicyOverride] = None) -> CachePolicy:
        base = self._policies.get(key) or self._policies.get(base_key(key), self.default_policy)
        if override is None:
            return base
        if isinstance(override, CachePolicy):
            return override
        return base.merged(dict(override))

    async def _fetch(self, key: str, fetch_fn: FetchFn) -> Any:
        try:
            if self.fetch_timeout_seconds:
                return await asyncio.wait_for(fetch_fn(), timeout=self.fetch_timeout_seconds)
            return await fetch_fn()
        except FetchError:
            raise
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            raise FetchError(key, "fetch was cancelled") from exc
        except asyncio.TimeoutError as exc:
            raise FetchError(key, f"fetch timed out after {self.fetch_timeout_seconds}s") from exc
        except Exception as exc:
            raise FetchError(key, str(exc) or type(exc).__name__) from exc

    async def get_cached_result(
        self,
        key: str,
        fetch_fn: FetchFn,
        policy: Optional[PolicyOverride] = None,
    ) -> CachedResult:
        resolved = self.policy_for(key, policy)

        if not await self.store.is_stale(key, resolved.max_age_minutes):
            cached = await self.store.get_item(key)
            if cached is not None:
                logger.debug("Cache hit for '%s'", key)
                return CachedResult(value=cached, is_stale=False, source="cache")

        if resolved.auto_refresh:
            try:
                fresh = await self._fetch(key, fetch_fn)
            except FetchError as exc:
                if resolved.fallback_to_cache:
                    cached = await self.store.get_item(key)
                    if cached is not None:
                        logger.warning("Serving stale cache for '%s' after fetch failure: %s", key, exc)
                        return CachedResult(value=cached, is_stale=True, source="fallback")
                logger.error("Fetch failed for '%s' with no usable cache: %s", key, exc)
                raise
            try:
                await self.store.set_item(key, fresh)
            except StorageError as exc:
                logger.error("Could not persist refreshed '%s': %s", key, exc)
            return CachedResult(value=fresh, is_stale=False, source="network")

        cached = await self.store.get_item(key)
        return CachedResult(value=cached, is_stale=True, source="cache")

    async def get_cached_data(
        self,
        key: str,
        fetch_fn: FetchFn,
        policy: Optional[PolicyOverride] = None,
    ) -> Any | None:
        result = await self.get_cached_result(key, fetch_fn, policy)
        return result.value

    async def refresh_cache(self, key: str, fetch_fn: FetchFn) -> Any:
        """Fetch and persist unconditionally, ignoring staleness."""
        fresh = await self._fetch(key, fetch_fn)
        await self.store.set_item(key, fresh)
        return fresh

    async def preload_cache(self, key: str, value: Any) -> None:
        await self.store.set_item(key, value)

    async def invalidate_cache(self, key: str) -> None:
        if key in self.preserved_keys:
            raise ProtectedKeyError(key)
        await self.store.remove_item(key)

    async def invalidate_all_cache(self) -> None:
        if not self.preserved_keys:
            await self.store.clear()
            return
        for key in await self.store.keys():
            if key not in self.preserved_keys:
                await self.store.remove_item(key)

    async def _known_keys(self) -> list[str]:
        keys = [key for key in WELL_KNOWN_KEYS if key not in self.preserved_keys]
        for key in await self.store.keys():
            if key not in keys and key not in self.preserved_keys:
                keys.append(key)
        return keys

    async def get_cache_stats(self) -> CacheStats:
        stats = CacheStats()
        for key in await self._known_keys():
            if await self.store.is_stale(key, self.policy_for(key).max_age_minutes):
                stats.stale_keys.append(key)
            else:
                stats.fresh_keys.append(key)
        stats.total_keys = len(stats.stale_keys) + len(stats.fresh_keys)
        return stats

    async def cleanup_cache(self) -> list[str]:
        """Evict entries older than the cleanup threshold; returns the removed keys."""
        removed: list[str] = []
        for key in await self.store.keys():
            if key in self.preserved_keys:
                continue
            # Unreadable entries count as stale and are evicted too.
            if await self.store.is_stale(key, self.cleanup_max_age_minutes):
                await self.store.remove_item(key)
                removed.append(key)
                logger.info("Cleaned up stale cache entry: %s", key)
        return removed
