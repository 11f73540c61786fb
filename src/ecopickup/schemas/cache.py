"""Cache diagnostics and cached-data schemas."""

from __future__ import annotations

from typing import Any, List, Literal

from pydantic import BaseModel


class CacheStatsResponse(BaseModel):
    total_keys: int
    stale_keys: List[str]
    fresh_keys: List[str]


class CacheCleanupResponse(BaseModel):
    removed_keys: List[str]


class CachedDataResponse(BaseModel):
    key: str
    data: Any = None
    is_stale: bool
    source: Literal["cache", "network", "fallback"]
