"""Cache envelope and policy models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Generic, Literal, Optional, TypeVar

T = TypeVar("T")

CacheSource = Literal["cache", "network", "fallback"]


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    """Persisted envelope: the opaque payload plus the time it was written."""

    payload: T
    written_at: datetime

    def age_minutes(self, now: datetime) -> float:
        return (now - self.written_at).total_seconds() / 60.0


@dataclass(slots=True, frozen=True)
class CachePolicy:
    max_age_minutes: int = 60
    auto_refresh: bool = True
    fallback_to_cache: bool = True

    def merged(self, overrides: Optional[dict[str, Any]] = None) -> "CachePolicy":
        """Return a copy with the non-None overrides applied."""
        if not overrides:
            return self
        unknown = set(overrides) - {"max_age_minutes", "auto_refresh", "fallback_to_cache"}
        if unknown:
            raise ValueError(f"Unknown cache policy fields: {sorted(unknown)}")
        return replace(self, **{name: value for name, value in overrides.items() if value is not None})


@dataclass(slots=True)
class CachedResult(Generic[T]):
    """Value returned by the cache manager, with how it was obtained.

    ``is_stale`` is True whenever the value came from storage past its policy
    age, so callers can show that data may be outdated.
    """

    value: Optional[T]
    is_stale: bool
    source: CacheSource


@dataclass(slots=True)
class CacheStats:
    total_keys: int = 0
    stale_keys: list[str] = field(default_factory=list)
    fresh_keys: list[str] = field(default_factory=list)
