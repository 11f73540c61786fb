"""Cache policy helpers."""

from .manager import DEFAULT_KEY_POLICIES, CacheManager

__all__ = ["CacheManager", "DEFAULT_KEY_POLICIES"]
