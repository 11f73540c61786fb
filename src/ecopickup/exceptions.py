"""
Custom exceptions for the pickup logistics core.
"""

from __future__ import annotations


class EcoPickupError(Exception):
    """Base exception for the application."""


class StorageError(EcoPickupError):
    """Raised when a persisted entry cannot be serialized or written."""

    def __init__(self, key: str | None, message: str = ""):
        self.key = key
        self.message = message
        super().__init__(f"Storage failure for key '{key}': {message}" if key else message)


class FetchError(EcoPickupError):
    """Raised when a caller-supplied fetch function fails."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        self.message = message
        super().__init__(f"Fetch failed for '{key}': {message}")


class OptimizationInputError(EcoPickupError, ValueError):
    """Raised when a route optimization request has a missing or invalid start location."""


class SyncError(EcoPickupError):
    """Raised when a queued offline action cannot be delivered to the backend."""

    def __init__(self, action_id: str, attempts: int, message: str = ""):
        self.action_id = action_id
        self.attempts = attempts
        self.message = message
        super().__init__(f"Action {action_id} failed after {attempts} attempt(s): {message}")


class ProtectedKeyError(EcoPickupError):
    """Raised when a cache operation targets a key the cache manager must not evict."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key '{key}' is protected and cannot be invalidated through the cache")
