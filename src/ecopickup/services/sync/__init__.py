"""Offline action queue and replay."""

from .engine import ReplayReport, SyncEngine, SyncStatus
from .queue import OfflineActionQueue

__all__ = ["OfflineActionQueue", "SyncEngine", "SyncStatus", "ReplayReport"]
