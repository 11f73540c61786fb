"""Route group exports."""

from . import cache, data, health, routes, sync

__all__ = ["cache", "data", "health", "routes", "sync"]
