"""Route ordering and offline-first data core for the pickup driver and customer apps."""

__version__ = "0.1.0"
