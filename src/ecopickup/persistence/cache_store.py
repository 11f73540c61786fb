"""Durable key-value stores for timestamped cache entries.

Every entry is persisted as a JSON envelope ``{"data": ..., "timestamp": ...}``.
Reads never raise: an unreadable or malformed envelope is logged and treated
as if the key were absent. Writes raise :class:`StorageError`.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from ..config import settings
from ..exceptions import StorageError
from ..models.cache import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def encode_envelope(value: Any, written_at: datetime) -> str:
    return json.dumps({"data": value, "timestamp": written_at.isoformat()}, ensure_ascii=False)


def decode_envelope(raw: str) -> CacheEntry:
    """Parse a stored envelope; raises ValueError on any malformed content."""
    parsed = json.loads(raw)
    if not isinstance(parsed, dict) or "data" not in parsed or "timestamp" not in parsed:
        raise ValueError("envelope missing 'data' or 'timestamp'")
    written_at = datetime.fromisoformat(str(parsed["timestamp"]).replace("Z", "+00:00"))
    if written_at.tzinfo is None:
        written_at = written_at.replace(tzinfo=timezone.utc)
    return CacheEntry(payload=parsed["data"], written_at=written_at)


class PersistentCache(ABC):
    """Contract for the storage medium behind the cache manager."""

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock: Clock = clock or utc_now

    @abstractmethod
    async def _read_raw(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    async def _write_raw(self, key: str, raw: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def keys(self) -> list[str]:
        raise NotImplementedError

    async def set_item(self, key: str, value: Any) -> None:
        try:
            raw = encode_envelope(value, self.clock())
        except (TypeError, ValueError) as exc:
            raise StorageError(key, f"value is not serializable: {exc}") from exc
        await self._write_raw(key, raw)

    async def get_entry(self, key: str) -> CacheEntry | None:
        try:
            raw = await self._read_raw(key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read cache entry '%s': %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return decode_envelope(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding unreadable cache entry '%s': %s", key, exc)
            return None

    async def get_item(self, key: str) -> Any | None:
        entry = await self.get_entry(key)
        return entry.payload if entry is not None else None

    async def is_stale(self, key: str, max_age_minutes: float = 60) -> bool:
        entry = await self.get_entry(key)
        if entry is None or max_age_minutes <= 0:
            return True
        return entry.age_minutes(self.clock()) > max_age_minutes


class FileCacheStore(PersistentCache):
    """One JSON file per key under the cache root, created on first write."""

    suffix = ".json"

    def __init__(self, root: Path | None = None, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self.root = (root or settings.cache_root).resolve()

    def _path_for(self, key: str) -> Path:
        token = base64.urlsafe_b64encode(key.encode("utf-8")).decode("ascii").rstrip("=")
        return self.root / f"{token}{self.suffix}"

    @staticmethod
    def _key_for(path: Path) -> str | None:
        token = path.name[: -len(FileCacheStore.suffix)]
        try:
            return base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return None

    async def _read_raw(self, key: str) -> str | None:
        path = self._path_for(key)

        def _read() -> str | None:
            if not path.exists():
                return None
            with path.open("r", encoding="utf-8") as handle:
                return handle.read()

        return await asyncio.to_thread(_read)

    async def _write_raw(self, key: str, raw: str) -> None:
        path = self._path_for(key)

        def _write() -> None:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_name(path.name + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(raw)
            os.replace(tmp_path, path)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageError(key, str(exc)) from exc

    async def remove_item(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._path_for(key).unlink, missing_ok=True)
        except OSError as exc:
            raise StorageError(key, str(exc)) from exc

    async def clear(self) -> None:
        def _clear() -> None:
            if not self.root.is_dir():
                return
            for path in self.root.glob(f"*{self.suffix}"):
                path.unlink(missing_ok=True)

        try:
            await asyncio.to_thread(_clear)
        except OSError as exc:
            raise StorageError(None, f"failed to clear {self.root}: {exc}") from exc

    async def keys(self) -> list[str]:
        def _list() -> list[Path]:
            if not self.root.is_dir():
                return []
            return sorted(self.root.glob(f"*{self.suffix}"))

        paths = await asyncio.to_thread(_list)
        return [key for key in (self._key_for(path) for path in paths) if key is not None]


class MemoryCacheStore(PersistentCache):
    """In-process store holding serialized envelopes, for tests and ephemeral sessions."""

    def __init__(self, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self._items: dict[str, str] = {}

    async def _read_raw(self, key: str) -> str | None:
        return self._items.get(key)

    async def _write_raw(self, key: str, raw: str) -> None:
        self._items[key] = raw

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def clear(self) -> None:
        self._items.clear()

    async def keys(self) -> list[str]:
        return list(self._items)
