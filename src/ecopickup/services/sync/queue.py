"""Persisted FIFO of mutations recorded while the device was offline."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from ...models.domain import QueuedAction
from ...persistence.cache_store import PersistentCache
from ...persistence.storage_keys import StorageKey

logger = logging.getLogger(__name__)


class OfflineActionQueue:
    """Ordered backlog stored as one list under a single storage key.

    Every mutation is a read-modify-write of the whole list, serialized by a
    lock so concurrent enqueues from the same process cannot drop entries.
    """

    def __init__(self, store: PersistentCache, key: str = StorageKey.OFFLINE_QUEUE) -> None:
        self.store = store
        self.key = key
        self._lock = asyncio.Lock()

    async def _load(self) -> list[QueuedAction]:
        raw = await self.store.get_item(self.key)
        if not isinstance(raw, list):
            return []
        actions: list[QueuedAction] = []
        for item in raw:
            try:
                actions.append(QueuedAction.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping malformed queued action %r: %s", item, exc)
        return actions

    async def _save(self, actions: list[QueuedAction]) -> None:
        await self.store.set_item(self.key, [action.to_dict() for action in actions])

    async def list(self) -> list[QueuedAction]:
        return await self._load()

    async def enqueue(self, action: QueuedAction | str, payload: Any = None) -> QueuedAction:
        """Append an action; accepts a prebuilt QueuedAction or a kind tag plus payload."""
        if not isinstance(action, QueuedAction):
            action = QueuedAction(id=str(uuid.uuid4()), kind=action, payload=payload)
        async with self._lock:
            actions = await self._load()
            actions.append(action)
            await self._save(actions)
        logger.info("Queued offline action %s (%s); %d pending", action.id, action.kind, len(actions))
        return action

    async def remove_by_id(self, action_id: str) -> bool:
        async with self._lock:
            actions = await self._load()
            remaining = [action for action in actions if action.id != action_id]
            if len(remaining) == len(actions):
                return False
            await self._save(remaining)
        return True

    async def mark_failed(self, action_id: str, error: str) -> QueuedAction | None:
        async with self._lock:
            actions = await self._load()
            for action in actions:
                if action.id == action_id:
                    action.attempts += 1
                    action.last_error = error
                    await self._save(actions)
                    return action
        return None

    async def clear(self) -> None:
        async with self._lock:
            await self.store.remove_item(self.key)

    async def pending_count(self) -> int:
        return len(await self._load())
