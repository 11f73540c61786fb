"""Replays the offline action queue against the backend when connectivity returns.

Actions are delivered strictly in insertion order. A failing action is retried
with exponential backoff; once it exhausts its attempts the pass stops so that
later actions never overtake it, and the failure is surfaced through
:meth:`SyncEngine.status`. Conflicts are resolved by the backend (last write wins).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Literal, Optional

from ...config import settings
from ...exceptions import SyncError
from ...models.domain import QueuedAction
from .queue import OfflineActionQueue

logger = logging.getLogger(__name__)

PushFn = Callable[[QueuedAction], Awaitable[Any]]
SyncState = Literal["idle", "syncing", "error"]


@dataclass(slots=True)
class ReplayReport:
    synced_ids: list[str] = field(default_factory=list)
    error: Optional[SyncError] = None
    interrupted: bool = False


@dataclass(slots=True)
class SyncStatus:
    state: SyncState
    online: bool
    pending: int
    failed_actions: list[QueuedAction]
    last_synced_at: Optional[datetime]
    last_error: Optional[str]


def _log_replay_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.warning("Background offline replay was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background offline replay failed: %s", exc)


class SyncEngine:
    def __init__(
        self,
        queue: OfflineActionQueue,
        push_fn: PushFn,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        max_backoff_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.queue = queue
        self.push_fn = push_fn
        self.max_attempts = max_attempts if max_attempts is not None else settings.sync_max_attempts
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.sync_backoff_seconds
        self.max_backoff_seconds = (
            max_backoff_seconds if max_backoff_seconds is not None else settings.sync_max_backoff_seconds
        )
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self.online = False
        self.state: SyncState = "idle"
        self.last_synced_at: datetime | None = None
        self.last_error: str | None = None

    def _backoff(self, attempt: int) -> float:
        return min(self.backoff_seconds * (2 ** (attempt - 1)), self.max_backoff_seconds)

    async def _deliver(self, action: QueuedAction) -> SyncError | None:
        attempt = 0
        while True:
            try:
                await self.push_fn(action)
                return None
            except Exception as exc:
                attempt += 1
                message = str(exc) or type(exc).__name__
                await self.queue.mark_failed(action.id, message)
                if attempt >= self.max_attempts:
                    return SyncError(action.id, attempt, message)
                wait_time = self._backoff(attempt)
                logger.warning(
                    "Sync of action %s failed, retrying in %.1fs (attempt %d/%d): %s",
                    action.id,
                    wait_time,
                    attempt,
                    self.max_attempts,
                    message,
                )
                await self._sleep(wait_time)

    async def _replay_pending(self, report: ReplayReport) -> None:
        for action in await self.queue.list():
            if not self.online:
                report.interrupted = True
                break
            error = await self._deliver(action)
            if error is not None:
                report.error = error
                self.state = "error"
                self.last_error = str(error)
                logger.error("Offline replay halted: %s", error)
                return
            await self.queue.remove_by_id(action.id)
            report.synced_ids.append(action.id)

        self.state = "idle"
        self.last_error = None
        if not report.interrupted:
            self.last_synced_at = datetime.now(timezone.utc)

    async def replay(self) -> ReplayReport:
        """Deliver queued actions in FIFO order, removing each one on success."""
        report = ReplayReport()
        async with self._lock:
            self.state = "syncing"
            try:
                await self._replay_pending(report)
            except asyncio.CancelledError:
                self.last_error = "replay was cancelled"
                raise
            except Exception as exc:
                self.last_error = str(exc) or type(exc).__name__
                logger.exception("Offline replay aborted")
                raise
            finally:
                # Anything but a clean pass leaves the engine in a visible error state.
                if self.state == "syncing":
                    self.state = "error"
            if report.error is not None:
                return report
        if report.synced_ids:
            logger.info("Replayed %d offline action(s)", len(report.synced_ids))
        return report

    def on_connectivity_changed(self, online: bool) -> asyncio.Task | None:
        """React to an external connectivity signal; going online schedules a replay."""
        self.online = online
        if not online:
            return None
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.replay())
            self._task.add_done_callback(_log_replay_failure)
        return self._task

    async def status(self) -> SyncStatus:
        actions = await self.queue.list()
        return SyncStatus(
            state=self.state,
            online=self.online,
            pending=len(actions),
            failed_actions=[action for action in actions if action.last_error is not None],
            last_synced_at=self.last_synced_at,
            last_error=self.last_error,
        )
