import asyncio

import pytest

from ecopickup.exceptions import StorageError, SyncError
from ecopickup.persistence.cache_store import MemoryCacheStore
from ecopickup.services.sync.engine import SyncEngine
from ecopickup.services.sync.queue import OfflineActionQueue

pytestmark = pytest.mark.anyio


class FakeBackend:
    def __init__(self, failures: dict[str, int] | None = None) -> None:
        self.failures = dict(failures or {})
        self.received: list[str] = []

    async def push(self, action) -> None:
        job_id = action.payload["job_id"]
        if self.failures.get(job_id, 0) > 0:
            self.failures[job_id] -= 1
            raise ConnectionError(f"cannot reach backend for {job_id}")
        self.received.append(job_id)


def _engine(queue, backend, sleeps, max_attempts=3) -> SyncEngine:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return SyncEngine(
        queue,
        backend.push,
        max_attempts=max_attempts,
        backoff_seconds=1.0,
        max_backoff_seconds=10.0,
        sleep=fake_sleep,
    )


async def _queue_with(*job_ids: str) -> OfflineActionQueue:
    queue = OfflineActionQueue(MemoryCacheStore())
    for job_id in job_ids:
        await queue.enqueue("status_change", {"job_id": job_id})
    return queue


async def test_replay_delivers_in_fifo_order_and_empties_queue():
    queue = await _queue_with("J1", "J2", "J3")
    backend = FakeBackend()
    engine = _engine(queue, backend, [])
    engine.online = True

    report = await engine.replay()

    assert backend.received == ["J1", "J2", "J3"]
    assert len(report.synced_ids) == 3
    assert await queue.list() == []
    status = await engine.status()
    assert status.state == "idle"
    assert status.last_synced_at is not None


async def test_transient_failure_is_retried_with_backoff():
    queue = await _queue_with("J1", "J2")
    backend = FakeBackend(failures={"J1": 2})
    sleeps: list[float] = []
    engine = _engine(queue, backend, sleeps)
    engine.online = True

    report = await engine.replay()

    assert report.error is None
    assert backend.received == ["J1", "J2"]
    assert sleeps == [1.0, 2.0]


async def test_persistent_failure_halts_replay_and_is_surfaced():
    queue = await _queue_with("J1", "J2")
    backend = FakeBackend(failures={"J1": 10})
    sleeps: list[float] = []
    engine = _engine(queue, backend, sleeps, max_attempts=3)
    engine.online = True

    report = await engine.replay()

    assert isinstance(report.error, SyncError)
    assert report.error.attempts == 3
    assert backend.received == []
    status = await engine.status()
    assert status.state == "error"
    assert status.pending == 2
    assert len(status.failed_actions) == 1
    assert status.failed_actions[0].attempts == 3
    assert "cannot reach backend" in status.failed_actions[0].last_error


async def test_backoff_is_capped():
    queue = await _queue_with("J1")
    sleeps: list[float] = []
    engine = _engine(queue, FakeBackend(failures={"J1": 10}), sleeps, max_attempts=6)
    engine.online = True

    await engine.replay()

    assert sleeps == [1.0, 2.0, 4.0, 8.0, 10.0]


async def test_going_online_schedules_replay():
    queue = await _queue_with("J1")
    backend = FakeBackend()
    engine = _engine(queue, backend, [])

    assert engine.on_connectivity_changed(False) is None
    task = engine.on_connectivity_changed(True)
    assert task is not None

    report = await task
    assert report.synced_ids
    assert backend.received == ["J1"]


async def test_replay_while_offline_is_interrupted():
    queue = await _queue_with("J1")
    backend = FakeBackend()
    engine = _engine(queue, backend, [])

    report = await engine.replay()

    assert report.interrupted is True
    assert backend.received == []
    assert await queue.pending_count() == 1


class FlakyStore(MemoryCacheStore):
    """Memory store whose writes can be switched off to simulate a full or read-only disk."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    async def _write_raw(self, key: str, raw: str) -> None:
        if self.fail_writes:
            raise StorageError(key, "disk full")
        await super()._write_raw(key, raw)


async def test_storage_failure_during_replay_leaves_error_state():
    store = FlakyStore()
    queue = OfflineActionQueue(store)
    await queue.enqueue("status_change", {"job_id": "J1"})
    backend = FakeBackend()
    engine = _engine(queue, backend, [])
    engine.online = True
    store.fail_writes = True

    with pytest.raises(StorageError):
        await engine.replay()

    status = await engine.status()
    assert backend.received == ["J1"]
    assert status.state == "error"
    assert "disk full" in status.last_error
    assert status.pending == 1


async def test_background_replay_failure_is_logged(caplog):
    store = FlakyStore()
    queue = OfflineActionQueue(store)
    await queue.enqueue("status_change", {"job_id": "J1"})
    engine = _engine(queue, FakeBackend(), [])
    store.fail_writes = True

    task = engine.on_connectivity_changed(True)
    with pytest.raises(StorageError):
        await task
    await asyncio.sleep(0)

    assert engine.state == "error"
    assert "Background offline replay failed" in caplog.text


async def test_cancelled_replay_is_not_left_syncing():
    queue = await _queue_with("J1")
    started = asyncio.Event()

    async def hanging_push(action) -> None:
        started.set()
        await asyncio.Event().wait()

    engine = SyncEngine(queue, hanging_push, max_attempts=1, backoff_seconds=0)
    engine.online = True
    task = asyncio.create_task(engine.replay())
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    status = await engine.status()
    assert status.state == "error"
    assert status.last_error == "replay was cancelled"
    assert status.pending == 1
