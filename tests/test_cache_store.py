from pathlib import Path

import pytest

from ecopickup.exceptions import StorageError
from ecopickup.persistence.cache_store import FileCacheStore, MemoryCacheStore, PersistentCache

pytestmark = pytest.mark.anyio


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path: Path, clock) -> PersistentCache:
    if request.param == "file":
        return FileCacheStore(root=tmp_path / "cache", clock=clock)
    return MemoryCacheStore(clock=clock)


async def test_round_trip_returns_written_value(store: PersistentCache):
    jobs = [{"id": "J1", "status": "pending"}, {"id": "J2", "status": "completed"}]
    await store.set_item("driver_jobs", jobs)

    assert await store.get_item("driver_jobs") == jobs


async def test_missing_key_is_none_and_stale(store: PersistentCache):
    assert await store.get_item("never_written") is None
    assert await store.is_stale("never_written", 60) is True


async def test_staleness_follows_entry_age(store: PersistentCache, clock):
    await store.set_item("jobs", ["J1"])
    assert await store.is_stale("jobs", 30) is False

    clock.advance(10)
    assert await store.is_stale("jobs", 30) is False

    clock.advance(30)
    assert await store.is_stale("jobs", 30) is True


async def test_zero_max_age_is_always_stale(store: PersistentCache):
    await store.set_item("jobs", ["J1"])
    assert await store.is_stale("jobs", 0) is True


async def test_overwrite_resets_timestamp(store: PersistentCache, clock):
    await store.set_item("jobs", ["J1"])
    clock.advance(45)
    await store.set_item("jobs", ["J1", "J2"])

    entry = await store.get_entry("jobs")
    assert entry is not None
    assert entry.written_at == clock()
    assert entry.payload == ["J1", "J2"]


async def test_unserializable_value_raises_storage_error(store: PersistentCache):
    with pytest.raises(StorageError):
        await store.set_item("jobs", object())


async def test_remove_and_clear(store: PersistentCache):
    await store.set_item("a", 1)
    await store.set_item("b", 2)

    await store.remove_item("a")
    await store.remove_item("a")
    assert await store.get_item("a") is None
    assert await store.keys() == ["b"]

    await store.clear()
    assert await store.keys() == []


async def test_file_store_treats_corrupt_envelope_as_missing(tmp_path: Path, clock):
    store = FileCacheStore(root=tmp_path, clock=clock)
    await store.set_item("driver_routes", [{"id": "R1"}])
    store._path_for("driver_routes").write_text("{not json", encoding="utf-8")

    assert await store.get_item("driver_routes") is None
    assert await store.is_stale("driver_routes", 60) is True


async def test_file_store_writes_original_envelope_shape(tmp_path: Path, clock):
    store = FileCacheStore(root=tmp_path, clock=clock)
    await store.set_item("user_profile", {"name": "Sam"})

    raw = store._path_for("user_profile").read_text(encoding="utf-8")
    assert raw == '{"data": {"name": "Sam"}, "timestamp": "2024-05-01T08:00:00+00:00"}'


async def test_file_store_keys_survive_unusual_characters(tmp_path: Path, clock):
    store = FileCacheStore(root=tmp_path, clock=clock)
    await store.set_item("jobs/driver 7?", [1])

    assert await store.keys() == ["jobs/driver 7?"]
    reopened = FileCacheStore(root=tmp_path, clock=clock)
    assert await reopened.get_item("jobs/driver 7?") == [1]


async def test_memory_store_treats_missing_envelope_fields_as_missing(clock):
    store = MemoryCacheStore(clock=clock)
    store._items["jobs"] = '{"payload": [1, 2]}'

    assert await store.get_item("jobs") is None


async def test_file_store_creates_root_on_first_write(tmp_path: Path, clock):
    root = tmp_path / "data" / "cache"
    store = FileCacheStore(root=root, clock=clock)

    assert not root.exists()
    assert await store.keys() == []
    await store.clear()
    assert not root.exists()

    await store.set_item("driver_jobs", [])
    assert root.is_dir()
