# tests/test_local_storage.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskdeck.storage.local_storage import LocalStorage
from taskdeck.tasks.task_store import TASKS_KEY, TaskStore

from .fakes import FakeClock


def test_set_get_remove(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path / "kv")

    assert storage.get_item("tasks") is None
    storage.set_item("tasks", "[1, 2]")
    assert storage.get_item("tasks") == "[1, 2]"
    assert storage.keys() == ["tasks"]
    assert not list((tmp_path / "kv").glob("*.tmp"))

    storage.remove_item("tasks")
    storage.remove_item("tasks")
    assert storage.get_item("tasks") is None


def test_rejects_path_like_keys(tmp_path: Path) -> None:
    storage = LocalStorage(tmp_path)
    for bad in ("", "../escape", "a/b"):
        with pytest.raises(ValueError):
            storage.set_item(bad, "x")


def test_store_survives_restart_on_disk(tmp_path: Path, clock: FakeClock) -> None:
    storage = LocalStorage(tmp_path)
    store = TaskStore(storage, clock=clock)
    a = store.add("persist me", category="home")
    store.toggle_status(a.id)

    reopened = TaskStore(LocalStorage(tmp_path), clock=clock)

    assert reopened.list() == store.list()
    assert (tmp_path / f"{TASKS_KEY}.json").exists()


def test_garbage_file_loads_as_empty(tmp_path: Path, clock: FakeClock) -> None:
    (tmp_path / f"{TASKS_KEY}.json").write_bytes(b"\xff\xfe not json")
    store = TaskStore(LocalStorage(tmp_path), clock=clock)
    assert store.list() == []
