# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state, shutdown_state
from taskdeck.core.state import AppState
from taskdeck.tasks.task_store import TaskStore

from .fakes import FakeClock, MemoryStorage, RecordingNotifier

# Wednesday
START = datetime(2024, 1, 3, 10, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        storage_dir=tmp_path / "data" / "storage",
        timer_minutes=25,
        timer_tick_seconds=0.01,
        notifications_enabled=True,
        streak_lookback_days=30,
        recent_limit=5,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(START)


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(storage: MemoryStorage, clock: FakeClock) -> TaskStore:
    return TaskStore(storage, clock=clock)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def alerts() -> list[str]:
    return []


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, notifier: RecordingNotifier, alerts: list[str]):
    """
    AppState wired through the real bootstrap.

    NOTE: We keep the real LocalStorage (tmp dir) here because the
    file round-trip is part of what we want to test.
    """
    st: AppState = create_initial_state(settings=settings, notifier=notifier, alert=alerts.append, clock=clock)
    yield st
    shutdown_state(st)
