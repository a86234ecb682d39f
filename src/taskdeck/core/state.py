# src/taskdeck/core/state.py

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..tasks.task_store import PreferencesStore, TaskStore
from ..timer.pomodoro import PomodoroTimer, TimerRunner


@dataclass
class AppState:
    """
    Everything a connector needs, passed explicitly (no module-level singletons).

    lock guards store/timer mutations: the console runs in the main thread,
    the timer countdown runs in its own thread.
    """

    # Settings are kept on the state for easy access in other modules.
    settings: Any

    store: TaskStore
    preferences: PreferencesStore
    timer: PomodoroTimer
    timer_runner: TimerRunner | None = None

    clock: Callable[[], datetime] = datetime.now
    lock: threading.RLock = field(default_factory=threading.RLock)

    def now(self) -> datetime:
        return self.clock()
