# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/store/preferences/timer),
- picks the notification channel for timer completion.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime

from ..config import get_settings
from ..core.ports import Notifier
from ..core.state import AppState
from ..storage.local_storage import LocalStorage
from ..tasks.task_store import PreferencesStore, TaskStore
from ..timer.pomodoro import PomodoroTimer, TimerRunner, notify_timer_complete

logger = logging.getLogger(__name__)


class TerminalNotifier:
    """
    Notification via the terminal bell + a banner line.

    Only "available" when stdout is a TTY; otherwise the caller falls back to an alert.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def notify(self, title: str, body: str) -> bool:
        if not self.enabled or not sys.stdout.isatty():
            return False
        sys.stdout.write(f"\a\n*** {title} {body}\n")
        sys.stdout.flush()
        return True


def console_alert(text: str) -> None:
    print(f"\n[ALERT] {text}", flush=True)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    notifier: Notifier | None = None,
    alert: Callable[[str], None] = console_alert,
    clock: Callable[[], datetime] = datetime.now,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    storage = LocalStorage(settings.storage_dir)
    store = TaskStore(storage, clock=clock)
    preferences = PreferencesStore(storage, default_timer_seconds=int(settings.timer_minutes) * 60)
    timer = PomodoroTimer(duration=preferences.get().timer_duration)

    if notifier is None and getattr(settings, "notifications_enabled", True):
        notifier = TerminalNotifier()

    def on_timer_complete(_timer: PomodoroTimer) -> None:
        notify_timer_complete(notifier, alert)

    state = AppState(
        settings=settings,
        store=store,
        preferences=preferences,
        timer=timer,
        clock=clock,
    )
    state.timer_runner = TimerRunner(
        timer=timer,
        on_complete=on_timer_complete,
        tick_seconds=float(getattr(settings, "timer_tick_seconds", 1.0)),
        lock=state.lock,
    )
    logger.info("State ready storage=%s tasks=%d", settings.storage_dir, store.count())
    return state


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    runner = state.timer_runner
    if runner is None:
        return
    try:
        runner.stop()
    except Exception:
        logger.debug("Timer runner stop failed.", exc_info=True)
