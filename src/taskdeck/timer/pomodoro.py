# src/taskdeck/timer/pomodoro.py

from __future__ import annotations

"""
Pomodoro countdown timer.

- PomodoroTimer: plain state machine (idle / running / paused / completed)
- run_countdown: asyncio loop that ticks a running timer once per tick_seconds
- TimerRunner: hosts the countdown on a background event loop so a blocking console can drive it

The countdown is a cancellable task: pause/reset cancel it, start schedules a new one.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from ..core.ports import Notifier
from ..tasks.task_models import DEFAULT_TIMER_SECONDS

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Timer Completed!"
NOTIFICATION_BODY = "Your Pomodoro session is complete. Take a break!"
ALERT_TEXT = "Timer completed! Take a break!"


class TimerPhase(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(slots=True)
class PomodoroTimer:
    duration: int = DEFAULT_TIMER_SECONDS
    remaining: int = -1
    phase: TimerPhase = TimerPhase.IDLE

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError("timer duration must be positive")
        if self.remaining < 0:
            self.remaining = self.duration

    @property
    def running(self) -> bool:
        return self.phase is TimerPhase.RUNNING

    def start(self) -> bool:
        """idle/paused -> running. Returns False when nothing changed."""
        if self.phase not in (TimerPhase.IDLE, TimerPhase.PAUSED):
            return False
        if self.remaining <= 0:
            self.remaining = self.duration
        self.phase = TimerPhase.RUNNING
        return True

    def pause(self) -> bool:
        if self.phase is not TimerPhase.RUNNING:
            return False
        self.phase = TimerPhase.PAUSED
        return True

    def reset(self, duration: int | None = None) -> None:
        if duration is not None:
            if duration <= 0:
                raise ValueError("timer duration must be positive")
            self.duration = int(duration)
        self.remaining = self.duration
        self.phase = TimerPhase.IDLE

    def set_duration_minutes(self, minutes: int) -> None:
        minutes = int(minutes)
        if minutes < 1:
            raise ValueError("timer duration must be at least one minute")
        self.reset(minutes * 60)

    def tick(self) -> TimerPhase:
        if self.phase is not TimerPhase.RUNNING:
            return self.phase
        if self.remaining > 0:
            self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self.phase = TimerPhase.COMPLETED
        return self.phase

    def display(self) -> str:
        minutes, seconds = divmod(max(0, self.remaining), 60)
        return f"{minutes:02d}:{seconds:02d}"


def notify_timer_complete(notifier: Notifier | None, alert: Callable[[str], None]) -> bool:
    """
    Ask for a system notification; fall back to a blocking alert.

    Returns True when the notification channel accepted the request.
    """
    delivered = False
    if notifier is not None:
        try:
            delivered = bool(notifier.notify(NOTIFICATION_TITLE, NOTIFICATION_BODY))
        except Exception:
            logger.warning("Notifier failed; falling back to alert.", exc_info=True)
            delivered = False

    if not delivered:
        alert(ALERT_TEXT)
    return delivered


async def run_countdown(
        timer: PomodoroTimer,
        on_complete: Callable[[PomodoroTimer], None],
        *,
        tick_seconds: float = 1.0,
        lock: threading.RLock | None = None,
) -> None:
    """
    Tick a running timer until it completes or stops running.

    On completion: on_complete(timer) is called, then the timer resets to idle.
    To stop the countdown, cancel the coroutine/task (no grace period).
    """
    sleep_s = max(0.0, float(tick_seconds))
    guard = lock if lock is not None else contextlib.nullcontext()

    while True:
        await asyncio.sleep(sleep_s)

        with guard:
            if not timer.running:
                return
            phase = timer.tick()

        if phase is TimerPhase.COMPLETED:
            logger.info("Timer completed (duration=%ss)", timer.duration)
            try:
                on_complete(timer)
            except Exception:
                logger.exception("Timer completion handler failed")
            with guard:
                timer.reset()
            return


@dataclass(slots=True)
class TimerRunner:
    """
    Hosts the countdown on a dedicated asyncio loop in a daemon thread.

    The console REPL blocks the main thread on input(), so the one-second tick
    runs elsewhere. start/pause/reset are safe to call from any thread.
    """

    timer: PomodoroTimer
    on_complete: Callable[[PomodoroTimer], None]
    tick_seconds: float = 1.0
    lock: threading.RLock = field(default_factory=threading.RLock)

    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)
    _thread: threading.Thread | None = field(default=None, init=False, repr=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    def start_thread(self) -> None:
        if self._thread is not None:
            return

        ready = threading.Event()
        holder: dict[str, asyncio.AbstractEventLoop] = {}

        def runner() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            holder["loop"] = loop
            ready.set()
            try:
                loop.run_forever()
            finally:
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                with contextlib.suppress(Exception):
                    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
                with contextlib.suppress(Exception):
                    loop.close()

        t = threading.Thread(target=runner, name="taskdeck-timer", daemon=True)
        t.start()
        ready.wait(timeout=5.0)

        loop = holder.get("loop")
        if loop is None:
            raise RuntimeError("Timer thread did not initialize properly.")

        self._loop = loop
        self._thread = t
        logger.debug("Timer background thread started.")

    def _cancel_countdown(self) -> None:
        # Runs on the timer loop.
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _schedule_countdown(self) -> None:
        # Runs on the timer loop.
        self._cancel_countdown()
        self._task = asyncio.get_running_loop().create_task(
            run_countdown(self.timer, self.on_complete, tick_seconds=self.tick_seconds, lock=self.lock)
        )

    def _call(self, fn: Callable[[], None]) -> None:
        if self._loop is None:
            self.start_thread()
        assert self._loop is not None
        self._loop.call_soon_threadsafe(fn)

    def start(self) -> bool:
        with self.lock:
            started = self.timer.start()
        if started:
            self._call(self._schedule_countdown)
        return started

    def pause(self) -> bool:
        with self.lock:
            paused = self.timer.pause()
        if self._loop is not None:
            self._call(self._cancel_countdown)
        return paused

    def reset(self, duration: int | None = None) -> None:
        with self.lock:
            self.timer.reset(duration)
        if self._loop is not None:
            self._call(self._cancel_countdown)

    def stop(self, timeout: float | None = 5.0) -> None:
        loop, thread = self._loop, self._thread
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(self._cancel_countdown)
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=timeout)
        self._loop = None
        self._thread = None
        logger.debug("Timer background thread stopped.")
