# tests/test_timer.py

from __future__ import annotations

import asyncio
import threading

import pytest

from taskdeck.timer.pomodoro import (
    ALERT_TEXT,
    NOTIFICATION_BODY,
    NOTIFICATION_TITLE,
    PomodoroTimer,
    TimerPhase,
    TimerRunner,
    notify_timer_complete,
    run_countdown,
)

from .fakes import RecordingNotifier


def test_state_machine_transitions() -> None:
    timer = PomodoroTimer(duration=3)
    assert timer.phase is TimerPhase.IDLE
    assert timer.remaining == 3
    assert timer.tick() is TimerPhase.IDLE  # idle timers do not count down
    assert timer.remaining == 3

    assert timer.start() is True
    assert timer.start() is False
    assert timer.tick() is TimerPhase.RUNNING
    assert timer.remaining == 2

    assert timer.pause() is True
    assert timer.pause() is False
    timer.tick()
    assert timer.remaining == 2

    assert timer.start() is True
    timer.tick()
    assert timer.tick() is TimerPhase.COMPLETED
    assert timer.remaining == 0
    assert timer.start() is False

    timer.reset()
    assert (timer.phase, timer.remaining) == (TimerPhase.IDLE, 3)


def test_reset_from_any_state_restores_duration() -> None:
    timer = PomodoroTimer(duration=60)
    timer.start()
    timer.tick()
    timer.reset()
    assert (timer.phase, timer.remaining) == (TimerPhase.IDLE, 60)

    timer.set_duration_minutes(5)
    assert (timer.duration, timer.remaining) == (300, 300)

    with pytest.raises(ValueError):
        timer.set_duration_minutes(0)
    with pytest.raises(ValueError):
        PomodoroTimer(duration=0)


def test_display() -> None:
    assert PomodoroTimer(duration=25 * 60).display() == "25:00"
    assert PomodoroTimer(duration=65).display() == "01:05"


def test_notification_and_alert_fallback() -> None:
    alerts: list[str] = []

    ok = RecordingNotifier()
    assert notify_timer_complete(ok, alerts.append) is True
    assert ok.sent == [(NOTIFICATION_TITLE, NOTIFICATION_BODY)]
    assert alerts == []

    assert notify_timer_complete(RecordingNotifier(available=False), alerts.append) is False
    assert notify_timer_complete(None, alerts.append) is False
    assert alerts == [ALERT_TEXT, ALERT_TEXT]


def test_notifier_errors_fall_back_to_alert() -> None:
    class Broken:
        def notify(self, title: str, body: str) -> bool:
            raise RuntimeError("no display")

    alerts: list[str] = []
    assert notify_timer_complete(Broken(), alerts.append) is False
    assert alerts == [ALERT_TEXT]


@pytest.mark.asyncio
async def test_countdown_completes_notifies_and_resets() -> None:
    timer = PomodoroTimer(duration=3)
    completed: list[int] = []
    timer.start()

    await asyncio.wait_for(
        run_countdown(timer, lambda t: completed.append(t.remaining), tick_seconds=0.001),
        timeout=2.0,
    )

    assert completed == [0]
    assert timer.phase is TimerPhase.IDLE
    assert timer.remaining == 3


@pytest.mark.asyncio
async def test_countdown_exits_when_timer_is_not_running() -> None:
    timer = PomodoroTimer(duration=100)
    completed: list[int] = []

    await asyncio.wait_for(run_countdown(timer, lambda t: completed.append(1), tick_seconds=0.001), timeout=2.0)

    assert completed == []
    assert timer.remaining == 100


@pytest.mark.asyncio
async def test_countdown_cancellation_stops_ticking() -> None:
    timer = PomodoroTimer(duration=10_000)
    timer.start()

    runner = asyncio.create_task(run_countdown(timer, lambda t: None, tick_seconds=0.001))
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    frozen = timer.remaining
    assert frozen < 10_000
    await asyncio.sleep(0.02)
    assert timer.remaining == frozen


def test_runner_counts_down_in_background_thread() -> None:
    done = threading.Event()
    timer = PomodoroTimer(duration=5)
    runner = TimerRunner(timer=timer, on_complete=lambda t: done.set(), tick_seconds=0.005)

    try:
        assert runner.start() is True
        assert done.wait(timeout=5.0)
    finally:
        runner.stop()

    assert timer.phase is TimerPhase.IDLE
    assert timer.remaining == 5


def test_runner_pause_and_reset() -> None:
    fired = threading.Event()
    timer = PomodoroTimer(duration=10_000)
    runner = TimerRunner(timer=timer, on_complete=lambda t: fired.set(), tick_seconds=0.001)

    try:
        runner.start()
        assert runner.pause() is True
        paused_at = timer.remaining
        assert timer.phase is TimerPhase.PAUSED
        assert not fired.wait(timeout=0.05)
        assert timer.remaining == paused_at

        runner.reset(60)
        assert (timer.phase, timer.remaining, timer.duration) == (TimerPhase.IDLE, 60, 60)
    finally:
        runner.stop()
