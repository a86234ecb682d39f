# tests/test_config.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from taskdeck.config import Settings
from taskdeck.logging_setup import _ConsoleNoiseFilter, setup_logging


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATA_DIR", "STORAGE_DIR", "TIMER_MINUTES", "LOG_LEVEL", "NOTIFICATIONS"):
        monkeypatch.delenv(f"TASKDECK_{name}", raising=False)

    s = Settings.from_env()

    assert s.timer_minutes == 25
    assert s.log_level == "WARNING"
    assert s.storage_dir == s.data_dir / "storage"
    assert s.notifications_enabled is True


def test_settings_from_env_overrides_and_clamps(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKDECK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKDECK_TIMER_MINUTES", "0")
    monkeypatch.setenv("TASKDECK_RECENT_LIMIT", "not-a-number")
    monkeypatch.setenv("TASKDECK_NOTIFICATIONS", "off")

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.storage_dir == tmp_path / "storage"
    assert s.timer_minutes == 1
    assert s.recent_limit == 5
    assert s.notifications_enabled is False


def test_unknown_log_level_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKDECK_LOG_LEVEL", "loud")
    assert Settings.from_env().log_level == "WARNING"

    monkeypatch.setenv("TASKDECK_LOG_LEVEL", "debug")
    assert Settings.from_env().log_level == "DEBUG"


def test_console_filter_keeps_timer_thread_quiet() -> None:
    f = _ConsoleNoiseFilter()

    def rec(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert f.filter(rec("taskdeck.tasks.task_store", logging.INFO))
    assert not f.filter(rec("taskdeck.timer.pomodoro", logging.INFO))
    assert f.filter(rec("taskdeck.timer.pomodoro", logging.WARNING))
    assert not f.filter(rec("asyncio", logging.WARNING))
    assert f.filter(rec("asyncio", logging.ERROR))


def test_setup_logging_is_repeatable(tmp_path: Path) -> None:
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs")
        setup_logging(log_dir=tmp_path / "logs")
        added = [h for h in root.handlers if h not in before]

        assert log_file == tmp_path / "logs" / "taskdeck.log"
        assert len(added) == 2
        assert all(h in root.handlers for h in before)

        logging.getLogger("taskdeck.test").debug("hello file")
        for h in added:
            h.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(level)
        logging.captureWarnings(False)
