# src/taskdeck/config.py

"""Settings for taskdeck, read from TASKDECK_* environment variables (+ optional .env).

Every value has a default, so importing this module never fails; malformed
numbers fall back to the default and out-of-range numbers are clamped.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from dotenv import load_dotenv

ENV_PREFIX = "TASKDECK"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

N = TypeVar("N", int, float)

logger = logging.getLogger(__name__)

load_dotenv(override=False)


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _raw(suffix: str) -> str | None:
    """Value of TASKDECK_<suffix>, or None when unset or blank."""
    raw = os.getenv(_k(suffix))
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def _env_str(suffix: str, default: str) -> str:
    return _raw(suffix) or default


def _env_bool(suffix: str, default: bool) -> bool:
    raw = _raw(suffix)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _env_number(suffix: str, default: N, *, minimum: N, cast: Callable[[str], N]) -> N:
    raw = _raw(suffix)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number), using %s", _k(suffix), raw, default)
        return default
    return max(minimum, value)


def _env_path(suffix: str, default: Path) -> Path:
    raw = _raw(suffix)
    return default if raw is None else Path(raw).expanduser()


def _env_log_level(suffix: str, default: str) -> str:
    level = _env_str(suffix, default).upper()
    return level if level in LOG_LEVELS else default


@dataclass(frozen=True, slots=True)
class Settings:
    app_name: str
    # console level; the log file always gets DEBUG
    log_level: str

    # local data (gitignored); storage_dir holds one JSON file per key
    data_dir: Path
    storage_dir: Path

    timer_minutes: int
    timer_tick_seconds: float
    notifications_enabled: bool

    streak_lookback_days: int
    recent_limit: int

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path("DATA_DIR", Path(".local/taskdeck"))
        return Settings(
            app_name=_env_str("APP_NAME", "taskdeck"),
            log_level=_env_log_level("LOG_LEVEL", "WARNING"),
            data_dir=data_dir,
            storage_dir=_env_path("STORAGE_DIR", data_dir / "storage"),
            timer_minutes=_env_number("TIMER_MINUTES", 25, minimum=1, cast=int),
            timer_tick_seconds=_env_number("TIMER_TICK_SECONDS", 1.0, minimum=0.01, cast=float),
            notifications_enabled=_env_bool("NOTIFICATIONS", True),
            streak_lookback_days=_env_number("STREAK_LOOKBACK_DAYS", 30, minimum=1, cast=int),
            recent_limit=_env_number("RECENT_LIMIT", 5, minimum=0, cast=int),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
