# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import date, datetime, time
from typing import Any

from ..core.ports import KeyValueStorage
from .task_models import (
    DEFAULT_CATEGORY,
    DEFAULT_TIMER_SECONDS,
    UNSET,
    AppPreferences,
    Priority,
    Task,
    TaskPatch,
    TaskStatus,
    Theme,
)

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
SETTINGS_KEY = "app_settings"

Clock = Callable[[], datetime]


def _coerce_priority(value: Priority | str | None) -> Priority:
    if value is None:
        return Priority.MEDIUM
    if isinstance(value, Priority):
        return value
    try:
        return Priority.from_raw(value)
    except ValueError:
        raise ValueError(f"invalid priority: {value!r}") from None


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")
    return title


class TaskStore:
    """
    In-memory task collection persisted to local key-value storage.

    - records keep insertion order
    - every mutation rewrites the whole collection (no partial writes)
    - unknown ids are a no-op signalled by None/False, never an exception

    Not thread-safe by itself; callers share one store under AppState.lock.
    """

    def __init__(self, storage: KeyValueStorage, *, clock: Clock = datetime.now) -> None:
        self._storage = storage
        self._clock = clock
        self._tasks: list[Task] = []
        self._by_id: dict[str, Task] = {}
        self.load()
        logger.info("TaskStore ready total=%s", len(self._tasks))

    # ---- persistence ----

    def load(self) -> None:
        """Replace in-memory state with what storage holds (missing/malformed -> empty)."""
        self._tasks = []
        self._by_id = {}

        raw = self._storage.get_item(TASKS_KEY)
        if not raw:
            return

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored task collection is not valid JSON; starting empty.")
            return

        if not isinstance(data, list):
            logger.warning("Stored task collection is not a list; starting empty.")
            return

        skipped = 0
        for item in data:
            if not isinstance(item, dict):
                skipped += 1
                continue
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError):
                skipped += 1
                continue
            if task.id in self._by_id:
                skipped += 1
                continue
            self._tasks.append(task)
            self._by_id[task.id] = task

        if skipped:
            logger.warning("Skipped %d malformed task record(s) while loading.", skipped)

    def serialize(self) -> str:
        return json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False)

    def _persist(self, rollback: Callable[[], None]) -> None:
        """Write the collection; on failure undo the in-memory change, then re-raise."""
        try:
            self._storage.set_item(TASKS_KEY, self.serialize())
        except Exception:
            rollback()
            logger.exception("Failed to persist task collection (total=%d)", len(self._tasks))
            raise

    # ---- ids ----

    def _new_id(self, now: datetime) -> str:
        candidate = int(now.timestamp() * 1000)
        while str(candidate) in self._by_id:
            candidate += 1
        return str(candidate)

    # ---- public API ----

    def list(self) -> list[Task]:
        return list(self._tasks)

    def count(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        return self._by_id.get(str(task_id))

    def add(
        self,
        title: str,
        *,
        description: str = "",
        priority: Priority | str | None = None,
        category: str | None = None,
        due_date: date | None = None,
        due_time: time | None = None,
    ) -> Task:
        title = _clean_title(title)
        now = self._clock()

        task = Task(
            id=self._new_id(now),
            title=title,
            created_at=now,
            description=(description or "").strip(),
            priority=_coerce_priority(priority),
            category=(category or "").strip() or DEFAULT_CATEGORY,
            status=TaskStatus.PENDING,
            due_date=due_date,
            due_time=due_time,
        )
        self._tasks.append(task)
        self._by_id[task.id] = task

        def undo() -> None:
            self._tasks.remove(task)
            del self._by_id[task.id]

        self._persist(undo)

        logger.debug("Task added id=%s priority=%s category=%s", task.id, task.priority, task.category)
        return task

    def quick_add(self, title: str, priority: Priority | str | None = None) -> Task:
        """Quick-add form: title and priority only."""
        return self.add(title, priority=priority)

    def update(self, task_id: str, patch: TaskPatch) -> Task | None:
        task = self.get(task_id)
        if task is None:
            logger.debug("update: unknown task id=%s", task_id)
            return None

        # Validate everything first so a bad field leaves the record untouched.
        changes: dict[str, Any] = {}
        if patch.title is not UNSET:
            changes["title"] = _clean_title(patch.title)  # type: ignore[arg-type]
        if patch.description is not UNSET:
            changes["description"] = (patch.description or "").strip()  # type: ignore[union-attr]
        if patch.priority is not UNSET:
            if patch.priority is None:
                raise ValueError("priority cannot be cleared")
            changes["priority"] = _coerce_priority(patch.priority)  # type: ignore[arg-type]
        if patch.category is not UNSET:
            category = (patch.category or "").strip()  # type: ignore[union-attr]
            if not category:
                raise ValueError("category cannot be empty")
            changes["category"] = category
        if patch.due_date is not UNSET:
            if patch.due_date is not None and not isinstance(patch.due_date, date):
                raise ValueError(f"invalid due date: {patch.due_date!r}")
            changes["due_date"] = patch.due_date
        if patch.due_time is not UNSET:
            if patch.due_time is not None and not isinstance(patch.due_time, time):
                raise ValueError(f"invalid due time: {patch.due_time!r}")
            changes["due_time"] = patch.due_time

        before = {name: getattr(task, name) for name in changes}
        for name, value in changes.items():
            setattr(task, name, value)

        def undo() -> None:
            for name, value in before.items():
                setattr(task, name, value)

        self._persist(undo)
        logger.debug("Task updated id=%s fields=%s", task.id, sorted(changes))
        return task

    def delete(self, task_id: str) -> bool:
        task = self._by_id.pop(str(task_id), None)
        if task is None:
            logger.debug("delete: unknown task id=%s", task_id)
            return False
        index = self._tasks.index(task)
        del self._tasks[index]

        def undo() -> None:
            self._tasks.insert(index, task)
            self._by_id[task.id] = task

        self._persist(undo)
        logger.debug("Task deleted id=%s", task.id)
        return True

    def toggle_status(self, task_id: str) -> Task | None:
        """
        Advance status along pending -> in-progress -> completed -> pending.

        Completion timestamp/date are set when entering completed and cleared otherwise.
        """
        task = self.get(task_id)
        if task is None:
            logger.debug("toggle_status: unknown task id=%s", task_id)
            return None

        before = (task.status, task.completed_at, task.completed_date)
        new_status = task.status.next()
        if new_status is TaskStatus.COMPLETED:
            now = self._clock()
            task.completed_at = now
            task.completed_date = now.date()
        else:
            task.completed_at = None
            task.completed_date = None
        task.status = new_status

        def undo() -> None:
            task.status, task.completed_at, task.completed_date = before

        self._persist(undo)
        logger.info("Task %s -> %s", task.id, new_status.value)
        return task


class PreferencesStore:
    """Theme and timer duration, persisted as one settings record."""

    def __init__(self, storage: KeyValueStorage, *, default_timer_seconds: int = DEFAULT_TIMER_SECONDS) -> None:
        self._storage = storage
        self._default_timer = int(default_timer_seconds)
        self._prefs = self._load()

    def _load(self) -> AppPreferences:
        raw = self._storage.get_item(SETTINGS_KEY)
        if not raw:
            return AppPreferences(timer_duration=self._default_timer)
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored app settings are not valid JSON; using defaults.")
            return AppPreferences(timer_duration=self._default_timer)
        if not isinstance(data, dict):
            logger.warning("Stored app settings are not an object; using defaults.")
            return AppPreferences(timer_duration=self._default_timer)
        return AppPreferences.from_dict(data, default_timer=self._default_timer)

    def _save(self, prefs: AppPreferences) -> AppPreferences:
        # adopt the new record only once it is on disk
        self._storage.set_item(SETTINGS_KEY, json.dumps(prefs.to_dict()))
        self._prefs = prefs
        return prefs

    def get(self) -> AppPreferences:
        return AppPreferences(theme=self._prefs.theme, timer_duration=self._prefs.timer_duration)

    def set_theme(self, theme: Theme | str) -> Theme:
        prefs = AppPreferences(theme=Theme(theme), timer_duration=self._prefs.timer_duration)
        return self._save(prefs).theme

    def toggle_theme(self) -> Theme:
        new_theme = Theme.LIGHT if self._prefs.theme is Theme.DARK else Theme.DARK
        return self.set_theme(new_theme)

    def set_timer_minutes(self, minutes: int) -> int:
        minutes = int(minutes)
        if minutes < 1:
            raise ValueError("timer duration must be at least one minute")
        prefs = AppPreferences(theme=self._prefs.theme, timer_duration=minutes * 60)
        return self._save(prefs).timer_duration
