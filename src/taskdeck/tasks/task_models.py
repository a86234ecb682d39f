# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import StrEnum
from typing import Any, Final

DEFAULT_CATEGORY: Final = "other"
DEFAULT_TIMER_SECONDS: Final = 25 * 60


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Status only moves along the toggle cycle:
    pending -> in-progress -> completed -> pending.
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    def next(self) -> TaskStatus:
        if self is TaskStatus.COMPLETED:
            return TaskStatus.PENDING
        if self is TaskStatus.PENDING:
            return TaskStatus.IN_PROGRESS
        return TaskStatus.COMPLETED

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        return cls(raw)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        return cls(raw.strip().lower())


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class _Unset:
    """Marker for patch fields that should be left untouched."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


@dataclass(slots=True)
class Task:
    id: str
    title: str
    created_at: datetime

    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = DEFAULT_CATEGORY
    status: TaskStatus = TaskStatus.PENDING

    due_date: date | None = None
    due_time: time | None = None

    completed_at: datetime | None = None
    completed_date: date | None = None

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "category": self.category,
            "status": self.status.value,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "due_time": self.due_time.isoformat() if self.due_time else None,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "completed_date": self.completed_date.isoformat() if self.completed_date else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """
        Build a Task from its stored form.

        Raises KeyError/ValueError/TypeError on malformed records; the store
        decides what to do with those.
        """
        title = str(raw["title"]).strip()
        if not title:
            raise ValueError("title is required")

        status = TaskStatus.from_raw(raw.get("status"))
        completed_at = _opt_datetime(raw.get("completed_at"))
        completed_date = _opt_date(raw.get("completed_date"))

        if status is TaskStatus.COMPLETED:
            # Older records may carry only one of the two completion fields.
            if completed_at is None and completed_date is not None:
                completed_at = datetime.combine(completed_date, time.min)
            if completed_at is None:
                raise ValueError("completed task without completion timestamp")
            if completed_date is None:
                completed_date = completed_at.date()
        else:
            completed_at = None
            completed_date = None

        return cls(
            id=str(raw["id"]),
            title=title,
            created_at=datetime.fromisoformat(str(raw["created_at"])),
            description=str(raw.get("description") or ""),
            priority=Priority.from_raw(raw.get("priority")),
            category=str(raw.get("category") or DEFAULT_CATEGORY),
            status=status,
            due_date=_opt_date(raw.get("due_date")),
            due_time=_opt_time(raw.get("due_time")),
            completed_at=completed_at,
            completed_date=completed_date,
        )


@dataclass(slots=True, frozen=True)
class TaskPatch:
    """
    Explicit set of editable fields.

    Fields left as UNSET are not touched. For the optional fields
    (description, due_date, due_time) None clears the value.
    Status is not patchable: it only changes through the toggle cycle.
    """

    title: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    priority: Priority | str | _Unset = UNSET
    category: str | _Unset = UNSET
    due_date: date | None | _Unset = UNSET
    due_time: time | None | _Unset = UNSET

    def is_empty(self) -> bool:
        return all(
            v is UNSET
            for v in (
                self.title,
                self.description,
                self.priority,
                self.category,
                self.due_date,
                self.due_time,
            )
        )


@dataclass(slots=True)
class AppPreferences:
    theme: Theme = Theme.LIGHT
    timer_duration: int = DEFAULT_TIMER_SECONDS

    def to_dict(self) -> dict[str, Any]:
        return {"theme": self.theme.value, "timer_duration": int(self.timer_duration)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any], *, default_timer: int = DEFAULT_TIMER_SECONDS) -> AppPreferences:
        try:
            theme = Theme(str(raw.get("theme") or Theme.LIGHT.value))
        except ValueError:
            theme = Theme.LIGHT
        try:
            duration = int(raw.get("timer_duration") or default_timer)
        except (TypeError, ValueError):
            duration = default_timer
        if duration <= 0:
            duration = default_timer
        return cls(theme=theme, timer_duration=duration)


def _opt_date(raw: Any) -> date | None:
    if raw in (None, ""):
        return None
    return date.fromisoformat(str(raw)[:10])


def _opt_time(raw: Any) -> time | None:
    if raw in (None, ""):
        return None
    return time.fromisoformat(str(raw))


def _opt_datetime(raw: Any) -> datetime | None:
    if raw in (None, ""):
        return None
    return datetime.fromisoformat(str(raw))
