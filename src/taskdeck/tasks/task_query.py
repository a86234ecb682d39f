# src/taskdeck/tasks/task_query.py

from __future__ import annotations

"""
Derived views over the task list.

Pure functions: they never mutate tasks and never touch storage.
"Bucket date" of a task is its due date, or its creation day when no due date is set.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum

from .task_models import Priority, Task, TaskStatus

WEEKDAY_SHORT = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class CompletionWindow(StrEnum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


@dataclass(slots=True, frozen=True)
class BucketProgress:
    completed: int
    total: int
    percent: int


@dataclass(slots=True, frozen=True)
class DayBucket:
    label: str
    day: date
    completed: int
    total: int


@dataclass(slots=True, frozen=True)
class DashboardSummary:
    total: int
    pending: int
    completed: int
    streak: int


def filter_tasks(
    tasks: Iterable[Task],
    *,
    priority: Priority | str | None = None,
    status: TaskStatus | str | None = None,
    search: str | None = None,
) -> list[Task]:
    """
    Task list filters.

    Empty/None filters pass everything. Search is a case-insensitive
    substring match on title OR description.
    """
    out = list(tasks)
    if priority:
        out = [t for t in out if t.priority == priority]
    if status:
        out = [t for t in out if t.status == status]
    term = (search or "").lower()
    if term:
        out = [t for t in out if term in t.title.lower() or term in t.description.lower()]
    return out


def bucket_date(task: Task) -> date:
    return task.due_date if task.due_date is not None else task.created_at.date()


def tasks_for_day(tasks: Iterable[Task], day: date) -> list[Task]:
    return [t for t in tasks if bucket_date(t) == day]


def week_start(day: date | datetime) -> date:
    """Monday of the week containing `day` (Sunday maps to the Monday six days earlier)."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def tasks_for_week(tasks: Iterable[Task], start: date) -> list[Task]:
    end = start + timedelta(days=6)
    return [t for t in tasks if start <= bucket_date(t) <= end]


def weekly_breakdown(tasks: Sequence[Task], start: date) -> list[DayBucket]:
    """Per-day completed/total counts for the 7 days starting at `start` (chart data)."""
    buckets: list[DayBucket] = []
    for offset in range(7):
        day = start + timedelta(days=offset)
        day_tasks = tasks_for_day(tasks, day)
        buckets.append(
            DayBucket(
                label=WEEKDAY_SHORT[day.weekday()],
                day=day,
                completed=sum(1 for t in day_tasks if t.is_completed),
                total=len(day_tasks),
            )
        )
    return buckets


def completed_tasks(
    tasks: Iterable[Task],
    window: CompletionWindow | str | None = None,
    *,
    now: datetime,
) -> list[Task]:
    done = [t for t in tasks if t.is_completed]
    window = CompletionWindow(window) if window else CompletionWindow.ALL

    if window is CompletionWindow.TODAY:
        today = now.date()
        return [t for t in done if t.completed_date == today]

    if window is CompletionWindow.WEEK:
        since = datetime.combine(week_start(now), time.min)
        return [t for t in done if t.completed_at is not None and t.completed_at >= since]

    if window is CompletionWindow.MONTH:
        since = datetime.combine(now.date().replace(day=1), time.min)
        return [t for t in done if t.completed_at is not None and t.completed_at >= since]

    return done


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, halves up (positive operands)."""
    return (2 * numerator + denominator) // (2 * denominator)


def progress_percent(completed: int, total: int) -> int:
    """round(100 * completed / total); 0 for an empty bucket."""
    if total <= 0:
        return 0
    return round_half_up(100 * completed, total)


def bucket_progress(tasks: Sequence[Task]) -> BucketProgress:
    completed = sum(1 for t in tasks if t.is_completed)
    total = len(tasks)
    return BucketProgress(completed=completed, total=total, percent=progress_percent(completed, total))


def recent_tasks(tasks: Iterable[Task], limit: int = 5) -> list[Task]:
    """Open tasks, newest first (dashboard list)."""
    open_tasks = [t for t in tasks if not t.is_completed]
    open_tasks.sort(key=lambda t: t.created_at, reverse=True)
    return open_tasks[: max(0, int(limit))]


def dashboard_summary(tasks: Sequence[Task], *, today: date, lookback_days: int = 30) -> DashboardSummary:
    from .analytics import calculate_streak  # local import to avoid cycle

    completed = sum(1 for t in tasks if t.is_completed)
    return DashboardSummary(
        total=len(tasks),
        pending=len(tasks) - completed,
        completed=completed,
        streak=calculate_streak(tasks, today=today, lookback_days=lookback_days),
    )
