# src/taskdeck/tasks/analytics.py

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from .task_models import Task
from .task_query import progress_percent, round_half_up

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

STREAK_LOOKBACK_DAYS = 30


@dataclass(slots=True, frozen=True)
class Achievement:
    name: str
    description: str

    def __str__(self) -> str:
        return f"{self.name} - {self.description}"


@dataclass(slots=True, frozen=True)
class CategoryShare:
    category: str
    count: int
    fraction: float


# (threshold, name, description); completion thresholds count completed tasks,
# streak thresholds count consecutive days.
COMPLETION_ACHIEVEMENTS = (
    (10, "Task Master", "Completed 10 tasks"),
    (50, "Productivity Pro", "Completed 50 tasks"),
    (100, "Goal Crusher", "Completed 100 tasks"),
)
STREAK_ACHIEVEMENTS = (
    (3, "Consistency King", "3 day streak"),
    (7, "Week Warrior", "7 day streak"),
    (30, "Monthly Master", "30 day streak"),
)


def _completed(tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.is_completed]


def calculate_streak(
    tasks: Iterable[Task],
    *,
    today: date,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> int:
    """
    Consecutive days, ending today, with at least one completed task.

    Stops at the first day without a completion; never looks further back than lookback_days.
    """
    days = {t.completed_date for t in _completed(tasks) if t.completed_date is not None}
    if not days:
        return 0

    streak = 0
    current = today
    for _ in range(max(0, int(lookback_days))):
        if current not in days:
            break
        streak += 1
        current -= timedelta(days=1)
    return streak


def most_productive_day(tasks: Iterable[Task]) -> str | None:
    counts: dict[str, int] = {}
    for t in _completed(tasks):
        if t.completed_at is None:
            continue
        name = WEEKDAY_NAMES[t.completed_at.weekday()]
        counts[name] = counts.get(name, 0) + 1

    if not counts:
        return None
    # max() keeps the first of equal counts, i.e. the first weekday encountered.
    return max(counts.items(), key=lambda kv: kv[1])[0]


def average_tasks_per_day(tasks: Sequence[Task]) -> int:
    """
    Completed tasks divided by the days spanned between the first and last
    completed task in list order (not chronological min/max).
    """
    stamps = [t.completed_at for t in _completed(tasks) if t.completed_at is not None]
    if not stamps:
        return 0

    span = (stamps[-1] - stamps[0]).total_seconds() / 86400.0
    days = max(1, math.ceil(span) + 1)
    return round_half_up(len(stamps), days)


def completion_rate(tasks: Sequence[Task]) -> int:
    return progress_percent(len(_completed(tasks)), len(tasks))


def category_distribution(tasks: Iterable[Task]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for t in tasks:
        counts[t.category] = counts.get(t.category, 0) + 1
    return counts


def category_shares(tasks: Iterable[Task]) -> list[CategoryShare]:
    counts = category_distribution(tasks)
    total = sum(counts.values())
    if total == 0:
        return []
    return [CategoryShare(category=c, count=n, fraction=n / total) for c, n in counts.items()]


def productivity_trend(tasks: Sequence[Task], *, today: date, days: int = 7) -> list[int]:
    """Completed tasks per day over the last `days` days, oldest first."""
    per_day: dict[date, int] = {}
    for t in _completed(tasks):
        if t.completed_date is not None:
            per_day[t.completed_date] = per_day.get(t.completed_date, 0) + 1
    return [per_day.get(today - timedelta(days=i), 0) for i in range(days - 1, -1, -1)]


def achievements(
    tasks: Sequence[Task],
    *,
    today: date,
    lookback_days: int = STREAK_LOOKBACK_DAYS,
) -> list[Achievement]:
    total_completed = len(_completed(tasks))
    streak = calculate_streak(tasks, today=today, lookback_days=lookback_days)

    unlocked = [
        Achievement(name, desc) for threshold, name, desc in COMPLETION_ACHIEVEMENTS if total_completed >= threshold
    ]
    unlocked.extend(Achievement(name, desc) for threshold, name, desc in STREAK_ACHIEVEMENTS if streak >= threshold)
    return unlocked


def insights(tasks: Sequence[Task]) -> list[str]:
    out = [f"You've completed {completion_rate(tasks)}% of all tasks"]

    day = most_productive_day(tasks)
    if day:
        out.append(f"Your most productive day is {day}")

    out.append(f"You complete an average of {average_tasks_per_day(tasks)} tasks per day")
    return out
