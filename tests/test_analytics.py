# tests/test_analytics.py

from __future__ import annotations

from datetime import date, datetime, timedelta

from taskdeck.tasks import analytics
from taskdeck.tasks.task_models import Task

from .fakes import make_task

TODAY = date(2024, 1, 10)  # Wednesday


def done_on(task_id: str, day: date, hour: int = 12) -> Task:
    return make_task(task_id, completed=datetime(day.year, day.month, day.day, hour))


def test_streak_stops_at_first_gap() -> None:
    tasks = [
        done_on("today", TODAY),
        done_on("yesterday", TODAY - timedelta(days=1)),
        done_on("three-days-ago", TODAY - timedelta(days=3)),
    ]
    assert analytics.calculate_streak(tasks, today=TODAY) == 2


def test_streak_is_zero_without_completion_today() -> None:
    tasks = [done_on("yesterday", TODAY - timedelta(days=1)), make_task("open")]
    assert analytics.calculate_streak(tasks, today=TODAY) == 0
    assert analytics.calculate_streak([], today=TODAY) == 0


def test_streak_is_capped_by_lookback() -> None:
    tasks = [done_on(str(i), TODAY - timedelta(days=i)) for i in range(45)]
    assert analytics.calculate_streak(tasks, today=TODAY) == 30
    assert analytics.calculate_streak(tasks, today=TODAY, lookback_days=7) == 7


def test_most_productive_day() -> None:
    # 2024-01-08 is a Monday
    tasks = [
        done_on("a", date(2024, 1, 9)),  # Tuesday
        done_on("b", date(2024, 1, 8)),  # Monday
        done_on("c", date(2024, 1, 1)),  # Monday
    ]
    assert analytics.most_productive_day(tasks) == "Monday"
    assert analytics.most_productive_day([make_task("open")]) is None


def test_most_productive_day_tie_keeps_first_encountered() -> None:
    tasks = [
        done_on("a", date(2024, 1, 12)),  # Friday
        done_on("b", date(2024, 1, 8)),  # Monday
        done_on("c", date(2024, 1, 5)),  # Friday
        done_on("d", date(2024, 1, 1)),  # Monday
    ]
    assert analytics.most_productive_day(tasks) == "Friday"


def test_average_tasks_per_day() -> None:
    assert analytics.average_tasks_per_day([make_task("open")]) == 0

    # 6 completions, first Jan 1 12:00 and last Jan 3 12:00 -> 3 days -> 2 per day
    days = [1, 2, 2, 3, 1, 3]
    tasks = [done_on(str(i), date(2024, 1, d)) for i, d in enumerate(days)]
    assert analytics.average_tasks_per_day(tasks) == 2


def test_average_tasks_per_day_uses_list_order_not_chronology() -> None:
    # Last element is earlier than the first: the span goes negative and is clamped to one day.
    tasks = [done_on("late", date(2024, 1, 9)), done_on("early", date(2024, 1, 1))]
    assert analytics.average_tasks_per_day(tasks) == 2


def test_completion_rate() -> None:
    tasks = [done_on("a", TODAY), make_task("b"), make_task("c")]
    assert analytics.completion_rate(tasks) == 33
    assert analytics.completion_rate([]) == 0


def test_category_distribution_and_shares() -> None:
    tasks = [
        make_task("1", category="work"),
        make_task("2", category="home"),
        make_task("3", category="work"),
        make_task("4", category="work"),
    ]
    assert analytics.category_distribution(tasks) == {"work": 3, "home": 1}

    shares = analytics.category_shares(tasks)
    assert [(s.category, s.count, s.fraction) for s in shares] == [("work", 3, 0.75), ("home", 1, 0.25)]
    assert analytics.category_shares([]) == []


def test_productivity_trend_oldest_first() -> None:
    tasks = [
        done_on("a", TODAY),
        done_on("b", TODAY),
        done_on("c", TODAY - timedelta(days=6)),
        done_on("d", TODAY - timedelta(days=7)),
    ]
    assert analytics.productivity_trend(tasks, today=TODAY) == [1, 0, 0, 0, 0, 0, 2]


def test_ten_completions_unlock_task_master_only() -> None:
    old_day = TODAY - timedelta(days=20)
    tasks = [done_on(str(i), old_day) for i in range(10)]

    names = [a.name for a in analytics.achievements(tasks, today=TODAY)]

    assert "Task Master" in names
    assert "Productivity Pro" not in names
    assert names == ["Task Master"]


def test_streak_achievements() -> None:
    tasks = [done_on(str(i), TODAY - timedelta(days=i)) for i in range(7)]
    unlocked = analytics.achievements(tasks, today=TODAY)

    assert [a.name for a in unlocked] == ["Consistency King", "Week Warrior"]
    assert str(unlocked[0]) == "Consistency King - 3 day streak"


def test_insights_text() -> None:
    tasks = [done_on("a", date(2024, 1, 8)), make_task("b")]
    assert analytics.insights(tasks) == [
        "You've completed 50% of all tasks",
        "Your most productive day is Monday",
        "You complete an average of 1 tasks per day",
    ]
    assert analytics.insights([]) == [
        "You've completed 0% of all tasks",
        "You complete an average of 0 tasks per day",
    ]
