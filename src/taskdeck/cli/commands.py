# src/taskdeck/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable, Sequence
from datetime import date, time, timedelta
from typing import cast

from ..core.state import AppState
from ..tasks import analytics
from ..tasks.task_models import UNSET, Priority, Task, TaskPatch, TaskStatus, Theme
from ..tasks.task_query import (
    CompletionWindow,
    bucket_progress,
    completed_tasks,
    dashboard_summary,
    filter_tasks,
    recent_tasks,
    tasks_for_day,
    tasks_for_week,
    week_start,
    weekly_breakdown,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

MONTHS_SHORT = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
STATUS_MARK = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.COMPLETED: "[x]",
}


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument parsing ----


def _split_fields(args: Sequence[str], *, has_head: bool) -> tuple[str, dict[str, str]]:
    """
    "Buy milk; priority=high; due=2024-01-05" -> ("Buy milk", {"priority": "high", "due": "2024-01-05"}).

    Raises ValueError on a field segment without "=".
    """
    text = " ".join(args)
    segments = [s.strip() for s in text.split(";")]
    head = segments.pop(0) if has_head and segments else ""

    fields: dict[str, str] = {}
    for seg in segments:
        if not seg:
            continue
        key, sep, value = seg.partition("=")
        if not sep:
            raise ValueError(f"expected key=value, got {seg!r}")
        fields[key.strip().lower()] = value.strip()
    return head, fields


def _parse_day(raw: str, today: date) -> date:
    raw = raw.strip().lower()
    if raw == "today":
        return today
    if raw == "tomorrow":
        return today + timedelta(days=1)
    if raw == "yesterday":
        return today - timedelta(days=1)
    if raw[:1] in ("+", "-") and raw[1:].isdigit():
        return today + timedelta(days=int(raw))
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"invalid date {raw!r} (use YYYY-MM-DD, today, tomorrow, +N, -N)") from None


def _parse_time(raw: str) -> time:
    try:
        return time.fromisoformat(raw.strip())
    except ValueError:
        raise ValueError(f"invalid time {raw!r} (use HH:MM)") from None


def _parse_priority(raw: str) -> Priority:
    try:
        return Priority.from_raw(raw)
    except ValueError:
        raise ValueError(f"invalid priority {raw!r} (use low, medium, high)") from None


def _patch_from_fields(fields: dict[str, str], today: date) -> TaskPatch:
    known = {"title", "desc", "description", "priority", "category", "due", "time"}
    unknown = sorted(set(fields) - known)
    if unknown:
        raise ValueError(f"unknown field(s): {', '.join(unknown)}")

    desc = fields.get("desc", fields.get("description"))
    due = fields.get("due")
    due_time = fields.get("time")

    return TaskPatch(
        title=fields["title"] if "title" in fields else UNSET,
        description=(desc or None) if desc is not None else UNSET,
        priority=_parse_priority(fields["priority"]) if "priority" in fields else UNSET,
        category=fields["category"] if "category" in fields else UNSET,
        due_date=(_parse_day(due, today) if due else None) if due is not None else UNSET,
        due_time=(_parse_time(due_time) if due_time else None) if due_time is not None else UNSET,
    )


# ---- formatting ----


def format_due(task: Task, today: date) -> str:
    """'Jan 5' for the current year, 'Jan 5, 2027' otherwise; time appended when set."""
    if task.due_date is None:
        return ""
    d = task.due_date
    text = f"{MONTHS_SHORT[d.month - 1]} {d.day}"
    if d.year != today.year:
        text += f", {d.year}"
    if task.due_time is not None:
        text += f" {task.due_time.strftime('%H:%M')}"
    return text


def format_task_line(task: Task, today: date) -> str:
    line = f"{STATUS_MARK[task.status]} {task.id}  {task.title}  ({task.priority.value}, {task.category})"
    due = format_due(task, today)
    if due:
        line += f"  due {due}"
    if task.description:
        line += f"\n      {task.description}"
    return line


def _format_list(tasks: Sequence[Task], today: date, empty: str = "No tasks found") -> str:
    if not tasks:
        return f"  {empty}"
    return "\n".join(f"  {format_task_line(t, today)}" for t in tasks)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    prefs = state.preferences.get()
    with state.lock:
        total = state.store.count()
        timer_text = f"{state.timer.display()} ({state.timer.phase.value})"
    return (
        "Status:\n"
        f"  Tasks: {total}\n"
        f"  Theme: {prefs.theme.value}\n"
        f"  Timer: {timer_text}\n"
        f"  Storage: {getattr(state.settings, 'storage_dir', '?')}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title>; priority=high; category=work; due=2024-01-05; time=14:00; desc=...
    """
    today = state.now().date()
    try:
        title, fields = _split_fields(args, has_head=True)
        if not title.strip():
            return "Usage: /add <title>; priority=..; category=..; due=YYYY-MM-DD; time=HH:MM; desc=.."
        patch = _patch_from_fields(fields, today)
        with state.lock:
            task = state.store.add(
                title,
                description=patch.description or "",  # type: ignore[arg-type]
                priority=patch.priority or None,  # type: ignore[arg-type]
                category=patch.category or None,  # type: ignore[arg-type]
                due_date=patch.due_date or None,  # type: ignore[arg-type]
                due_time=patch.due_time or None,  # type: ignore[arg-type]
            )
    except ValueError as e:
        return f"Cannot add task: {e}"
    return f"Added task {task.id}: {task.title}"


def cmd_quick(state: AppState, args: list[str]) -> str:
    """
    /quick [low|medium|high] <title>
    /quick -- <title>   (whole text is the title, no priority word)
    """
    if not args:
        return "Usage: /quick [low|medium|high] <title>"

    priority: Priority | None = None
    words = list(args)
    if words[0] == "--":
        words = words[1:]
    else:
        with contextlib.suppress(ValueError):
            priority = Priority(words[0].lower())
            words = words[1:]

    title = " ".join(words).strip()
    if not title:
        return "Usage: /quick [low|medium|high] <title>"

    with state.lock:
        task = state.store.quick_add(title, priority)
    return f"Added task {task.id}: {task.title} ({task.priority.value})"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id>; title=..; desc=..; priority=..; category=..; due=..; time=..
    An empty value (due=) clears optional fields.
    """
    if not args:
        return "Usage: /edit <id>; field=value; ..."
    today = state.now().date()
    try:
        task_id, fields = _split_fields(args, has_head=True)
        patch = _patch_from_fields(fields, today)
        if patch.is_empty():
            return "Nothing to change. Usage: /edit <id>; field=value; ..."
        with state.lock:
            task = state.store.update(task_id.strip(), patch)
    except ValueError as e:
        return f"Cannot edit task: {e}"
    if task is None:
        return f"Task {task_id.strip()} not found."
    return f"Updated task {task.id}:\n  {format_task_line(task, today)}"


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <id>"
    with state.lock:
        task = state.store.toggle_status(args[0])
    if task is None:
        return f"Task {args[0]} not found."
    return f"Task {task.id} is now {task.status.value}."


def cmd_delete(state: AppState, args: list[str]) -> str:
    """
    /rm <id> yes   (the trailing "yes" confirms the deletion)
    """
    if not args:
        return "Usage: /rm <id> yes"
    task_id = args[0]
    with state.lock:
        task = state.store.get(task_id)
        if task is None:
            return f"Task {task_id} not found."
        if len(args) < 2 or args[1].lower() not in ("yes", "y"):
            return f'Delete "{task.title}"? Repeat as: /rm {task_id} yes'
        state.store.delete(task_id)
    return f"Task {task_id} deleted."


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list [priority=..; status=..; q=..]
    """
    today = state.now().date()
    try:
        _, fields = _split_fields([";"] + list(args), has_head=True)
        unknown = sorted(set(fields) - {"priority", "status", "q", "search"})
        if unknown:
            return f"Unknown filter(s): {', '.join(unknown)}"
        priority = _parse_priority(fields["priority"]) if fields.get("priority") else None
        status = TaskStatus(fields["status"].lower()) if fields.get("status") else None
    except ValueError as e:
        return f"Bad filter: {e}"

    with state.lock:
        tasks = filter_tasks(
            state.store.list(),
            priority=priority,
            status=status,
            search=fields.get("q") or fields.get("search"),
        )
    return f"Tasks ({len(tasks)}):\n" + _format_list(tasks, today)


def cmd_dashboard(state: AppState, args: list[str]) -> str:
    today = state.now().date()
    lookback = int(getattr(state.settings, "streak_lookback_days", analytics.STREAK_LOOKBACK_DAYS))
    limit = int(getattr(state.settings, "recent_limit", 5))
    with state.lock:
        tasks = state.store.list()
    summary = dashboard_summary(tasks, today=today, lookback_days=lookback)
    recent = recent_tasks(tasks, limit=limit)
    return (
        "Dashboard:\n"
        f"  Total: {summary.total}  Pending: {summary.pending}  "
        f"Completed: {summary.completed}  Streak: {summary.streak} day(s)\n"
        "Recent:\n" + _format_list(recent, today)
    )


def cmd_day(state: AppState, args: list[str]) -> str:
    """
    /today [YYYY-MM-DD | +N | -N]
    """
    today = state.now().date()
    try:
        day = _parse_day(args[0], today) if args else today
    except ValueError as e:
        return str(e)
    with state.lock:
        tasks = tasks_for_day(state.store.list(), day)
    progress = bucket_progress(tasks)
    return (
        f"{day.strftime('%A')} {day.isoformat()}: "
        f"{progress.completed}/{progress.total} done ({progress.percent}%)\n" + _format_list(tasks, today)
    )


def cmd_week(state: AppState, args: list[str]) -> str:
    """
    /week [any date inside the week]
    """
    today = state.now().date()
    try:
        anchor = _parse_day(args[0], today) if args else today
    except ValueError as e:
        return str(e)
    start = week_start(anchor)
    with state.lock:
        all_tasks = state.store.list()
    tasks = tasks_for_week(all_tasks, start)
    progress = bucket_progress(tasks)

    lines = [
        f"Week {start.isoformat()} .. {(start + timedelta(days=6)).isoformat()}: "
        f"{progress.completed}/{progress.total} done ({progress.percent}%)"
    ]
    for bucket in weekly_breakdown(all_tasks, start):
        bar = "#" * bucket.completed + "." * (bucket.total - bucket.completed)
        lines.append(f"  {bucket.label} {bucket.day.day:>2}  {bucket.completed}/{bucket.total}  {bar}")
    lines.append(_format_list(tasks, today))
    return "\n".join(lines)


def cmd_completed(state: AppState, args: list[str]) -> str:
    """
    /completed [today|week|month|all]
    """
    now = state.now()
    try:
        window = CompletionWindow(args[0].lower()) if args else CompletionWindow.ALL
    except ValueError:
        return "Usage: /completed [today|week|month|all]"
    with state.lock:
        tasks = completed_tasks(state.store.list(), window, now=now)
    return f"Completed ({window.value}, {len(tasks)}):\n" + _format_list(tasks, now.date(), "No completed tasks")


def cmd_stats(state: AppState, args: list[str]) -> str:
    today = state.now().date()
    lookback = int(getattr(state.settings, "streak_lookback_days", analytics.STREAK_LOOKBACK_DAYS))
    with state.lock:
        tasks = state.store.list()

    lines = ["Insights:"]
    lines.extend(f"  * {text}" for text in analytics.insights(tasks))

    trend = analytics.productivity_trend(tasks, today=today)
    lines.append("Last 7 days (oldest first): " + " ".join(str(n) for n in trend))

    shares = analytics.category_shares(tasks)
    if shares:
        lines.append("Categories:")
        lines.extend(f"  {s.category:<12} {s.count:>3}  {round(s.fraction * 100):>3}%" for s in shares)

    unlocked = analytics.achievements(tasks, today=today, lookback_days=lookback)
    lines.append("Achievements:" if unlocked else "Achievements: none yet")
    lines.extend(f"  * {a}" for a in unlocked)
    return "\n".join(lines)


def cmd_timer(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /timer                -> show timer
    /timer start|pause|reset
    /timer set <minutes>  -> change duration (persisted), resets the timer
    """
    runner = state.timer_runner
    sub = args[0].lower() if args else "status"

    if sub == "status":
        with state.lock:
            return f"Timer: {state.timer.display()} ({state.timer.phase.value})"

    if runner is None:
        return "Timer is not available in this context."

    if sub == "start":
        if not runner.start():
            return "Timer is already running."
        if emit:
            with contextlib.suppress(Exception):
                emit(f"[TIMER] Started: {state.timer.display()} remaining.")
        logger.debug("Timer start requested")
        return "Timer started."

    if sub == "pause":
        if not runner.pause():
            return "Timer is not running."
        return f"Timer paused at {state.timer.display()}."

    if sub == "reset":
        runner.reset()
        return f"Timer reset to {state.timer.display()}."

    if sub == "set":
        if len(args) < 2 or not args[1].isdigit():
            return "Usage: /timer set <minutes>"
        try:
            seconds = state.preferences.set_timer_minutes(int(args[1]))
        except ValueError as e:
            return str(e)
        runner.reset(seconds)
        return f"Timer duration set to {seconds // 60} minute(s)."

    return "Usage: /timer [start|pause|reset|set <minutes>]"


def cmd_theme(state: AppState, args: list[str]) -> str:
    """
    /theme              -> show theme
    /theme toggle       -> switch light/dark
    /theme light|dark
    """
    if not args:
        return f"Theme: {state.preferences.get().theme.value}"
    arg = args[0].lower()
    if arg == "toggle":
        return f"Theme: {state.preferences.toggle_theme().value}"
    try:
        return f"Theme: {state.preferences.set_theme(Theme(arg)).value}"
    except ValueError:
        return "Usage: /theme [light|dark|toggle]"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task count, theme and timer.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <title>; priority=high; category=work; due=YYYY-MM-DD; time=HH:MM; desc=...",
)
registry.register("quick", cmd_quick, help_text="Quick add: /quick [low|medium|high] <title>.", aliases=["q"])
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id>; field=value; ... (empty value clears).")
registry.register("toggle", cmd_toggle, help_text="Advance status pending -> in-progress -> completed.", aliases=["done"])
registry.register("rm", cmd_delete, help_text="Delete a task: /rm <id> yes.", aliases=["delete"])
registry.register("list", cmd_list, help_text="List tasks: /list priority=..; status=..; q=...", aliases=["ls"])
registry.register("dashboard", cmd_dashboard, help_text="Totals, streak and recent open tasks.", aliases=["dash"])
registry.register("today", cmd_day, help_text="Daily view: /today [YYYY-MM-DD|+N|-N].", aliases=["day"])
registry.register("week", cmd_week, help_text="Weekly view: /week [YYYY-MM-DD].")
registry.register("completed", cmd_completed, help_text="Completed tasks: /completed [today|week|month|all].")
registry.register("stats", cmd_stats, help_text="Insights, trend, categories and achievements.")
registry.register("timer", cmd_timer, help_text="Pomodoro timer: /timer [start|pause|reset|set <minutes>].")
registry.register("theme", cmd_theme, help_text="Theme: /theme [light|dark|toggle].")
