# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..timer.pomodoro import TimerPhase

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit")


def _stamp(text: str) -> str:
    return f"[{datetime.now().strftime('%H:%M:%S')}] {text}"


def to_command(user_input: str) -> str:
    """Plain text is quick-added verbatim; a leading priority word stays in the title."""
    text = user_input.strip()
    return text if text.startswith("/") else f"/quick -- {text}"


def prompt_for(state: AppState) -> str:
    """'>>> ' normally, '[24:13] >>> ' while the timer is counting down or paused."""
    with state.lock:
        phase = state.timer.phase
        shown = state.timer.display()
    if phase in (TimerPhase.RUNNING, TimerPhase.PAUSED):
        mark = "" if phase is TimerPhase.RUNNING else " paused"
        return f"[{shown}{mark}] >>> "
    return ">>> "


def run_once(state: AppState, user_input: str, emit: Callable[[str], None] | None = None) -> str:
    """
    Run a single line (command or quick-add text) and return what should be shown.
    Handler crashes are logged and reported, never raised.
    """
    try:
        response = command_registry.handle(state, to_command(user_input), emit=emit)
    except Exception:
        logger.exception("Command handler crashed: %r", user_input)
        return "Internal error while handling a command."
    return response if response is not None else ""


def run_console_loop(state: AppState, read: Callable[[str], str] = input) -> None:
    """Interactive REPL until /exit, EOF or Ctrl+C."""
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "taskdeck"))
    print(_stamp(f"{app_name}: /help lists commands, plain text quick-adds a task, /exit quits.\n"))

    def emit(text: str) -> None:
        print(_stamp(text), flush=True)

    while True:
        try:
            user_input = read(prompt_for(state)).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            logger.info("Console input closed.")
            break

        if not user_input:
            continue
        if user_input.lower() in EXIT_COMMANDS:
            break

        reply = run_once(state, user_input, emit=emit)
        if reply:
            print(_stamp(reply) + "\n")

    logger.info("Console connector finished.")
