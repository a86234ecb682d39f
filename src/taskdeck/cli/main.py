# src/taskdeck/cli/main.py

"""
CLI entrypoint.

    taskdeck                      -> interactive console (timer ticks in a background thread)
    taskdeck /add Buy milk; ...   -> run one command, print the reply, exit
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop, run_once
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()

    log_file = setup_logging(
        log_dir=settings.data_dir,
        console_level=getattr(logging, settings.log_level, logging.WARNING),
    )
    logger.info("Starting %s (log file: %s)", settings.app_name, log_file)

    state = create_initial_state(settings=settings)
    try:
        if args:
            print(run_once(state, " ".join(args)))
        else:
            run_console_loop(state)
    finally:
        shutdown_state(state)
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
