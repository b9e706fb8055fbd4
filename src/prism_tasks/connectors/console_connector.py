# src/prism_tasks/connectors/console_connector.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.assistant import handle_utterance
from ..core.state import AppState

logger = logging.getLogger(__name__)

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def run_console_loop(
    state: AppState,
    *,
    read: InputFn = input,
    write: OutputFn = print,
) -> None:
    """
    Interactive loop: slash commands go to the registry, anything else is a
    natural-language task command.
    """
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "prism"))
    delay_s = max(0, int(getattr(state.settings, "thinking_delay_ms", 0) or 0)) / 1000.0

    def emit(text: str) -> None:
        write(f"[{_ts_local()}] {text}")

    emit("[CONSOLE] Type a task command or /help. Use /exit to quit.")

    while True:
        try:
            user_input = read(">>> You: ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            write("")
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            emit(cmd_response)
            continue

        if delay_s:
            time.sleep(delay_s)

        try:
            result = handle_utterance(state, user_input)
        except Exception:
            logger.exception("Task command handler crashed.")
            emit("Internal error while handling that request.")
            continue

        emit(f"<<< {app_name}: {result.response}")

    logger.info("Console connector finished.")
