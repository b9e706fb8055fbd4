# src/prism_tasks/core/assistant.py

from __future__ import annotations

import logging
from dataclasses import replace

from ..nlp.interpreter import InterpreterResult, interpret
from ..tasks.task_models import Task
from .state import AppState

logger = logging.getLogger(__name__)


def successor_note(successor: Task) -> str:
    return f'Next occurrence scheduled: "{successor.title}".'


def handle_utterance(state: AppState, text: str) -> InterpreterResult:
    """
    Interpret `text` against the current task list and apply the result.

    The interpreter only sees a snapshot; the mutation happens under state.lock
    so one result is applied at a time. When completing a recurring task spawns
    its next occurrence, the returned response mentions it.
    """
    spawned: list[Task] = []

    with state.lock:
        snapshot = state.task_store.list_tasks()
        result = interpret(text, snapshot)
        changed = state.task_store.apply_result(result, on_spawn=spawned.append)

        if changed and getattr(state.settings, "save_tasks", False):
            state.task_store.save()

    logger.debug(
        "Utterance handled action=%s target=%s changed=%s",
        result.action,
        result.target_task_id or (result.task_payload.id if result.task_payload else None),
        changed,
    )

    if spawned:
        result = replace(result, response=f"{result.response} {successor_note(spawned[0])}")
    return result
