# src/prism_tasks/tasks/task_store.py

from __future__ import annotations

import calendar
import contextlib
import json
import logging
import os
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from pathlib import Path

from ..nlp.interpreter import ActionType, InterpreterResult
from .task_filters import FilterState, filter_and_sort
from .task_models import Recurrence, Task

logger = logging.getLogger(__name__)


def _add_months(dt: datetime, months: int) -> datetime:
    """Calendar-month shift; the day is clamped to the end of shorter months."""
    idx = dt.month - 1 + months
    year = dt.year + idx // 12
    month = idx % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def next_due_date(due: datetime, recurrence: Recurrence) -> datetime | None:
    if recurrence is Recurrence.DAILY:
        return due + timedelta(days=1)
    if recurrence is Recurrence.WEEKLY:
        return due + timedelta(days=7)
    if recurrence is Recurrence.MONTHLY:
        return _add_months(due, 1)
    return None


class TaskStore:
    """
    The authoritative, ordered task list (newest first).

    Optionally backed by a JSON file (a list of task dicts).

    Thread-safety:
    - none; callers serialize mutations (see AppState.lock)
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._tasks: list[Task] = []
        if self._path is not None:
            self._tasks = self._load(self._path)
        logger.info("TaskStore ready path=%s total=%s", self._path, len(self._tasks))

    # ---- persistence ----

    @staticmethod
    def _load(path: Path) -> list[Task]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to read tasks from %s", path)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring tasks file %s: expected a JSON list", path)
            return []

        out: list[Task] = []
        seen: set[str] = set()
        for raw in data:
            if not isinstance(raw, dict):
                continue
            try:
                task = Task.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed task entry: %r", raw)
                continue
            if task.id in seen:
                logger.warning("Skipping duplicate task id=%s", task.id)
                continue
            seen.add(task.id)
            out.append(task)
        logger.info("Loaded tasks: %d from %s", len(out), path)
        return out

    def save(self) -> None:
        """Write the list atomically (tmp + rename). No-op for an in-memory store."""
        if self._path is None:
            return
        path = self._path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            payload = [t.to_dict() for t in self._tasks]
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, path)
            with contextlib.suppress(OSError):
                os.chmod(path, 0o600)
            logger.debug("Saved tasks: %d to %s", len(self._tasks), path)
        except Exception:
            logger.exception("Failed to save tasks to %s", path)

    # ---- queries ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def find_by_prefix(self, prefix: str) -> list[Task]:
        prefix = prefix.strip().lower()
        if not prefix:
            return []
        return [t for t in self._tasks if t.id.lower().startswith(prefix)]

    def count_tasks(self) -> int:
        return len(self._tasks)

    def stats(self) -> dict[str, int]:
        completed = sum(1 for t in self._tasks if t.is_completed)
        return {
            "total": len(self._tasks),
            "active": len(self._tasks) - completed,
            "completed": completed,
        }

    def filtered(self, filters: FilterState) -> list[Task]:
        return filter_and_sort(self._tasks, filters)

    # ---- mutations ----

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    def add_task(self, task: Task) -> None:
        if not task.title or not task.title.strip():
            raise ValueError("title is required")
        if self._index_of(task.id) != -1:
            raise ValueError(f"duplicate task id: {task.id}")
        self._tasks.insert(0, task)
        logger.debug("Task added id=%s priority=%s due=%s", task.id, task.priority, task.due_date)

    def update_task(self, task: Task) -> None:
        if not task.title or not task.title.strip():
            raise ValueError("title is required")
        idx = self._index_of(task.id)
        if idx == -1:
            raise KeyError(task.id)
        self._tasks[idx] = task
        logger.debug("Task updated id=%s", task.id)

    def delete_task(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx == -1:
            return False
        del self._tasks[idx]
        logger.debug("Task deleted id=%s", task_id)
        return True

    def toggle_task(self, task_id: str) -> Task | None:
        """
        Flip completion of `task_id`.

        Completing a recurring task that has a due date spawns the next instance
        at the top of the list; that successor is returned.
        """
        idx = self._index_of(task_id)
        if idx == -1:
            return None

        task = self._tasks[idx]
        completing = not task.is_completed
        self._tasks[idx] = replace(task, is_completed=completing)
        logger.debug("Task toggled id=%s completed=%s", task_id, completing)

        if not completing or task.recurrence is Recurrence.NONE or task.due_date is None:
            return None

        next_due = next_due_date(task.due_date, task.recurrence)
        successor = replace(
            task,
            id=uuid.uuid4().hex,
            title=f"{task.title} (Recurring)",
            is_completed=False,
            tags=list(task.tags),
            due_date=next_due,
            created_at=time.time(),
        )
        self._tasks.insert(0, successor)
        logger.info(
            "Recurring task spawned id=%s from=%s due=%s", successor.id, task_id, next_due
        )
        return successor

    def apply_result(
        self,
        result: InterpreterResult,
        *,
        on_spawn: Callable[[Task], None] | None = None,
    ) -> bool:
        """
        Apply an interpreter result. Returns True if the list changed.

        `on_spawn` receives the successor when a TOGGLE completes a recurring task.

        Results missing the field their action needs are logged and ignored.
        """
        action = result.action

        if action is ActionType.ADD:
            if result.task_payload is None:
                logger.warning("ADD result without payload ignored")
                return False
            self.add_task(result.task_payload)
            return True

        if action is ActionType.DELETE:
            if result.target_task_id is None:
                logger.warning("DELETE result without target ignored")
                return False
            return self.delete_task(result.target_task_id)

        if action is ActionType.TOGGLE:
            if result.target_task_id is None or self.get_task(result.target_task_id) is None:
                logger.warning("TOGGLE result with unknown target ignored: %s", result.target_task_id)
                return False
            successor = self.toggle_task(result.target_task_id)
            if successor is not None and on_spawn is not None:
                on_spawn(successor)
            return True

        if action is ActionType.UPDATE:
            if result.task_payload is None:
                logger.warning("UPDATE result without payload ignored")
                return False
            try:
                self.update_task(result.task_payload)
            except KeyError:
                logger.warning("UPDATE for unknown task ignored: %s", result.task_payload.id)
                return False
            return True

        return False
