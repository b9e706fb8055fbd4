# src/prism_tasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import cast

from ..core.assistant import successor_note
from ..core.state import AppState
from ..tasks.task_filters import FilterState, FilterStatus, SortOption
from ..tasks.task_models import Priority, Recurrence, Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

SHORT_ID_LEN = 8

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

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
        except (TypeError, ValueError):
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
        lines.append("Anything else is read as a task command, e.g. 'add buy milk tomorrow'.")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(task: Task) -> str:
    box = "[x]" if task.is_completed else "[ ]"
    parts = [f"{box} {task.title}", f"({task.priority})"]
    if task.due_date is not None:
        parts.append(f"due {task.due_date:%Y-%m-%d}")
    if task.recurrence is not Recurrence.NONE:
        parts.append(f"repeats {task.recurrence.value.lower()}")
    if task.tags:
        parts.append(" ".join(f"#{t}" for t in task.tags))
    parts.append(f"id={task.id[:SHORT_ID_LEN]}")
    return " ".join(parts)


def _resolve_prefix(state: AppState, args: list[str]) -> Task | str:
    if not args:
        return "Missing task id. Use /list to see ids."
    matches = state.task_store.find_by_prefix(args[0])
    if not matches:
        return f"No task with id starting with '{args[0]}'."
    if len(matches) > 1:
        return f"Id prefix '{args[0]}' is ambiguous ({len(matches)} tasks)."
    return matches[0]


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    with state.lock:
        tasks = state.task_store.filtered(state.filters)
    if not tasks:
        return "No tasks found. Adjust filters or create a new task."
    lines = [f"{i}. {format_task(t)}" for i, t in enumerate(tasks, start=1)]
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str]) -> str:
    with state.lock:
        s = state.task_store.stats()
    return f"Tasks: {s['total']} total, {s['active']} active, {s['completed']} completed."


def _describe_filters(f: FilterState) -> str:
    return (
        f"status={f.status} priority={f.priority or 'All'} "
        f"sort={f.sort} search={f.search!r}"
    )


def cmd_filter(state: AppState, args: list[str]) -> str:
    """
    /filter                        -> show current filters
    /filter status all|active|completed
    /filter priority high|medium|low|all
    /filter search <text>          -> empty text clears the search
    /filter sort date-added|priority|due-date|alphabetical
    /filter reset
    """
    f = state.filters
    if not args:
        return f"Filters: {_describe_filters(f)}"

    sub = args[0].lower()
    value = " ".join(args[1:]).strip()

    if sub == "reset":
        state.filters = FilterState()
        return f"Filters reset: {_describe_filters(state.filters)}"

    if sub == "status":
        try:
            f.status = FilterStatus(value.lower())
        except ValueError:
            return "Usage: /filter status all|active|completed"
    elif sub == "priority":
        if value.lower() in ("", "all"):
            f.priority = None
        elif value.lower() in {p.value.lower() for p in Priority}:
            f.priority = Priority.from_raw(value)
        else:
            return "Usage: /filter priority high|medium|low|all"
    elif sub == "search":
        f.search = value
    elif sub == "sort":
        try:
            f.sort = SortOption(value.lower())
        except ValueError:
            return "Usage: /filter sort date-added|priority|due-date|alphabetical"
    else:
        return "Unknown /filter option. Use status, priority, search, sort or reset."

    return f"Filters: {_describe_filters(f)}"


def _persist(state: AppState) -> None:
    if getattr(state.settings, "save_tasks", False):
        state.task_store.save()


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    with state.lock:
        found = _resolve_prefix(state, args)
        if isinstance(found, str):
            return found
        successor = state.task_store.toggle_task(found.id)
        _persist(state)
        updated = state.task_store.get_task(found.id)

    logger.debug("Toggled via command id=%s", found.id)
    if emit and successor is not None:
        emit(successor_note(successor))
    if updated is not None and updated.is_completed:
        return f'Marked "{found.title}" as complete.'
    return f'Marked "{found.title}" as active.'


def cmd_delete(state: AppState, args: list[str]) -> str:
    with state.lock:
        found = _resolve_prefix(state, args)
        if isinstance(found, str):
            return found
        state.task_store.delete_task(found.id)
        _persist(state)
    return f'Deleted task: "{found.title}".'


# ---- task form (/add, /edit) ----
#
# Fields are ';'-separated key=value pairs, e.g.
#   /add Water plants; priority=high; due=2026-10-20; recur=daily; tags=home,garden
#   /edit 3fa2 recur=weekly; desc=Use the blue can

TITLE_REQUIRED = "Title is required"

FORM_KEYS: dict[str, str] = {
    "title": "title",
    "desc": "desc",
    "description": "desc",
    "priority": "priority",
    "due": "due",
    "recur": "recur",
    "recurrence": "recur",
    "tags": "tags",
}


def _parse_form(text: str, *, allow_bare_title: bool) -> dict[str, str] | str:
    fields: dict[str, str] = {}
    segments = [s.strip() for s in text.split(";") if s.strip()]
    for i, seg in enumerate(segments):
        key, sep, value = seg.partition("=")
        if not sep:
            if i == 0 and allow_bare_title:
                fields["title"] = seg
                continue
            return f"Expected key=value, got '{seg}'."
        name = FORM_KEYS.get(key.strip().lower())
        if name is None:
            return f"Unknown field '{key.strip()}'. Use title, desc, priority, due, recur or tags."
        fields[name] = value.strip()
    return fields


def _apply_form(task: Task, fields: dict[str, str]) -> Task | str:
    """Validate form fields and return an updated copy of `task`, or an error message."""
    changes: dict[str, object] = {}

    if "title" in fields:
        if not fields["title"]:
            return TITLE_REQUIRED
        changes["title"] = fields["title"]

    if "desc" in fields:
        changes["description"] = fields["desc"]

    if "priority" in fields:
        raw = fields["priority"].lower()
        if raw not in {p.value.lower() for p in Priority}:
            return "Priority must be high, medium or low."
        changes["priority"] = Priority.from_raw(raw)

    if "due" in fields:
        raw = fields["due"]
        if raw.lower() in ("", "none"):
            changes["due_date"] = None
        else:
            try:
                changes["due_date"] = datetime.fromisoformat(raw)
            except ValueError:
                return f"Invalid due date '{raw}'. Use YYYY-MM-DD."

    if "recur" in fields:
        raw = fields["recur"].lower()
        if raw not in {r.value.lower() for r in Recurrence}:
            return "Recurrence must be none, daily, weekly or monthly."
        changes["recurrence"] = Recurrence.from_raw(raw)

    if "tags" in fields:
        changes["tags"] = [t.strip() for t in fields["tags"].split(",") if t.strip()]

    return replace(task, **changes)


def cmd_add(state: AppState, args: list[str]) -> str:
    fields = _parse_form(" ".join(args), allow_bare_title=True)
    if isinstance(fields, str):
        return fields
    if not fields.get("title"):
        return TITLE_REQUIRED

    draft = Task(id=uuid.uuid4().hex, title=fields["title"], created_at=time.time())
    task = _apply_form(draft, fields)
    if isinstance(task, str):
        return task

    with state.lock:
        state.task_store.add_task(task)
        _persist(state)
    return f'Added "{task.title}" id={task.id[:SHORT_ID_LEN]}.'


def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <id-prefix> key=value; ... (title, desc, priority, due, recur, tags)"
    fields = _parse_form(" ".join(args[1:]), allow_bare_title=False)
    if isinstance(fields, str):
        return fields

    with state.lock:
        found = _resolve_prefix(state, args)
        if isinstance(found, str):
            return found
        task = _apply_form(found, fields)
        if isinstance(task, str):
            return task
        state.task_store.update_task(task)
        _persist(state)
    return f'Updated "{task.title}": {format_task(task)}'


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List tasks using the current filters.", aliases=["ls"])
registry.register("stats", cmd_stats, help_text="Show total/active/completed counts.")
registry.register(
    "filter",
    cmd_filter,
    help_text="Filter/sort: /filter status|priority|search|sort <value> | /filter reset.",
)
registry.register("done", cmd_done, help_text="Toggle completion: /done <id-prefix>.", aliases=["toggle"])
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id-prefix>.", aliases=["rm"])
registry.register(
    "add",
    cmd_add,
    help_text="Create a task: /add <title>; priority=..; due=YYYY-MM-DD; recur=..; tags=a,b; desc=..",
    aliases=["new"],
)
registry.register(
    "edit",
    cmd_edit,
    help_text="Edit a task: /edit <id-prefix> title=..; priority=..; due=..; recur=..; tags=..; desc=..",
)
