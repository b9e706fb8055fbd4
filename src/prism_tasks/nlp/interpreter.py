# src/prism_tasks/nlp/interpreter.py

"""
Natural-language command interpreter.

Maps a free-text utterance (English, romanized Urdu, or a mix) plus a snapshot
of the task list into a single action for the caller to apply.

Rules are evaluated in a fixed order and the first one whose trigger matches
owns the result, even when it cannot resolve a target task.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import StrEnum

from ..tasks.task_models import Priority, Recurrence, Task
from .resolver import find_task_by_fuzzy_name
from .triggers import DEFAULT_TRIGGERS, TriggerTable, contains_any, starts_with_any

logger = logging.getLogger(__name__)

AI_TAG = "AI-Created"
AI_DESCRIPTION = "Created via AI Assistant"
DEFAULT_TITLE = "New Task"

GREETING_RESPONSE = (
    "Hello! I am your Todo Assistant. You can ask me to add, complete, or delete tasks."
)
FALLBACK_RESPONSE = "I didn't quite catch that. Try saying 'Add a task' or 'Delete grocery'."

IdFactory = Callable[[], str]


class ActionType(StrEnum):
    ADD = "add"
    DELETE = "delete"
    TOGGLE = "toggle"
    UPDATE = "update"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class InterpreterResult:
    action: ActionType
    response: str
    task_payload: Task | None = None
    target_task_id: str | None = None

    @property
    def mutates(self) -> bool:
        return self.action is not ActionType.NONE


def _new_id() -> str:
    return uuid.uuid4().hex


def _alternation(phrases: Sequence[str]) -> str:
    return "|".join(re.escape(p) for p in phrases)


# ---- title pipeline ----
#
# Order matters: each step sees the output of the previous one.


def _strip_leading(title: str, phrases: Sequence[str]) -> str:
    pattern = re.compile(rf"^\s*(?:{_alternation(phrases)})\b\s*", re.IGNORECASE)
    while True:
        stripped = pattern.sub("", title, count=1)
        if stripped == title:
            return title
        title = stripped


def _strip_trailing(title: str, phrases: Sequence[str]) -> str:
    pattern = re.compile(rf"\s*\b(?:{_alternation(phrases)})\s*$", re.IGNORECASE)
    while True:
        stripped = pattern.sub("", title, count=1)
        if stripped == title:
            return title
        title = stripped


def _strip_everywhere(title: str, phrases: Sequence[str]) -> str:
    return re.sub(rf"\b(?:{_alternation(phrases)})\b", "", title, flags=re.IGNORECASE)


def _normalize_title(title: str) -> str:
    title = re.sub(r"\s+", " ", title).strip()
    if not title:
        title = DEFAULT_TITLE
    return title[:1].upper() + title[1:]


def _tomorrow(now: datetime) -> datetime:
    return now + timedelta(days=1)


@dataclass(frozen=True, slots=True)
class _Utterance:
    text: str
    lower: str
    tasks: Sequence[Task]
    now: datetime
    triggers: TriggerTable
    id_factory: IdFactory

    def resolve(self) -> Task | None:
        return find_task_by_fuzzy_name(self.lower, self.tasks, self.triggers.stop_words)


# ---- handlers ----


def _is_add(u: _Utterance) -> bool:
    return starts_with_any(u.lower, u.triggers.add_leads) or contains_any(
        u.lower, u.triggers.add_contains
    )


def _handle_add(u: _Utterance) -> InterpreterResult:
    t = u.triggers
    title = _strip_leading(u.text, t.title_lead_strip)
    title = _strip_trailing(title, t.title_tail_strip)

    if contains_any(u.lower, t.high_priority):
        priority = Priority.HIGH
        title = _strip_everywhere(title, t.high_priority_strip)
    elif contains_any(u.lower, t.low_priority):
        priority = Priority.LOW
        title = _strip_everywhere(title, t.low_priority_strip)
    else:
        priority = Priority.MEDIUM

    due_date: datetime | None = None
    if contains_any(u.lower, t.tomorrow):
        due_date = _tomorrow(u.now)
        title = _strip_everywhere(title, t.tomorrow)

    title = _normalize_title(title)

    task = Task(
        id=u.id_factory(),
        title=title,
        description=AI_DESCRIPTION,
        is_completed=False,
        priority=priority,
        tags=[AI_TAG],
        due_date=due_date,
        recurrence=Recurrence.NONE,
        created_at=u.now.timestamp(),
    )
    return InterpreterResult(
        action=ActionType.ADD,
        task_payload=task,
        response=f'I\'ve added "{title}" to your list.',
    )


def _handle_delete(u: _Utterance) -> InterpreterResult:
    target = u.resolve()
    if target is None:
        return InterpreterResult(
            action=ActionType.NONE,
            response="I couldn't find a task with that name to delete.",
        )
    return InterpreterResult(
        action=ActionType.DELETE,
        target_task_id=target.id,
        response=f'Deleted task: "{target.title}".',
    )


def _handle_complete(u: _Utterance) -> InterpreterResult:
    target = u.resolve()
    if target is None:
        return InterpreterResult(
            action=ActionType.NONE, response="Which task matches that description?"
        )
    if target.is_completed:
        return InterpreterResult(
            action=ActionType.NONE,
            target_task_id=target.id,
            response=f'"{target.title}" is already completed.',
        )
    return InterpreterResult(
        action=ActionType.TOGGLE,
        target_task_id=target.id,
        response=f'Great job! Marked "{target.title}" as complete.',
    )


def _handle_reschedule(u: _Utterance) -> InterpreterResult:
    target = u.resolve()
    if target is None:
        return InterpreterResult(
            action=ActionType.NONE,
            response="I couldn't identify which task to reschedule.",
        )
    return InterpreterResult(
        action=ActionType.UPDATE,
        target_task_id=target.id,
        task_payload=replace(target, due_date=_tomorrow(u.now), tags=list(target.tags)),
        response=f'Rescheduled "{target.title}" to tomorrow.',
    )


def _handle_priority(u: _Utterance) -> InterpreterResult:
    target = u.resolve()
    if target is None:
        return InterpreterResult(
            action=ActionType.NONE,
            response="I couldn't identify which task's priority to change.",
        )

    new_priority = Priority.MEDIUM
    if contains_any(u.lower, u.triggers.priority_high):
        new_priority = Priority.HIGH
    elif contains_any(u.lower, u.triggers.priority_low):
        new_priority = Priority.LOW

    return InterpreterResult(
        action=ActionType.UPDATE,
        target_task_id=target.id,
        task_payload=replace(target, priority=new_priority, tags=list(target.tags)),
        response=f'Updated "{target.title}" priority to {new_priority}.',
    )


def _handle_greeting(u: _Utterance) -> InterpreterResult:
    return InterpreterResult(action=ActionType.NONE, response=GREETING_RESPONSE)


@dataclass(frozen=True, slots=True)
class IntentRule:
    name: str
    matches: Callable[[_Utterance], bool]
    handle: Callable[[_Utterance], InterpreterResult]


RULES: tuple[IntentRule, ...] = (
    IntentRule("add", _is_add, _handle_add),
    IntentRule("delete", lambda u: contains_any(u.lower, u.triggers.delete), _handle_delete),
    IntentRule("complete", lambda u: contains_any(u.lower, u.triggers.complete), _handle_complete),
    IntentRule(
        "reschedule", lambda u: contains_any(u.lower, u.triggers.reschedule), _handle_reschedule
    ),
    IntentRule("priority", lambda u: contains_any(u.lower, u.triggers.priority), _handle_priority),
    IntentRule("greeting", lambda u: contains_any(u.lower, u.triggers.greeting), _handle_greeting),
)


def interpret(
    utterance: str,
    tasks: Sequence[Task],
    *,
    now: datetime | None = None,
    triggers: TriggerTable = DEFAULT_TRIGGERS,
    id_factory: IdFactory | None = None,
) -> InterpreterResult:
    """
    Turn `utterance` into one action against `tasks`.

    Never raises for any text input; "could not act" is always ActionType.NONE
    with an explanatory response. `tasks` is read only.
    """
    u = _Utterance(
        text=utterance,
        lower=utterance.lower(),
        tasks=tasks,
        now=now if now is not None else datetime.now(),
        triggers=triggers,
        id_factory=id_factory or _new_id,
    )

    for rule in RULES:
        if rule.matches(u):
            result = rule.handle(u)
            logger.debug(
                "Interpreted rule=%s action=%s target=%s",
                rule.name,
                result.action,
                result.target_task_id,
            )
            return result

    logger.debug("Interpreted rule=fallback action=%s", ActionType.NONE)
    return InterpreterResult(action=ActionType.NONE, response=FALLBACK_RESPONSE)
