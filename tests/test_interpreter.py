# tests/test_interpreter.py

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from prism_tasks.nlp.interpreter import (
    AI_TAG,
    FALLBACK_RESPONSE,
    GREETING_RESPONSE,
    ActionType,
    interpret,
)
from prism_tasks.nlp.triggers import TriggerTable
from prism_tasks.tasks.task_models import Priority, Recurrence

from .fakes import SequentialIds, make_task


@pytest.fixture()
def milk():
    return make_task("1", "Buy Milk")


# ---- add ----


def test_add_strips_lead_phrases_priority_and_date(now) -> None:
    res = interpret("add buy milk tomorrow high priority", [], now=now, id_factory=SequentialIds())

    assert res.action is ActionType.ADD
    assert res.target_task_id is None
    task = res.task_payload
    assert task is not None
    assert task.id == "id-1"
    assert task.title == "Milk"
    assert task.priority is Priority.HIGH
    assert task.due_date == now + timedelta(days=1)
    assert task.is_completed is False
    assert task.recurrence is Recurrence.NONE
    assert task.tags == [AI_TAG]
    assert task.description == "Created via AI Assistant"
    assert task.created_at == now.timestamp()
    assert res.response == 'I\'ve added "Milk" to your list.'


def test_add_defaults_to_medium_without_due_date(now) -> None:
    res = interpret("remind me to call the plumber", [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "Call the plumber"
    assert res.task_payload.priority is Priority.MEDIUM
    assert res.task_payload.due_date is None


def test_add_low_priority(now) -> None:
    res = interpret("add water plants low priority", [], now=now)

    assert res.task_payload is not None
    assert res.task_payload.priority is Priority.LOW
    assert res.task_payload.title == "Water plants"


@pytest.mark.parametrize(
    "text",
    [
        "add urgent pay rent",
        "add pay rent URGENT",
        "Create Urgent pay rent",
        "buy rent stamps uRgEnT",
    ],
)
def test_urgent_anywhere_means_high(text: str, now) -> None:
    res = interpret(text, [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.priority is Priority.HIGH
    assert "urgent" not in res.task_payload.title.lower()


@pytest.mark.parametrize("text", ["add", "add urgent", "create tomorrow", "new task"])
def test_add_with_empty_remainder_uses_default_title(text: str, now) -> None:
    res = interpret(text, [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "New Task"
    assert AI_TAG in res.task_payload.tags


def test_add_roman_urdu_trailing_phrase(now) -> None:
    res = interpret("doodh lana shamil karein", [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "Doodh lana"
    assert res.task_payload.priority is Priority.MEDIUM


def test_add_roman_urdu_with_zaruri_and_kal(now) -> None:
    res = interpret("kal bazaar jana zaruri karna hai", [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "Bazaar jana"
    assert res.task_payload.priority is Priority.HIGH
    assert res.task_payload.due_date == now + timedelta(days=1)


def test_add_lead_phrase_is_not_stripped_inside_a_word(now) -> None:
    res = interpret("address the envelope", [], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "Address the envelope"


def test_add_wins_over_later_intents(milk, now) -> None:
    res = interpret("add delete button to the form", [milk], now=now)

    assert res.action is ActionType.ADD
    assert res.task_payload is not None
    assert res.task_payload.title == "Delete button to the form"


def test_add_generates_a_fresh_id_per_call(now) -> None:
    a = interpret("add one", [], now=now)
    b = interpret("add one", [], now=now)

    assert a.task_payload is not None and b.task_payload is not None
    assert a.task_payload.id != b.task_payload.id


# ---- delete ----


def test_delete_matches_partial_title(milk, now) -> None:
    res = interpret("delete milk", [milk], now=now)

    assert res.action is ActionType.DELETE
    assert res.target_task_id == "1"
    assert res.task_payload is None
    assert res.response == 'Deleted task: "Buy Milk".'


@pytest.mark.parametrize("text", ["milk hatao", "milk khatam karo", "please remove milk"])
def test_delete_triggers(text: str, milk, now) -> None:
    res = interpret(text, [milk], now=now)

    assert res.action is ActionType.DELETE
    assert res.target_task_id == "1"


def test_delete_without_match(milk, now) -> None:
    res = interpret("delete xyz123", [milk], now=now)

    assert res.action is ActionType.NONE
    assert res.target_task_id is None
    assert res.response == "I couldn't find a task with that name to delete."


def test_first_matching_rule_owns_the_result_even_without_target(milk, now) -> None:
    # "done" would trigger completion, but delete is checked first.
    res = interpret("delete xyz done", [milk], now=now)

    assert res.action is ActionType.NONE
    assert res.response == "I couldn't find a task with that name to delete."


# ---- complete ----


def test_complete_toggles_open_task(milk, now) -> None:
    res = interpret("mark milk done", [milk], now=now)

    assert res.action is ActionType.TOGGLE
    assert res.target_task_id == "1"
    assert res.response == 'Great job! Marked "Buy Milk" as complete.'


def test_complete_roman_urdu(milk, now) -> None:
    res = interpret("milk ho gaya", [milk], now=now)

    assert res.action is ActionType.TOGGLE
    assert res.target_task_id == "1"


def test_complete_already_completed(now) -> None:
    done = make_task("1", "Buy Milk", is_completed=True)

    res = interpret("mark milk done", [done], now=now)

    assert res.action is ActionType.NONE
    assert res.response == '"Buy Milk" is already completed.'


def test_complete_without_match(milk, now) -> None:
    res = interpret("finish xyz", [milk], now=now)

    assert res.action is ActionType.NONE
    assert res.response == "Which task matches that description?"


# ---- reschedule ----


def test_reschedule_sets_due_tomorrow_and_keeps_other_fields(now) -> None:
    task = make_task("1", "Buy Milk", priority=Priority.LOW, tags=["home"], description="2L")

    res = interpret("reschedule milk", [task], now=now)

    assert res.action is ActionType.UPDATE
    assert res.target_task_id == "1"
    assert res.task_payload == replace(task, due_date=now + timedelta(days=1))
    assert res.response == 'Rescheduled "Buy Milk" to tomorrow.'
    # snapshot untouched
    assert task.due_date is None


@pytest.mark.parametrize("text", ["move milk to tomorrow", "milk kal karo"])
def test_reschedule_triggers(text: str, milk, now) -> None:
    res = interpret(text, [milk], now=now)

    assert res.action is ActionType.UPDATE
    assert res.task_payload is not None
    assert res.task_payload.due_date == now + timedelta(days=1)


def test_reschedule_without_match(milk, now) -> None:
    res = interpret("reschedule xyz", [milk], now=now)

    assert res.action is ActionType.NONE
    assert res.response == "I couldn't identify which task to reschedule."


# ---- priority ----


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("change milk priority to high", Priority.HIGH),
        ("set milk priority low", Priority.LOW),
        ("set milk priority", Priority.MEDIUM),
    ],
)
def test_priority_change(text: str, expected: Priority, now) -> None:
    start = Priority.HIGH if expected is Priority.LOW else Priority.LOW
    task = make_task("1", "Buy Milk", priority=start)

    res = interpret(text, [task], now=now)

    assert res.action is ActionType.UPDATE
    assert res.target_task_id == "1"
    assert res.task_payload == replace(task, priority=expected)
    assert res.response == f'Updated "Buy Milk" priority to {expected.value}.'


def test_priority_change_without_match_reports_missing_task(milk, now) -> None:
    # Unresolved priority changes answer explicitly instead of falling
    # through to the greeting/fallback rules ("high" contains "hi").
    res = interpret("set xyz priority high", [milk], now=now)

    assert res.action is ActionType.NONE
    assert res.response == "I couldn't identify which task's priority to change."


# ---- greeting / fallback ----


@pytest.mark.parametrize("text", ["hello", "Salam", "hi there"])
def test_greeting(text: str, now) -> None:
    res = interpret(text, [], now=now)

    assert res.action is ActionType.NONE
    assert res.response == GREETING_RESPONSE


@pytest.mark.parametrize("text", ["", "   ", "what's the weather", "xyz"])
def test_fallback(text: str, now) -> None:
    res = interpret(text, [], now=now)

    assert res.action is ActionType.NONE
    assert res.task_payload is None
    assert res.target_task_id is None
    assert res.response == FALLBACK_RESPONSE
    assert res.mutates is False


# ---- configurable vocabulary ----


def test_custom_trigger_table(milk, now) -> None:
    triggers = TriggerTable(delete=("erase",))

    assert interpret("erase milk", [milk], now=now, triggers=triggers).action is ActionType.DELETE
    assert interpret("delete milk", [milk], now=now, triggers=triggers).action is not ActionType.DELETE


def test_interpret_does_not_mutate_snapshot(milk, now) -> None:
    tasks = [milk]
    before = [replace(t, tags=list(t.tags)) for t in tasks]

    for text in ("reschedule milk", "set milk priority high", "mark milk done", "delete milk"):
        interpret(text, tasks, now=now)

    assert tasks == before


def test_custom_priority_levels(now) -> None:
    triggers = TriggerTable(priority_high=("zaruri",), priority_low=("kam",))
    task = make_task("1", "Buy Milk")

    high = interpret("set milk priority zaruri", [task], now=now, triggers=triggers)
    low = interpret("set milk priority kam", [task], now=now, triggers=triggers)
    default = interpret("set milk priority high", [task], now=now, triggers=triggers)

    assert high.task_payload is not None and high.task_payload.priority is Priority.HIGH
    assert low.task_payload is not None and low.task_payload.priority is Priority.LOW
    assert default.task_payload is not None and default.task_payload.priority is Priority.MEDIUM
