# src/prism_tasks/nlp/triggers.py

"""
Trigger-word tables for the command interpreter.

Every intent and extracted field is driven by a flat list of English and
romanized Urdu keywords. Keeping them in one frozen table makes the
vocabulary swappable per call and keeps the interpreter reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TriggerTable:
    # ---- Add ----
    add_leads: tuple[str, ...] = ("add", "create", "new", "remind me to", "buy")
    add_contains: tuple[str, ...] = ("shamil", "banao", "karna hai")
    # Phrases removed from the title (longest first within each alternation).
    title_lead_strip: tuple[str, ...] = ("remind me to", "new task", "create", "add", "buy")
    title_tail_strip: tuple[str, ...] = ("shamil karein", "karna hai", "banao", "likho")

    # ---- Fields ----
    high_priority: tuple[str, ...] = ("high", "urgent", "important", "zaruri")
    high_priority_strip: tuple[str, ...] = ("high priority", "high", "urgent", "important", "zaruri")
    low_priority: tuple[str, ...] = ("low", "kam")
    low_priority_strip: tuple[str, ...] = ("low priority", "low", "kam")
    tomorrow: tuple[str, ...] = ("tomorrow", "kal")

    # ---- Intents on existing tasks ----
    delete: tuple[str, ...] = ("delete", "remove", "khatam", "hatao")
    complete: tuple[str, ...] = ("complete", "done", "finish", "mukammal", "ho gaya")
    reschedule: tuple[str, ...] = ("reschedule", "tomorrow", "kal")
    priority: tuple[str, ...] = ("priority",)
    # New level for the priority-change intent; high is checked first.
    priority_high: tuple[str, ...] = ("high",)
    priority_low: tuple[str, ...] = ("low",)
    greeting: tuple[str, ...] = ("hello", "hi", "salam")

    # ---- Resolver ----
    stop_words: frozenset[str] = frozenset(
        {
            "delete",
            "remove",
            "complete",
            "mark",
            "as",
            "done",
            "task",
            "the",
            "my",
            "khatam",
            "karo",
            "mukammal",
            "reschedule",
            "priority",
            "change",
            "to",
            "high",
            "low",
        }
    )


DEFAULT_TRIGGERS = TriggerTable()


def contains_any(text: str, words: tuple[str, ...]) -> bool:
    """Plain substring test; `text` is expected to be lower-cased already."""
    return any(w in text for w in words)


def starts_with_any(text: str, words: tuple[str, ...]) -> bool:
    return any(text.startswith(w) for w in words)
