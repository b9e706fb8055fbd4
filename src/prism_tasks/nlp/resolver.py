# src/prism_tasks/nlp/resolver.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..tasks.task_models import Task
from .triggers import DEFAULT_TRIGGERS

logger = logging.getLogger(__name__)

MIN_TERM_LENGTH = 3


def search_terms(text: str, stop_words: Iterable[str] = DEFAULT_TRIGGERS.stop_words) -> list[str]:
    """Lower-case, split on whitespace, drop stop words and tokens shorter than 3 chars."""
    stop = set(stop_words)
    return [w for w in text.lower().split() if w not in stop and len(w) >= MIN_TERM_LENGTH]


def find_task_by_fuzzy_name(
    text: str,
    tasks: Sequence[Task],
    stop_words: Iterable[str] = DEFAULT_TRIGGERS.stop_words,
) -> Task | None:
    """
    Pick the task whose title shares the most search terms with `text`.

    Each term counts at most once per title (substring match, case-insensitive).
    The best score starts at 0 and only a strictly higher score replaces the
    current best, so:
    - the earliest task wins a tie,
    - a task is never returned unless at least one term hits its title.
    """
    terms = search_terms(text, stop_words)
    if not terms:
        return None

    best: Task | None = None
    best_score = 0

    for task in tasks:
        title = task.title.lower()
        score = sum(1 for term in terms if term in title)
        if score > best_score:
            best_score = score
            best = task

    logger.debug(
        "Resolver terms=%s best_id=%s score=%d",
        terms,
        best.id if best is not None else None,
        best_score,
    )
    return best
