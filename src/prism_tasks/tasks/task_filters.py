# src/prism_tasks/tasks/task_filters.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .task_models import Priority, Task


class FilterStatus(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortOption(StrEnum):
    DATE_ADDED = "date-added"
    PRIORITY = "priority"
    DUE_DATE = "due-date"
    ALPHABETICAL = "alphabetical"


PRIORITY_RANK: dict[Priority, int] = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


@dataclass(slots=True)
class FilterState:
    search: str = ""
    status: FilterStatus = FilterStatus.ALL
    priority: Priority | None = None  # None = any priority
    sort: SortOption = SortOption.DATE_ADDED


def _matches_search(task: Task, query: str) -> bool:
    q = query.lower()
    return (
        q in task.title.lower()
        or q in task.description.lower()
        or any(q in tag.lower() for tag in task.tags)
    )


def _due_key(task: Task) -> tuple[int, float]:
    # Tasks without a due date go last.
    if task.due_date is None:
        return (1, 0.0)
    return (0, task.due_date.timestamp())


def filter_and_sort(tasks: Iterable[Task], filters: FilterState) -> list[Task]:
    result = list(tasks)

    if filters.status is FilterStatus.ACTIVE:
        result = [t for t in result if not t.is_completed]
    elif filters.status is FilterStatus.COMPLETED:
        result = [t for t in result if t.is_completed]

    if filters.priority is not None:
        result = [t for t in result if t.priority is filters.priority]

    if filters.search:
        result = [t for t in result if _matches_search(t, filters.search)]

    if filters.sort is SortOption.PRIORITY:
        result.sort(key=lambda t: PRIORITY_RANK[t.priority], reverse=True)
    elif filters.sort is SortOption.DUE_DATE:
        result.sort(key=_due_key)
    elif filters.sort is SortOption.ALPHABETICAL:
        result.sort(key=lambda t: t.title.casefold())
    else:
        result.sort(key=lambda t: t.created_at, reverse=True)

    return result
