# src/prism_tasks/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        for p in cls:
            if p.value.lower() == str(raw).strip().lower():
                return p
        return cls.MEDIUM


class Recurrence(StrEnum):
    """
    How a task repeats once completed.

    Notes:
    - the successor instance is spawned by the task store on completion,
      never by the interpreter.
    """

    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @classmethod
    def from_raw(cls, raw: str | None) -> Recurrence:
        if not raw:
            return cls.NONE
        for r in cls:
            if r.value.lower() == str(raw).strip().lower():
                return r
        return cls.NONE


# Epoch values above this are milliseconds (JavaScript Date.now()).
MS_EPOCH_THRESHOLD = 1e11


def _epoch_seconds(raw: Any) -> float:
    value = float(raw or 0.0)
    if value > MS_EPOCH_THRESHOLD:
        return value / 1000.0
    return value


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    is_completed: bool = False
    priority: Priority = Priority.MEDIUM
    tags: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    recurrence: Recurrence = Recurrence.NONE
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "isCompleted": self.is_completed,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "dueDate": self.due_date.isoformat() if self.due_date is not None else None,
            "recurrence": self.recurrence.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from its JSON form.

        Raises KeyError/ValueError when `id` or `title` is missing or the due date
        is not ISO-8601; optional fields fall back to defaults.
        """
        raw_due = data.get("dueDate")
        due_date = datetime.fromisoformat(raw_due) if raw_due else None

        title = str(data["title"]).strip()
        if not title:
            raise ValueError("title is required")

        return cls(
            id=str(data["id"]),
            title=title,
            description=str(data.get("description") or ""),
            is_completed=bool(data.get("isCompleted", False)),
            priority=Priority.from_raw(data.get("priority")),
            tags=[str(t) for t in (data.get("tags") or [])],
            due_date=due_date,
            recurrence=Recurrence.from_raw(data.get("recurrence")),
            created_at=_epoch_seconds(data.get("createdAt")),
        )
