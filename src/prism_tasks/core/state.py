# src/prism_tasks/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..tasks.task_filters import FilterState
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings object (config.Settings or a test double with the same attributes).
    settings: Any
    task_store: TaskStore

    filters: FilterState = field(default_factory=FilterState)
    # Serializes mutations of task_store between the console and command handlers.
    lock: threading.RLock = field(default_factory=threading.RLock)
