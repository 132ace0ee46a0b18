"""Task domain: the store, its undo slot, reference resolution and heuristics."""

from .dates import DateRange, NaturalDateParser
from .models import (
    Position,
    PositionRange,
    Priority,
    Settings,
    SortOption,
    Task,
    TaskFilter,
    TaskStatus,
    UndoAction,
    UndoKind,
)
from .priority import PriorityResult, detect_priority
from .repository import StateRepository, seed_tasks
from .resolver import TaskResolver
from .store import TaskStore, UNSET
from .undo import UndoLog

__all__ = [
    "DateRange",
    "NaturalDateParser",
    "Position",
    "PositionRange",
    "Priority",
    "PriorityResult",
    "Settings",
    "SortOption",
    "StateRepository",
    "Task",
    "TaskFilter",
    "TaskResolver",
    "TaskStatus",
    "TaskStore",
    "UNSET",
    "UndoAction",
    "UndoKind",
    "UndoLog",
    "detect_priority",
    "seed_tasks",
]
