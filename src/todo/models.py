from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Priority(str, Enum):
    """Task priority bucket."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Lower rank sorts first; unset priority ranks after every bucket.
PRIORITY_RANK: Dict[Optional[Priority], int] = {
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
    None: 4,
}


class SortOption(str, Enum):
    """Display orderings the user can pick by voice or from the menu."""

    CREATION_DATE = "creationDate"
    DUE_DATE = "dueDate"
    LAST_UPDATED = "lastUpdated"
    PRIORITY_HIGH_TO_LOW = "priorityHighToLow"
    PRIORITY_LOW_TO_HIGH = "priorityLowToHigh"

    @property
    def label(self) -> str:
        return {
            SortOption.CREATION_DATE: "date created",
            SortOption.DUE_DATE: "due date",
            SortOption.LAST_UPDATED: "last updated",
            SortOption.PRIORITY_HIGH_TO_LOW: "priority (high to low)",
            SortOption.PRIORITY_LOW_TO_HIGH: "priority (low to high)",
        }[self]


class TaskStatus(str, Enum):
    """Status selector used by filters."""

    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    OVERDUE = "overdue"


def _aware(moment: datetime) -> datetime:
    # Naive timestamps from older blobs are taken as local time.
    return moment if moment.tzinfo is not None else moment.astimezone()


@dataclass(slots=True)
class Task:
    """A single to-do item held by the TaskStore."""

    id: str
    text: str
    created_at: datetime
    last_updated: datetime
    completed: bool = False
    priority: Optional[Priority] = None
    due_date: Optional[str] = None  # YYYY-MM-DD, no time component
    location: Optional[str] = None

    def snapshot(self) -> "Task":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority.value if self.priority else None,
            "due_date": self.due_date,
            "location": self.location,
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Build a Task from a stored blob.

        Raises:
            KeyError: a required key is missing
            ValueError: a value cannot be converted
        """
        text = str(data["text"]).strip()
        if not text:
            raise ValueError("task text must not be empty")
        created_at = _aware(datetime.fromisoformat(data["created_at"]))
        last_updated = _aware(datetime.fromisoformat(data.get("last_updated") or data["created_at"]))
        priority = data.get("priority")
        return cls(
            id=str(data["id"]),
            text=text,
            completed=bool(data.get("completed", False)),
            priority=Priority(priority) if priority else None,
            due_date=data.get("due_date"),
            location=data.get("location"),
            created_at=created_at,
            last_updated=max(last_updated, created_at),
        )


@dataclass(frozen=True)
class PositionRange:
    """Inclusive 1-based range; negative bounds count from the end (-1 is last)."""

    start: int
    end: int


Position = Union[int, str, PositionRange]

POSITION_KEYWORDS = ("last", "second last", "odd", "even", "all")


@dataclass
class TaskFilter:
    """Declarative selector describing which tasks an action targets."""

    text: Optional[str] = None
    due_date: Optional[str] = None
    status: Optional[TaskStatus] = None
    priorities: List[Priority] = field(default_factory=list)
    location: Optional[str] = None
    positions: List[Position] = field(default_factory=list)

    def has_attributes(self) -> bool:
        return bool(
            self.text or self.due_date or self.status or self.priorities or self.location
        )

    def is_empty(self) -> bool:
        return not self.has_attributes() and not self.positions


class UndoKind(str, Enum):
    ADD = "add"
    DELETE = "delete"
    UPDATE = "update"
    DELETE_MANY = "delete-many"
    COMPLETE_MANY = "complete-many"


@dataclass(slots=True)
class UndoAction:
    """Enough state to exactly invert one store mutation.

    ADD carries only ``task_id``; every other kind carries the pre-mutation
    snapshots of the tasks it touched.
    """

    kind: UndoKind
    task_id: Optional[str] = None
    snapshots: List[Task] = field(default_factory=list)

    @property
    def task_ids(self) -> List[str]:
        if self.kind is UndoKind.ADD:
            return [self.task_id] if self.task_id else []
        return [task.id for task in self.snapshots]


@dataclass
class Settings:
    """User preferences persisted next to the task collection."""

    move_completed_to_bottom: bool = False
    sort_option: SortOption = SortOption.CREATION_DATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "move_completed_to_bottom": self.move_completed_to_bottom,
            "sort_option": self.sort_option.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Merge stored values over the defaults, ignoring unknown or invalid keys."""
        settings = cls()
        if isinstance(data.get("move_completed_to_bottom"), bool):
            settings.move_completed_to_bottom = data["move_completed_to_bottom"]
        try:
            if data.get("sort_option"):
                settings.sort_option = SortOption(data["sort_option"])
        except ValueError:
            pass
        return settings
