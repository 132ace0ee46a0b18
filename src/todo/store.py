from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .dates import NaturalDateParser, format_date, is_before_today, is_iso_date, parse_iso_date
from .models import (
    PRIORITY_RANK,
    Priority,
    SortOption,
    Task,
    UndoAction,
    UndoKind,
)
from .undo import UndoLog

UNSET = object()

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    return datetime.now().astimezone()


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskStore:
    """In-memory task collection with single-slot undo.

    The collection is kept newest first. Lookups for unknown ids degrade to
    no-ops and never raise. Every undo-eligible mutation overwrites the undo
    slot with the information needed to invert it.
    """

    def __init__(
        self,
        tasks: Optional[Iterable[Task]] = None,
        *,
        date_parser=None,
        undo_log: Optional[UndoLog] = None,
        clock: Callable[[], datetime] = local_now,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._tasks: List[Task] = []
        seen = set()
        for task in tasks or []:
            if task.id in seen:
                logger.warning("Dropping duplicate task id %s on load", task.id)
                continue
            seen.add(task.id)
            self._tasks.append(task.snapshot())
        self.date_parser = date_parser or NaturalDateParser()
        self.undo_log = undo_log or UndoLog()
        self._clock = clock
        self._id_factory = id_factory

    def __len__(self) -> int:
        return len(self._tasks)

    def now(self) -> datetime:
        return self._clock()

    @property
    def tasks(self) -> List[Task]:
        """Copies of every task, newest first."""
        return [task.snapshot() for task in self._tasks]

    def get(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        return task.snapshot() if task else None

    def _find(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def _record(self, action: UndoAction) -> None:
        self.undo_log.record(action)

    def create(
        self,
        text: str,
        *,
        priority: Optional[Union[Priority, str]] = None,
        due_date: Optional[Union[str, date]] = None,
        location: Optional[str] = None,
    ) -> Task:
        """Insert a new incomplete task and record an ``add`` undo entry.

        Raises:
            ValueError: ``text`` is empty
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("task text must not be empty")
        now = self._clock()
        task_id = self._id_factory()
        while self._find(task_id) is not None:
            task_id = self._id_factory()
        task = Task(
            id=task_id,
            text=text,
            completed=False,
            priority=Priority(priority) if priority else None,
            due_date=self._coerce_due_date(due_date, None, now),
            location=(location or "").strip() or None,
            created_at=now,
            last_updated=now,
        )
        self._tasks.insert(0, task)
        self._record(UndoAction(UndoKind.ADD, task_id=task.id))
        logger.debug("Created task %s: %s", task.id, task.text)
        return task.snapshot()

    def _coerce_due_date(self, value: Any, previous: Optional[str], now: datetime) -> Optional[str]:
        """Normalise a due date value to ``YYYY-MM-DD``.

        Natural-language expressions go through the date parser; when parsing
        fails the previous value is kept.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return format_date(value.date())
        if isinstance(value, date):
            return format_date(value)
        text = str(value).strip()
        if not text:
            return previous
        if is_iso_date(text):
            return text
        parsed = self.date_parser.parse_date(text, now)
        if parsed is None:
            logger.info("Could not parse due date %r; keeping %r", text, previous)
            return previous
        return format_date(parsed.date())

    def _apply(self, task: Task, fields: Dict[str, Any], now: datetime) -> bool:
        """Write the given fields; True only when a stored value actually changed."""
        changed = False
        if fields.get("text") is not None and str(fields["text"]).strip():
            text = str(fields["text"]).strip()
            if text != task.text:
                task.text = text
                changed = True
        if "priority" in fields and fields["priority"] is not UNSET:
            value = fields["priority"]
            priority = Priority(value) if value else None
            if priority is not task.priority:
                task.priority = priority
                changed = True
        if "due_date" in fields and fields["due_date"] is not UNSET:
            due_date = self._coerce_due_date(fields["due_date"], task.due_date, now)
            if due_date != task.due_date:
                task.due_date = due_date
                changed = True
        if "location" in fields and fields["location"] is not UNSET:
            location = (fields["location"] or "").strip() or None
            if location != task.location:
                task.location = location
                changed = True
        if fields.get("completed") is not None:
            completed = bool(fields["completed"])
            if completed != task.completed:
                task.completed = completed
                changed = True
        if changed:
            task.last_updated = max(now, task.created_at)
        return changed

    def update(
        self,
        task_id: str,
        *,
        text: Optional[str] = None,
        priority: Any = UNSET,
        due_date: Any = UNSET,
        location: Any = UNSET,
        completed: Optional[bool] = None,
    ) -> Optional[Task]:
        """Merge fields into one task and record an ``update`` undo entry.

        Unknown ids are a silent no-op. ``due_date=None`` clears the date;
        leaving it UNSET keeps it.
        """
        task = self._find(task_id)
        if task is None:
            logger.debug("Update skipped, task %s not found", task_id)
            return None
        fields = {
            "text": text,
            "priority": priority,
            "due_date": due_date,
            "location": location,
            "completed": completed,
        }
        original = task.snapshot()
        if not self._apply(task, fields, self._clock()):
            return task.snapshot()
        self._record(UndoAction(UndoKind.UPDATE, snapshots=[original]))
        return task.snapshot()

    def update_many(self, changes: Iterable[Tuple[str, Dict[str, Any]]]) -> List[Task]:
        """Apply independent per-task changes as one undoable batch."""
        now = self._clock()
        originals: List[Task] = []
        updated: List[Task] = []
        for task_id, fields in changes:
            task = self._find(task_id)
            if task is None:
                continue
            original = task.snapshot()
            if self._apply(task, fields, now):
                if all(snapshot.id != task_id for snapshot in originals):
                    originals.append(original)
                updated.append(task.snapshot())
        if originals:
            self._record(UndoAction(UndoKind.COMPLETE_MANY, snapshots=originals))
        return updated

    def toggle(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        if task is None:
            return None
        return self.update(task_id, completed=not task.completed)

    def set_completed(self, task_ids: Iterable[str], completed: bool) -> int:
        wanted = set(task_ids)
        now = self._clock()
        originals = []
        for task in self._tasks:
            if task.id in wanted and task.completed != completed:
                originals.append(task.snapshot())
                task.completed = completed
                task.last_updated = max(now, task.created_at)
        if not originals:
            return 0
        self._record(UndoAction(UndoKind.COMPLETE_MANY, snapshots=originals))
        return len(originals)

    def delete(self, task_ids: Union[str, Iterable[str]]) -> int:
        """Remove tasks by id; ``delete`` undo for one, ``delete-many`` for several."""
        wanted = {task_ids} if isinstance(task_ids, str) else set(task_ids)
        removed = [task for task in self._tasks if task.id in wanted]
        if not removed:
            return 0
        self._tasks = [task for task in self._tasks if task.id not in wanted]
        if len(removed) == 1:
            self._record(UndoAction(UndoKind.DELETE, snapshots=removed))
        else:
            self._record(UndoAction(UndoKind.DELETE_MANY, snapshots=removed))
        logger.debug("Deleted %d task(s)", len(removed))
        return len(removed)

    def overdue_tasks(self, now: Optional[datetime] = None) -> List[Task]:
        """Tasks due strictly before today, whatever their completion state."""
        now = now or self._clock()
        return [task.snapshot() for task in self._tasks if is_before_today(task.due_date, now)]

    def delete_overdue(self, now: Optional[datetime] = None) -> int:
        overdue_ids = {task.id for task in self.overdue_tasks(now)}
        if not overdue_ids:
            return 0
        removed = [task for task in self._tasks if task.id in overdue_ids]
        self._tasks = [task for task in self._tasks if task.id not in overdue_ids]
        self._record(UndoAction(UndoKind.DELETE_MANY, snapshots=removed))
        return len(removed)

    def delete_all(self) -> int:
        if not self._tasks:
            return 0
        removed = self._tasks
        self._tasks = []
        self._record(UndoAction(UndoKind.DELETE_MANY, snapshots=removed))
        return len(removed)

    def revert_last(self) -> Optional[UndoAction]:
        """Invert the pending undo entry and clear the slot.

        Returns:
            the reverted UndoAction, or None when the slot was empty
        """
        action = self.undo_log.take()
        if action is None:
            return None

        if action.kind is UndoKind.ADD:
            self._tasks = [task for task in self._tasks if task.id != action.task_id]
        elif action.kind in (UndoKind.DELETE, UndoKind.DELETE_MANY):
            present = {task.id for task in self._tasks}
            restored = [snapshot.snapshot() for snapshot in action.snapshots if snapshot.id not in present]
            self._tasks = sorted(
                self._tasks + restored, key=lambda task: task.created_at, reverse=True
            )
        else:
            originals = {snapshot.id: snapshot for snapshot in action.snapshots}
            self._tasks = [
                originals[task.id].snapshot() if task.id in originals else task
                for task in self._tasks
            ]
        logger.info("Reverted %s affecting %d task(s)", action.kind.value, len(action.task_ids))
        return action

    def sorted(
        self,
        criterion: Union[SortOption, str] = SortOption.CREATION_DATE,
        *,
        completed_last: bool = False,
    ) -> List[Task]:
        """Stable ordered view of the collection."""
        criterion = SortOption(criterion)
        ordered = sort_tasks(self.tasks, criterion)
        if completed_last:
            ordered = [task for task in ordered if not task.completed] + [
                task for task in ordered if task.completed
            ]
        return ordered


def sort_tasks(tasks: Sequence[Task], criterion: SortOption) -> List[Task]:
    """Python's sort is stable, including with ``reverse=True``."""
    if criterion is SortOption.DUE_DATE:
        return sorted(
            tasks,
            key=lambda task: (
                parse_iso_date(task.due_date) is None,
                parse_iso_date(task.due_date) or date.max,
            ),
        )
    if criterion is SortOption.LAST_UPDATED:
        return sorted(tasks, key=lambda task: task.last_updated, reverse=True)
    if criterion is SortOption.PRIORITY_HIGH_TO_LOW:
        return sorted(tasks, key=lambda task: PRIORITY_RANK[task.priority])
    if criterion is SortOption.PRIORITY_LOW_TO_HIGH:
        return sorted(tasks, key=lambda task: PRIORITY_RANK[task.priority], reverse=True)
    return sorted(tasks, key=lambda task: task.created_at, reverse=True)
