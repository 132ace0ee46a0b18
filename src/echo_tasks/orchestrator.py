"""
Command orchestration

Interprets one voice command (an ordered action list) against the task
store. Actions run strictly in order and each one sees the effects of the
previous ones. Destructive or ambiguous steps do not block: they suspend the
batch as a PendingDecision and return control to the caller, and
``resume`` later applies (or skips) the deferred operation before carrying
on with the remaining actions.

Related classes:
  - src.todo.store.TaskStore: every mutation goes through it
  - src.todo.resolver.TaskResolver: maps filters to task ids
  - actions.ParsedCommand: validated input
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Optional, Sequence, Union

from src.todo.dates import NaturalDateParser, format_date, is_iso_date, parse_iso_date, shift_date
from src.todo.models import Priority, Settings, Task, TaskStatus
from src.todo.priority import DEFAULT_KEYWORDS, PriorityKeywords, detect_priority
from src.todo.resolver import TaskResolver, resolve_positions
from src.todo.store import UNSET, TaskStore

from .actions import Action, ActionFilter, Intent, ParsedCommand, QueryType, TaskUpdates, normalize_actions
from .exceptions import CommandInProgressError, DecisionNotFoundError

logger = logging.getLogger(__name__)


class ActionStatus(str, Enum):
    APPLIED = "applied"
    PENDING = "pending"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    NOOP = "noop"
    SHOWN = "shown"
    ANSWERED = "answered"
    UNKNOWN = "unknown"


class DecisionKind(str, Enum):
    CONFIRM = "confirm"
    SELECT = "select"


class DeferredOperation(str, Enum):
    DELETE_TASKS = "delete_tasks"
    DELETE_OVERDUE = "delete_overdue"
    DELETE_ALL = "delete_all"
    COMPLETE_TASKS = "complete_tasks"
    UPDATE_TASKS = "update_tasks"


@dataclass
class ActionResult:
    intent: Intent
    status: ActionStatus
    message: str = ""
    task_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "status": self.status.value,
            "message": self.message,
            "task_ids": list(self.task_ids),
        }


@dataclass
class PendingDecision:
    """What to do if the user confirms.

    CONFIRM decisions apply to every candidate. SELECT decisions let the
    caller pass the subset of ``task_ids`` to act on.
    """

    id: str
    kind: DecisionKind
    operation: DeferredOperation
    intent: Intent
    title: str
    description: str
    task_ids: List[str] = field(default_factory=list)
    updates: Optional[TaskUpdates] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "operation": self.operation.value,
            "intent": self.intent.value,
            "title": self.title,
            "description": self.description,
            "task_ids": list(self.task_ids),
            "updates": self.updates.model_dump(mode="json", exclude_none=True) if self.updates else None,
        }


@dataclass
class TaskView:
    """Read-only filtered view produced by SHOW_TASKS."""

    title: str
    task_ids: List[str]
    empty_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "task_ids": list(self.task_ids), "empty_message": self.empty_message}


@dataclass
class CommandCounters:
    added: int = 0
    updated: int = 0
    completed: int = 0
    uncompleted: int = 0
    deleted: int = 0
    duplicates: int = 0
    not_found: int = 0
    cancelled: int = 0
    unknown: int = 0


@dataclass
class CommandOutcome:
    transcript: str
    results: List[ActionResult] = field(default_factory=list)
    views: List[TaskView] = field(default_factory=list)
    pending_decision: Optional[PendingDecision] = None
    counters: CommandCounters = field(default_factory=CommandCounters)
    summary: str = ""
    retryable: bool = False
    error: Optional[str] = None

    @property
    def is_suspended(self) -> bool:
        return self.pending_decision is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": self.transcript,
            "results": [result.to_dict() for result in self.results],
            "views": [view.to_dict() for view in self.views],
            "pending_decision": self.pending_decision.to_dict() if self.pending_decision else None,
            "counters": asdict(self.counters),
            "summary": self.summary,
            "retryable": self.retryable,
            "error": self.error,
        }


@dataclass
class _Batch:
    transcript: str
    original_query: Optional[str]
    remaining: Deque[Action]
    total_actions: int
    results: List[ActionResult] = field(default_factory=list)
    views: List[TaskView] = field(default_factory=list)
    counters: CommandCounters = field(default_factory=CommandCounters)
    decision: Optional[PendingDecision] = None
    decision_result: Optional[ActionResult] = None


def _plural(count: int, noun: str = "task") -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def build_summary(counters: CommandCounters, results: Sequence[ActionResult], total_actions: int,
                  pending: Optional[PendingDecision] = None) -> str:
    """Human readable summary from the per-kind counters."""
    parts: List[str] = []
    if counters.added:
        parts.append(f"Added {_plural(counters.added)}.")
    if counters.updated:
        parts.append(f"Updated {_plural(counters.updated)}.")
    if counters.completed:
        parts.append(f"Completed {_plural(counters.completed)}.")
    if counters.uncompleted:
        parts.append(f"Marked {_plural(counters.uncompleted)} as not done.")
    if counters.deleted:
        parts.append(f"Deleted {_plural(counters.deleted)}.")
    if counters.duplicates:
        parts.append(f"{_plural(counters.duplicates)} already on your list.")
    if counters.not_found:
        parts.append(f"{_plural(counters.not_found, 'request')} matched no tasks.")
    if counters.cancelled:
        parts.append(f"Cancelled {_plural(counters.cancelled, 'request')}.")
    for result in results:
        if result.status in (ActionStatus.SHOWN, ActionStatus.ANSWERED) or (
            result.intent is Intent.SORT_BY and result.status is ActionStatus.APPLIED
        ):
            parts.append(result.message)
        elif result.status is ActionStatus.NOOP and result.message:
            parts.append(result.message)
    if pending is not None:
        parts.append(f"Waiting for confirmation: {pending.title}")

    if not parts:
        if counters.unknown and counters.unknown >= total_actions:
            return "Could not understand command."
        if counters.unknown:
            return "Some parts of your command were not understood."
        return "No changes were made."
    return " ".join(parts)


class CommandOrchestrator:
    """Apply action lists to a TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        resolver: Optional[TaskResolver] = None,
        *,
        settings: Optional[Settings] = None,
        date_parser=None,
        priority_keywords: PriorityKeywords = DEFAULT_KEYWORDS,
        default_priority: Optional[Union[Priority, str]] = Priority.MEDIUM,
    ):
        self.store = store
        self.date_parser = date_parser or store.date_parser or NaturalDateParser()
        self.resolver = resolver or TaskResolver(date_parser=self.date_parser)
        self.settings = settings or Settings()
        self.priority_keywords = priority_keywords
        self.default_priority = Priority(default_priority) if default_priority else None
        self._suspended: Optional[_Batch] = None

    @property
    def pending_decision(self) -> Optional[PendingDecision]:
        return self._suspended.decision if self._suspended else None

    def display_tasks(self) -> List[Task]:
        """Tasks in the order the user currently sees them."""
        return self.store.sorted(
            self.settings.sort_option,
            completed_last=self.settings.move_completed_to_bottom,
        )

    def submit_command(
        self,
        actions: Union[ParsedCommand, Iterable[Action], Dict[str, Any], List[Any], str],
        transcript: str = "",
    ) -> CommandOutcome:
        """Interpret one command's action list.

        Raises:
            CommandInProgressError: a previous command still waits for a decision
        """
        if self._suspended is not None:
            raise CommandInProgressError(
                f"Decision {self._suspended.decision.id} must be resolved first"
            )
        if isinstance(actions, (list, tuple)) and actions and all(isinstance(a, Action) for a in actions):
            parsed = ParsedCommand(actions=list(actions))
        else:
            parsed = normalize_actions(actions)

        batch = _Batch(
            transcript=transcript or "",
            original_query=parsed.original_query,
            remaining=deque(parsed.actions),
            total_actions=len(parsed.actions),
        )
        logger.info("Processing command with %d action(s)", batch.total_actions)
        return self._run(batch)

    def resume(
        self,
        decision_id: str,
        confirmed: bool,
        selected_ids: Optional[Iterable[str]] = None,
    ) -> CommandOutcome:
        """Resolve the pending decision and continue the suspended batch.

        Raises:
            DecisionNotFoundError: no pending decision has this id
        """
        batch = self._suspended
        if batch is None or batch.decision is None or batch.decision.id != decision_id:
            raise DecisionNotFoundError(f"No pending decision {decision_id}")

        decision, result = batch.decision, batch.decision_result
        batch.decision = None
        batch.decision_result = None
        self._suspended = None

        if confirmed:
            self._apply_decision(decision, result, batch, selected_ids)
        else:
            batch.counters.cancelled += 1
            if result is not None:
                result.status = ActionStatus.CANCELLED
                result.message = f"Cancelled: {decision.title}"
            logger.info("Decision %s cancelled", decision.id)
        return self._run(batch)

    def cancel_pending(self) -> Optional[CommandOutcome]:
        decision = self.pending_decision
        if decision is None:
            return None
        return self.resume(decision.id, confirmed=False)

    def _run(self, batch: _Batch) -> CommandOutcome:
        handlers = {
            Intent.ADD_TASK: self._add_tasks,
            Intent.DELETE_TASK: self._delete_tasks,
            Intent.DELETE_OVERDUE: self._delete_overdue,
            Intent.DELETE_ALL: self._delete_all,
            Intent.MARK_COMPLETED: self._mark_completed,
            Intent.MARK_INCOMPLETE: self._mark_incomplete,
            Intent.UPDATE_TASK: self._update_tasks,
            Intent.SORT_BY: self._sort_by,
            Intent.SHOW_TASKS: self._show_tasks,
            Intent.QUERY_TASK_INFO: self._query_task_info,
        }
        while batch.remaining:
            action = batch.remaining.popleft()
            now = self.store.now()
            handler = handlers.get(action.intent)
            if handler is None:
                batch.counters.unknown += 1
                batch.results.append(ActionResult(action.intent, ActionStatus.UNKNOWN))
                continue
            handler(action, batch, now)
            if batch.decision is not None:
                self._suspended = batch
                logger.info("Command suspended on decision %s", batch.decision.id)
                return self._outcome(batch)
        return self._outcome(batch)

    def _outcome(self, batch: _Batch) -> CommandOutcome:
        return CommandOutcome(
            transcript=batch.transcript,
            results=list(batch.results),
            views=list(batch.views),
            pending_decision=batch.decision,
            counters=batch.counters,
            summary=build_summary(batch.counters, batch.results, batch.total_actions, batch.decision),
        )

    def _suspend(
        self,
        batch: _Batch,
        action: Action,
        kind: DecisionKind,
        operation: DeferredOperation,
        title: str,
        description: str,
        task_ids: Sequence[str] = (),
        updates: Optional[TaskUpdates] = None,
    ) -> None:
        decision = PendingDecision(
            id=str(uuid.uuid4()),
            kind=kind,
            operation=operation,
            intent=action.intent,
            title=title,
            description=description,
            task_ids=list(task_ids),
            updates=updates,
        )
        result = ActionResult(action.intent, ActionStatus.PENDING, title, list(task_ids))
        batch.results.append(result)
        batch.decision = decision
        batch.decision_result = result

    def _resolve(self, action_filter: Optional[ActionFilter], now: datetime, default_all: bool = False) -> List[str]:
        if action_filter is None:
            return [task.id for task in self.store.tasks] if default_all else []
        return self.resolver.resolve(
            self.store.tasks, self.display_tasks(), action_filter.to_task_filter(), now
        )

    def _not_found(self, batch: _Batch, action: Action, message: str = "Task not found") -> None:
        batch.counters.not_found += 1
        batch.results.append(ActionResult(action.intent, ActionStatus.NOT_FOUND, message))

    # ADD_TASK

    def _add_tasks(self, action: Action, batch: _Batch, now: datetime) -> None:
        descriptors = [descriptor for descriptor in action.tasks if descriptor.text]
        if not descriptors:
            batch.counters.unknown += 1
            batch.results.append(
                ActionResult(action.intent, ActionStatus.UNKNOWN, "No task description found")
            )
            return

        added_ids = set()
        for descriptor in descriptors:
            incomplete = [
                task for task in self.store.tasks if not task.completed and task.id not in added_ids
            ]
            matches = self.resolver.match_topic(incomplete, descriptor.text)

            if matches and not descriptor.has_details():
                self._duplicate(batch, action, matches[0])
                continue

            if matches:
                target = self._best_match(matches, descriptor.text)
                before = self.store.get(target.id)
                updated = self.store.update(
                    target.id,
                    priority=descriptor.priority or UNSET,
                    due_date=descriptor.due_date or UNSET,
                    location=descriptor.location or UNSET,
                )
                if updated is None:
                    continue
                if updated == before:
                    if self._unparseable_date(descriptor.due_date, now):
                        batch.results.append(
                            ActionResult(
                                action.intent,
                                ActionStatus.NOOP,
                                self._unchanged_message(descriptor.due_date, now),
                                [updated.id],
                            )
                        )
                    else:
                        self._duplicate(batch, action, updated)
                    continue
                batch.counters.updated += 1
                batch.results.append(
                    ActionResult(
                        action.intent,
                        ActionStatus.APPLIED,
                        f'Updated existing task "{updated.text}"',
                        [updated.id],
                    )
                )
                continue

            priority = descriptor.priority or self._infer_priority(descriptor, action, batch, now)
            task = self.store.create(
                descriptor.text,
                priority=priority,
                due_date=self._infer_due_date(descriptor, batch, now),
                location=descriptor.location,
            )
            added_ids.add(task.id)
            batch.counters.added += 1
            batch.results.append(
                ActionResult(action.intent, ActionStatus.APPLIED, f'Added "{task.text}"', [task.id])
            )

    @staticmethod
    def _duplicate(batch: _Batch, action: Action, task: Task) -> None:
        batch.counters.duplicates += 1
        batch.results.append(
            ActionResult(action.intent, ActionStatus.DUPLICATE, f'"{task.text}" already exists', [task.id])
        )

    def _unparseable_date(self, value: Optional[str], now: datetime) -> bool:
        return bool(value) and not is_iso_date(value) and self.date_parser.parse_date(value, now) is None

    def _unchanged_message(self, due_date: Optional[str], now: datetime) -> str:
        if self._unparseable_date(due_date, now):
            return f'Could not understand the date "{due_date}".'
        return "Nothing needed changing."

    @staticmethod
    def _best_match(matches: Sequence[Task], text: str) -> Task:
        wanted = text.strip().lower()
        for task in matches:
            if task.text.strip().lower() == wanted:
                return task
        return matches[0]

    def _infer_priority(self, descriptor, action: Action, batch: _Batch, now: datetime) -> Optional[Priority]:
        if len(action.tasks) == 1 and batch.transcript:
            source = batch.transcript
        else:
            source = " ".join(part for part in (descriptor.text, descriptor.due_date) if part)
        result = detect_priority(
            source, now, date_parser=self.date_parser, keywords=self.priority_keywords
        )
        logger.debug("Priority for %r: %s (%s)", descriptor.text, result.label, result.reason)
        return result.priority or self.default_priority

    def _infer_due_date(self, descriptor, batch: _Batch, now: datetime) -> Optional[str]:
        for source in (descriptor.due_date, batch.transcript):
            if not source:
                continue
            day = parse_iso_date(source)
            if day is not None:
                return format_date(day)
            parsed = self.date_parser.parse_date(source, now)
            if parsed is not None:
                return format_date(parsed.date())
        return None

    # DELETE_TASK / DELETE_OVERDUE / DELETE_ALL

    def _delete_tasks(self, action: Action, batch: _Batch, now: datetime) -> None:
        ids = self._resolve(action.filter, now)
        if not ids:
            self._not_found(batch, action)
            return

        if len(ids) == 1:
            task = self.store.get(ids[0])
            if task is not None and task.priority is not Priority.HIGH:
                batch.counters.deleted += self.store.delete(task.id)
                batch.results.append(
                    ActionResult(action.intent, ActionStatus.APPLIED, f'Deleted "{task.text}"', [task.id])
                )
                return
            title = f'Delete high-priority task "{task.text}"?' if task else "Delete 1 task?"
        else:
            title = f"Delete {len(ids)} tasks?"

        self._suspend(
            batch,
            action,
            DecisionKind.CONFIRM,
            DeferredOperation.DELETE_TASKS,
            title,
            "This cannot be undone, but you can use the undo button afterward.",
            ids,
        )

    def _delete_overdue(self, action: Action, batch: _Batch, now: datetime) -> None:
        overdue = self.store.overdue_tasks(now)
        if not overdue:
            batch.results.append(
                ActionResult(action.intent, ActionStatus.NOOP, "You have no overdue tasks to delete.")
            )
            return
        self._suspend(
            batch,
            action,
            DecisionKind.CONFIRM,
            DeferredOperation.DELETE_OVERDUE,
            f"Delete {_plural(len(overdue), 'overdue task')}?",
            "This cannot be undone, but you can use the undo button afterward.",
            [task.id for task in overdue],
        )

    def _delete_all(self, action: Action, batch: _Batch, now: datetime) -> None:
        if len(self.store) == 0:
            batch.results.append(
                ActionResult(action.intent, ActionStatus.NOOP, "Your to-do list is already empty.")
            )
            return
        self._suspend(
            batch,
            action,
            DecisionKind.CONFIRM,
            DeferredOperation.DELETE_ALL,
            f"Delete all {_plural(len(self.store))}?",
            "This cannot be undone, but you can use the undo button afterward.",
            [task.id for task in self.store.tasks],
        )

    # MARK_COMPLETED / MARK_INCOMPLETE

    def _mark_completed(self, action: Action, batch: _Batch, now: datetime) -> None:
        action_filter = action.filter
        if action_filter is not None and action_filter.positions:
            ids = resolve_positions(self.display_tasks(), action_filter.positions)
        elif action_filter is not None and action_filter.text:
            incomplete = [task for task in self.store.tasks if not task.completed]
            ids = [task.id for task in self.resolver.match_topic(incomplete, action_filter.text)]
        else:
            ids = self._resolve(action_filter, now)

        if not ids:
            self._not_found(batch, action)
            return
        if len(ids) == 1:
            count = self.store.set_completed(ids, True)
            task = self.store.get(ids[0])
            if not count:
                batch.results.append(
                    ActionResult(action.intent, ActionStatus.NOOP, f'"{task.text}" is already done.', ids)
                )
                return
            batch.counters.completed += count
            batch.results.append(
                ActionResult(
                    action.intent,
                    ActionStatus.APPLIED,
                    f'Completed "{task.text}"' if task else "Completed 1 task",
                    ids,
                )
            )
            return
        self._suspend(
            batch,
            action,
            DecisionKind.SELECT,
            DeferredOperation.COMPLETE_TASKS,
            f"Which of these {len(ids)} tasks did you finish?",
            "Select the tasks to mark as completed.",
            ids,
        )

    def _mark_incomplete(self, action: Action, batch: _Batch, now: datetime) -> None:
        ids = self._resolve(action.filter, now)
        if not ids:
            batch.counters.unknown += 1
            batch.results.append(ActionResult(action.intent, ActionStatus.UNKNOWN))
            return
        count = self.store.set_completed(ids, False)
        if not count:
            batch.results.append(
                ActionResult(action.intent, ActionStatus.NOOP, "Those tasks are not marked as done.", ids)
            )
            return
        batch.counters.uncompleted += count
        batch.results.append(
            ActionResult(action.intent, ActionStatus.APPLIED, f"Marked {_plural(count)} as not done", ids)
        )

    # UPDATE_TASK

    def _update_tasks(self, action: Action, batch: _Batch, now: datetime) -> None:
        ids = self._resolve(action.filter, now)
        if not ids:
            self._not_found(batch, action)
            return
        if action.updates is None or action.updates.is_empty():
            self._not_found(batch, action, "No update specified")
            return
        if len(ids) == 1:
            count = self._apply_updates(ids, action.updates, now)
            if not count:
                batch.results.append(
                    ActionResult(
                        action.intent,
                        ActionStatus.NOOP,
                        self._unchanged_message(action.updates.due_date, now),
                        ids,
                    )
                )
                return
            batch.counters.updated += count
            batch.results.append(
                ActionResult(action.intent, ActionStatus.APPLIED, f"Updated {_plural(count)}", ids)
            )
            return

        action_filter = action.filter
        date_bulk = (
            action_filter is not None
            and bool(action_filter.due_date)
            and not action_filter.text
            and not action_filter.positions
        )
        self._suspend(
            batch,
            action,
            DecisionKind.CONFIRM if date_bulk else DecisionKind.SELECT,
            DeferredOperation.UPDATE_TASKS,
            f"Update {len(ids)} tasks?",
            "Confirm the tasks to change." if date_bulk else "Select the tasks to change.",
            ids,
            updates=action.updates,
        )

    def _apply_updates(self, ids: Sequence[str], updates: TaskUpdates, now: datetime) -> int:
        """Apply updates per task; relative shifts start from each task's own due date."""
        changes = []
        shift = updates.due_date_shift
        for task_id in ids:
            task = self.store.get(task_id)
            if task is None:
                continue
            fields: Dict[str, Any] = {}
            if updates.text:
                fields["text"] = updates.text
            if updates.priority:
                fields["priority"] = updates.priority
            if updates.location:
                fields["location"] = updates.location
            if shift is not None and not shift.is_zero():
                base = parse_iso_date(task.due_date) or now.date()
                fields["due_date"] = format_date(
                    shift_date(base, days=shift.days, weeks=shift.weeks, months=shift.months)
                )
            elif updates.due_date:
                fields["due_date"] = updates.due_date
            changes.append((task_id, fields))

        if not changes:
            return 0
        if len(changes) == 1:
            task_id, fields = changes[0]
            before = self.store.get(task_id)
            return 0 if self.store.update(task_id, **fields) == before else 1
        return len(self.store.update_many(changes))

    # SORT_BY / SHOW_TASKS / QUERY_TASK_INFO

    def _sort_by(self, action: Action, batch: _Batch, now: datetime) -> None:
        if action.sort_option is None:
            batch.counters.unknown += 1
            batch.results.append(
                ActionResult(action.intent, ActionStatus.UNKNOWN, "Sort option not recognized")
            )
            return
        self.settings.sort_option = action.sort_option
        batch.results.append(
            ActionResult(
                action.intent,
                ActionStatus.APPLIED,
                f"Tasks sorted by {action.sort_option.label}.",
            )
        )

    def _show_tasks(self, action: Action, batch: _Batch, now: datetime) -> None:
        matched = set(self._resolve(action.filter, now, default_all=True))
        ordered = [task.id for task in self.display_tasks() if task.id in matched]
        query = action.original_query or batch.original_query
        title = f"Tasks: {query}" if query else "Your tasks"
        if ordered:
            view = TaskView(title, ordered)
            message = f"Showing {_plural(len(ordered))}."
        else:
            message = self._empty_message(action.filter, query)
            view = TaskView(title, [], message)
        batch.views.append(view)
        batch.results.append(ActionResult(action.intent, ActionStatus.SHOWN, message, ordered))

    @staticmethod
    def _empty_message(action_filter: Optional[ActionFilter], query: Optional[str]) -> str:
        if action_filter is not None:
            if action_filter.status is TaskStatus.OVERDUE:
                return "You have no overdue tasks. Nice work!"
            if action_filter.status is TaskStatus.COMPLETED:
                return "You haven't completed any tasks yet."
            if Priority.HIGH in action_filter.priority:
                return "You have no high-priority tasks."
        if query:
            return f'No tasks found for "{query}".'
        return "No tasks match your request."

    def _query_task_info(self, action: Action, batch: _Batch, now: datetime) -> None:
        ids = self._resolve(action.filter, now, default_all=True)
        action_filter = action.filter
        query_type = action.query_type
        if query_type is None:
            no_filter = action_filter is None or action_filter.to_task_filter().is_empty()
            query_type = QueryType.COUNT if no_filter else QueryType.DETAILS

        if query_type is QueryType.COUNT:
            if action_filter is None or action_filter.to_task_filter().is_empty():
                message = f"You have {_plural(len(ids))}."
            else:
                message = f"{_plural(len(ids))} match."
            batch.results.append(ActionResult(action.intent, ActionStatus.ANSWERED, message, ids))
            return

        if not ids:
            self._not_found(batch, action)
            return
        if len(ids) > 1:
            batch.results.append(
                ActionResult(
                    action.intent,
                    ActionStatus.ANSWERED,
                    f"I found {len(ids)} matching tasks. Please be more specific.",
                    ids,
                )
            )
            return

        task = self.store.get(ids[0])
        if task is None:
            self._not_found(batch, action)
            return
        batch.results.append(
            ActionResult(action.intent, ActionStatus.ANSWERED, describe_task(task, query_type), ids)
        )

    # Decisions

    def _apply_decision(
        self,
        decision: PendingDecision,
        result: Optional[ActionResult],
        batch: _Batch,
        selected_ids: Optional[Iterable[str]],
    ) -> None:
        ids = list(decision.task_ids)
        if decision.kind is DecisionKind.SELECT and selected_ids is not None:
            chosen = set(selected_ids)
            ids = [task_id for task_id in ids if task_id in chosen]

        now = self.store.now()
        operation = decision.operation
        count = 0
        if operation is DeferredOperation.DELETE_TASKS:
            count = self.store.delete(ids) if ids else 0
            batch.counters.deleted += count
            message = f"Deleted {_plural(count)}"
        elif operation is DeferredOperation.DELETE_OVERDUE:
            count = self.store.delete_overdue(now)
            batch.counters.deleted += count
            message = f"Deleted {_plural(count, 'overdue task')}"
        elif operation is DeferredOperation.DELETE_ALL:
            count = self.store.delete_all()
            batch.counters.deleted += count
            message = "Your to-do list is clear!"
        elif operation is DeferredOperation.COMPLETE_TASKS:
            count = self.store.set_completed(ids, True) if ids else 0
            batch.counters.completed += count
            message = f"Completed {_plural(count)}" if count else "Those tasks are already done."
        else:
            count = self._apply_updates(ids, decision.updates, now) if ids and decision.updates else 0
            batch.counters.updated += count
            if count:
                message = f"Updated {_plural(count)}"
            else:
                message = self._unchanged_message(decision.updates.due_date if decision.updates else None, now)

        logger.info("Decision %s confirmed: %s (%d task(s))", decision.id, operation.value, count)
        if result is not None:
            result.status = ActionStatus.APPLIED if count else ActionStatus.NOOP
            result.message = message
            result.task_ids = ids


def describe_task(task: Task, query_type: QueryType) -> str:
    if query_type is QueryType.DEADLINE:
        if task.due_date:
            return f'"{task.text}" is due on {task.due_date}.'
        return f'"{task.text}" has no due date.'
    if query_type is QueryType.PRIORITY:
        if task.priority:
            return f'"{task.text}" has {task.priority.value} priority.'
        return f'"{task.text}" has no priority set.'
    status = "completed" if task.completed else "not completed"
    due = f"due {task.due_date}" if task.due_date else "no due date"
    priority = f"{task.priority.value} priority" if task.priority else "no priority"
    location = f" at {task.location}" if task.location else ""
    return f'"{task.text}": {priority}, {due}{location}, {status}.'
