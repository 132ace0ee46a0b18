"""Reference resolution: map a TaskFilter onto concrete task ids.

Attribute passes (text, due date, status, priority, location) narrow the
creation-ordered collection one after another. Positions are evaluated
against the display order the user currently sees. When an action carries
any position, positions take exclusive precedence and the attribute passes
are skipped entirely.

Topic matching is substring and synonym based only. There is no edit
distance or embedding similarity, so recall on paraphrases is limited.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .dates import (
    ONE_MS,
    DateRange,
    NaturalDateParser,
    at_midday,
    end_of_day,
    is_before_today,
    parse_iso_date,
    start_of_day,
)
from .models import Position, PositionRange, Task, TaskFilter, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_SYNONYMS: Dict[str, List[str]] = {
    "grocery": ["groceries", "milk", "eggs", "bread", "vegetables", "fruit", "supermarket", "butter", "cheese"],
    "shopping": ["buy", "purchase", "order", "store", "mall"],
    "work": ["report", "meeting", "presentation", "email", "office", "project", "client", "deadline"],
    "health": ["doctor", "dentist", "gym", "workout", "medicine", "pharmacy", "appointment", "run"],
    "finance": ["pay", "bill", "bills", "rent", "tax", "taxes", "bank", "invoice", "insurance"],
    "family": ["mom", "dad", "mother", "father", "sister", "brother", "kids", "grandma"],
    "home": ["clean", "laundry", "dishes", "repair", "vacuum", "cook", "garden"],
    "travel": ["flight", "hotel", "ticket", "pack", "passport", "trip", "booking"],
}

# Function words carry no topic; they would match nearly every task.
STOPWORDS = frozenset(
    {"the", "and", "for", "with", "that", "this", "task", "tasks", "about", "from", "into", "all", "my"}
)


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def topic_tokens(topic: str) -> List[str]:
    return [word for word in re.split(r"\W+", normalize_text(topic)) if len(word) > 2 and word not in STOPWORDS]


def position_indices(count: int, positions: Iterable[Position]) -> List[int]:
    """Translate position expressions into sorted, de-duplicated 0-based indices."""
    indices: Set[int] = set()
    for position in positions:
        if isinstance(position, PositionRange):
            bounds = [_range_bound(position.start, count), _range_bound(position.end, count)]
            low, high = max(min(bounds), 0), min(max(bounds), count - 1)
            if low <= high:
                indices.update(range(low, high + 1))
        elif isinstance(position, bool):
            continue
        elif isinstance(position, int):
            if 1 <= position <= count:
                indices.add(position - 1)
        elif position == "last":
            if count > 0:
                indices.add(count - 1)
        elif position == "second last":
            if count >= 2:
                indices.add(count - 2)
        elif position == "odd":
            indices.update(range(0, count, 2))
        elif position == "even":
            indices.update(range(1, count, 2))
        elif position == "all":
            indices.update(range(count))
        else:
            logger.debug("Ignoring unsupported position %r", position)
    return sorted(indices)


def _range_bound(value: int, count: int) -> int:
    if value < 0:
        return count + value
    return max(value - 1, 0)


def resolve_positions(display_tasks: Sequence[Task], positions: Iterable[Position]) -> List[str]:
    return [display_tasks[index].id for index in position_indices(len(display_tasks), positions)]


def is_overdue(task: Task, now: datetime) -> bool:
    return not task.completed and is_before_today(task.due_date, now)


class TaskResolver:
    """Resolve declarative filters into task ids."""

    def __init__(self, date_parser=None, synonyms: Optional[Dict[str, List[str]]] = None):
        self.date_parser = date_parser or NaturalDateParser()
        self.synonyms = {
            key.lower(): [word.lower() for word in words]
            for key, words in (DEFAULT_SYNONYMS if synonyms is None else synonyms).items()
        }

    def resolve(
        self,
        all_tasks: Sequence[Task],
        display_tasks: Sequence[Task],
        task_filter: Optional[TaskFilter],
        now: Optional[datetime] = None,
    ) -> List[str]:
        """Return matching ids.

        Args:
            all_tasks: the collection in creation order
            display_tasks: the collection in current display order
            task_filter: selector; None selects every task
            now: single reference instant for the whole pass

        Returns:
            ids in creation order for attribute passes, in display order for positions
        """
        now = now or datetime.now().astimezone()
        if task_filter is None:
            return [task.id for task in all_tasks]

        if task_filter.positions:
            if task_filter.has_attributes():
                logger.debug("Positions override attribute filters: %s", task_filter)
            return resolve_positions(display_tasks, task_filter.positions)

        return [task.id for task in self.filter_tasks(all_tasks, task_filter, now)]

    def filter_tasks(self, tasks: Sequence[Task], task_filter: TaskFilter, now: datetime) -> List[Task]:
        matched = list(tasks)
        if task_filter.text:
            matched = self.match_topic(matched, task_filter.text)
        if task_filter.due_date:
            matched = self.filter_by_due_date(matched, task_filter.due_date, now)
        if task_filter.status is TaskStatus.OVERDUE:
            matched = [task for task in matched if is_overdue(task, now)]
        elif task_filter.status is TaskStatus.COMPLETED:
            matched = [task for task in matched if task.completed]
        elif task_filter.status is TaskStatus.INCOMPLETE:
            matched = [task for task in matched if not task.completed]
        if task_filter.priorities:
            wanted = set(task_filter.priorities)
            matched = [task for task in matched if task.priority in wanted]
        if task_filter.location:
            needle = normalize_text(task_filter.location)
            matched = [task for task in matched if needle in normalize_text(task.location)]
        return matched

    def match_topic(self, tasks: Sequence[Task], topic: str) -> List[Task]:
        """Two-phase topic match.

        Phrase containment in either direction wins outright. Only when no
        phrase matches does the synonym/token phase run.
        """
        needle = normalize_text(topic)
        if not needle:
            return []

        phrase = [
            task
            for task in tasks
            if needle in normalize_text(task.text) or normalize_text(task.text) in needle
        ]
        if phrase:
            return phrase

        tokens = topic_tokens(needle)
        synonyms: Set[str] = set()
        for key, words in self.synonyms.items():
            if needle == key or (len(needle) > 2 and needle in key) or key in tokens:
                synonyms.add(key)
                synonyms.update(words)
        if not tokens and not synonyms:
            return []

        return [
            task
            for task in tasks
            if any(word in normalize_text(task.text) for word in synonyms)
            or any(token in normalize_text(task.text) for token in tokens)
        ]

    def date_range_for(self, expression: str, now: datetime) -> Optional[DateRange]:
        """Resolve a due-date expression to full-day bounds, or None if unparseable."""
        day = parse_iso_date(expression)
        if day is not None:
            start = start_of_day(at_midday(day, now))
            return DateRange(start, end_of_day(start))

        found = self.date_parser.parse_date_range(expression, now)
        if found is None:
            return None
        end = found.end or (found.start + timedelta(days=1) - ONE_MS)
        return DateRange(start_of_day(found.start), end_of_day(end))

    def filter_by_due_date(self, tasks: Sequence[Task], expression: str, now: datetime) -> List[Task]:
        bounds = self.date_range_for(expression, now)
        if bounds is None:
            logger.info("Could not interpret due-date filter %r", expression)
            return []
        matched = []
        for task in tasks:
            day = parse_iso_date(task.due_date)
            if day is not None and bounds.start <= at_midday(day, now) <= bounds.end:
                matched.append(task)
        return matched
