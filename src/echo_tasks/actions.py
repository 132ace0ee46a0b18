"""Typed action list produced by the intent service.

The intent model returns loosely shaped JSON. Everything is validated and
normalised here, before the orchestrator sees it: unknown intents become
UNKNOWN, unusable fields are dropped, legacy single-action payloads are
wrapped into a list and anything unreadable degrades to one UNKNOWN action.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.todo.models import (
    POSITION_KEYWORDS,
    PositionRange,
    Priority,
    SortOption,
    TaskFilter,
    TaskStatus,
)

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    ADD_TASK = "ADD_TASK"
    DELETE_TASK = "DELETE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    MARK_COMPLETED = "MARK_COMPLETED"
    MARK_INCOMPLETE = "MARK_INCOMPLETE"
    DELETE_ALL = "DELETE_ALL"
    DELETE_OVERDUE = "DELETE_OVERDUE"
    SORT_BY = "SORT_BY"
    SHOW_TASKS = "SHOW_TASKS"
    QUERY_TASK_INFO = "QUERY_TASK_INFO"
    UNKNOWN = "UNKNOWN"


class QueryType(str, Enum):
    COUNT = "count"
    DETAILS = "details"
    DEADLINE = "deadline"
    PRIORITY = "priority"


_ORDINALS = {
    "first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5,
    "sixth": 6, "seventh": 7, "eighth": 8, "ninth": 9, "tenth": 10,
}
_POSITION_ALIASES = {
    "final": "last",
    "last one": "last",
    "second to last": "second last",
    "second-to-last": "second last",
    "second-last": "second last",
    "penultimate": "second last",
    "every": "all",
    "everything": "all",
}


def _lenient_priority(value: Any) -> Optional[Priority]:
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        try:
            return Priority(value.strip().lower())
        except ValueError:
            return None
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_position(value: Any) -> Any:
    """Return an int, a position keyword or a PositionRange; None if unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        try:
            return PositionRange(int(value["start"]), int(value["end"]))
        except (KeyError, TypeError, ValueError):
            return None
    if isinstance(value, str):
        token = re.sub(r"\s+", " ", value.strip().lower())
        token = _POSITION_ALIASES.get(token, token)
        if token in POSITION_KEYWORDS:
            return token
        if re.fullmatch(r"-?\d+", token):
            return int(token)
        if token in _ORDINALS:
            return _ORDINALS[token]
    return None


class TaskDescriptor(BaseModel):
    """A task proposed by ADD_TASK."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str = ""
    location: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _clean_text(value) or ""

    @field_validator("location", "due_date", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_text(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> Optional[Priority]:
        return _lenient_priority(value)

    def has_details(self) -> bool:
        return bool(self.due_date or self.priority or self.location)


class DateShift(BaseModel):
    """Relative due-date change, e.g. "push by 3 days"."""

    model_config = ConfigDict(extra="ignore")

    days: int = 0
    weeks: int = 0
    months: int = 0

    @field_validator("days", "weeks", "months", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> int:
        if value is None or value == "":
            return 0
        try:
            return int(round(float(value)))
        except (TypeError, ValueError):
            return 0

    def is_zero(self) -> bool:
        return not (self.days or self.weeks or self.months)


class ActionFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    positions: List[Any] = Field(default_factory=list)
    priority: List[Priority] = Field(default_factory=list)
    status: Optional[TaskStatus] = None
    text: Optional[str] = None
    location: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")

    @field_validator("positions", mode="before")
    @classmethod
    def _positions(cls, value: Any) -> List[Any]:
        if value is None:
            return []
        items = value if isinstance(value, list) else [value]
        normalized = [normalize_position(item) for item in items]
        return [item for item in normalized if item is not None]

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> List[Priority]:
        if value is None:
            return []
        items = value if isinstance(value, list) else [value]
        parsed = [_lenient_priority(item) for item in items]
        return [item for item in parsed if item is not None]

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> Optional[TaskStatus]:
        if isinstance(value, str):
            try:
                return TaskStatus(value.strip().lower())
            except ValueError:
                return None
        return value if isinstance(value, TaskStatus) else None

    @field_validator("text", "location", "due_date", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_text(value)

    def to_task_filter(self) -> TaskFilter:
        return TaskFilter(
            text=self.text,
            due_date=self.due_date,
            status=self.status,
            priorities=list(self.priority),
            location=self.location,
            positions=list(self.positions),
        )


class TaskUpdates(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    due_date_shift: Optional[DateShift] = Field(default=None, alias="dueDateShift")
    location: Optional[str] = None

    @field_validator("text", "due_date", "location", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        return _clean_text(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> Optional[Priority]:
        return _lenient_priority(value)

    @field_validator("due_date_shift", mode="before")
    @classmethod
    def _shift(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, DateShift)) else None

    def is_empty(self) -> bool:
        shift_empty = self.due_date_shift is None or self.due_date_shift.is_zero()
        return not (self.text or self.priority or self.due_date or self.location) and shift_empty


class Action(BaseModel):
    """One step of a voice command."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent: Intent = Intent.UNKNOWN
    tasks: List[TaskDescriptor] = Field(default_factory=list)
    filter: Optional[ActionFilter] = None
    updates: Optional[TaskUpdates] = None
    sort_option: Optional[SortOption] = Field(default=None, alias="sortOption")
    query_type: Optional[QueryType] = Field(default=None, alias="queryType")
    original_query: Optional[str] = Field(default=None, alias="originalQuery")

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, value: Any) -> Intent:
        if isinstance(value, str):
            try:
                return Intent(value.strip().upper())
            except ValueError:
                logger.warning("Unknown intent %r, treating as UNKNOWN", value)
        return value if isinstance(value, Intent) else Intent.UNKNOWN

    @field_validator("tasks", mode="before")
    @classmethod
    def _tasks(cls, value: Any) -> List[Any]:
        if value is None:
            return []
        items = value if isinstance(value, list) else [value]
        return [item if isinstance(item, dict) else {"text": item} for item in items]

    @field_validator("filter", "updates", mode="before")
    @classmethod
    def _mapping(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else None

    @field_validator("sort_option", mode="before")
    @classmethod
    def _sort_option(cls, value: Any) -> Optional[SortOption]:
        if isinstance(value, SortOption):
            return value
        try:
            return SortOption(value) if value else None
        except ValueError:
            return None

    @field_validator("query_type", mode="before")
    @classmethod
    def _query_type(cls, value: Any) -> Optional[QueryType]:
        if isinstance(value, QueryType):
            return value
        try:
            return QueryType(str(value).lower()) if value else None
        except ValueError:
            return None

    @field_validator("original_query", mode="before")
    @classmethod
    def _original_query(cls, value: Any) -> Optional[str]:
        return _clean_text(value)

    @classmethod
    def unknown(cls) -> "Action":
        return cls(intent=Intent.UNKNOWN)


class ParsedCommand(BaseModel):
    """Normalised output of the intent service."""

    model_config = ConfigDict(populate_by_name=True)

    actions: List[Action] = Field(default_factory=list)
    original_query: Optional[str] = Field(default=None, alias="originalQuery")


def _parse_action(item: Any) -> Action:
    if isinstance(item, Action):
        return item
    if not isinstance(item, dict):
        return Action.unknown()
    try:
        return Action.model_validate(item)
    except ValidationError as exc:
        logger.warning("Dropping malformed action %r: %s", item, exc)
        return Action.unknown()


def normalize_actions(payload: Any) -> ParsedCommand:
    """Coerce whatever the intent service returned into a ParsedCommand.

    Accepts a JSON string, ``{"actions": [...]}``, a bare list of actions or
    a legacy single action object.
    """
    if isinstance(payload, ParsedCommand):
        return payload
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError:
            logger.warning("Intent payload is not JSON")
            return ParsedCommand(actions=[Action.unknown()])

    original_query: Optional[str] = None
    items: List[Any]
    if isinstance(payload, dict) and isinstance(payload.get("actions"), list):
        items = payload["actions"]
        original_query = _clean_text(payload.get("originalQuery") or payload.get("original_query"))
    elif isinstance(payload, dict) and isinstance(payload.get("intent"), str):
        logger.info("Wrapping legacy single-action payload into a list")
        items = [payload]
        original_query = _clean_text(payload.get("originalQuery"))
    elif isinstance(payload, list):
        items = payload
    else:
        logger.warning("Unrecognised intent payload shape: %r", type(payload).__name__)
        return ParsedCommand(actions=[Action.unknown()])

    actions = [_parse_action(item) for item in items]
    if original_query is None:
        original_query = next((action.original_query for action in actions if action.original_query), None)
    return ParsedCommand(actions=actions, original_query=original_query)
