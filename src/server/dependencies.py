"""Dependency helpers shared across FastAPI routes."""

from __future__ import annotations

from functools import lru_cache
from typing import List

from src.echo_tasks.assistant import TaskAssistant
from src.echo_tasks.config import Config
from src.echo_tasks.logger import setup_logger
from src.echo_tasks.orchestrator import CommandOutcome
from src.todo import Settings, Task

from .schemas import CommandResponse, SettingsResponse, TaskResponse

config = Config.from_yaml()
setup_logger(config)


@lru_cache(maxsize=1)
def get_assistant() -> TaskAssistant:
    """Lazily create a singleton TaskAssistant instance."""
    return TaskAssistant(config=Config.from_yaml())


def serialize_task(task: Task) -> TaskResponse:
    """Convert domain Task to API response."""
    return TaskResponse(
        id=task.id,
        text=task.text,
        completed=task.completed,
        priority=task.priority,
        due_date=task.due_date,
        location=task.location,
        created_at=task.created_at,
        last_updated=task.last_updated,
    )


def serialize_tasks(tasks: List[Task]) -> List[TaskResponse]:
    return [serialize_task(task) for task in tasks]


def serialize_outcome(outcome: CommandOutcome, tasks: List[Task]) -> CommandResponse:
    """Convert a CommandOutcome plus the current display order to API response."""
    payload = outcome.to_dict()
    payload["tasks"] = serialize_tasks(tasks)
    return CommandResponse(**payload)


def serialize_settings(settings: Settings) -> SettingsResponse:
    return SettingsResponse(
        move_completed_to_bottom=settings.move_completed_to_bottom,
        sort_option=settings.sort_option,
    )
