"""Shared fixtures: a fixed clock and small task builders."""

from datetime import datetime, timedelta, timezone

import pytest

from src.todo.models import Priority, Task
from src.todo.store import TaskStore

# Wednesday, mid-morning.
NOW = datetime(2025, 6, 11, 9, 0, tzinfo=timezone.utc)


def make_task(
    task_id: str,
    text: str,
    minutes_ago: int = 0,
    completed: bool = False,
    priority=None,
    due_date=None,
    location=None,
) -> Task:
    created = NOW - timedelta(minutes=minutes_ago)
    return Task(
        id=task_id,
        text=text,
        completed=completed,
        priority=Priority(priority) if priority else None,
        due_date=due_date,
        location=location,
        created_at=created,
        last_updated=created,
    )


class FakeClock:
    """Manually advanced clock for the store."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_store(clock):
    """Build a TaskStore on the fixed clock with sequential ids."""

    def factory(tasks=()):
        counter = iter(range(1, 10_000))
        return TaskStore(tasks, clock=clock, id_factory=lambda: f"task-{next(counter)}")

    return factory
