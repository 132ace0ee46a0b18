"""UndoExpiryScheduler tests"""

import threading
from unittest.mock import MagicMock

from src.echo_tasks.scheduler import UndoExpiryScheduler
from src.todo.models import UndoAction, UndoKind
from src.todo.undo import UndoLog


def record(log, task_id="a"):
    return log.record(UndoAction(UndoKind.ADD, task_id=task_id))


def test_expiry_clears_slot_and_notifies():
    """The slot is cleared once the delay has passed"""
    log = UndoLog()
    fired = threading.Event()
    callback = MagicMock(side_effect=lambda generation: fired.set())
    scheduler = UndoExpiryScheduler(log, on_expire=callback)

    generation = record(log)
    scheduler.arm(delay=0.05)

    assert fired.wait(2.0)
    assert log.pending is None
    callback.assert_called_once_with(generation)
    assert scheduler.armed_generation is None


def test_newer_entry_survives_stale_timer():
    """A timer armed for an older generation never clears a newer entry"""
    log = UndoLog()
    scheduler = UndoExpiryScheduler(log)

    stale = record(log, "a")
    record(log, "b")
    scheduler._expire(stale)

    assert log.pending.task_id == "b"


def test_rearm_replaces_timer():
    log = UndoLog()
    callback = MagicMock()
    scheduler = UndoExpiryScheduler(log, on_expire=callback)

    record(log, "a")
    scheduler.arm(delay=60)
    second = record(log, "b")
    scheduler.arm(delay=60)

    assert scheduler.armed_generation == second
    scheduler.cancel()
    assert scheduler.armed_generation is None
    assert log.pending.task_id == "b"
    callback.assert_not_called()


def test_arm_without_entry_does_nothing():
    log = UndoLog()
    scheduler = UndoExpiryScheduler(log)

    scheduler.arm(delay=0.01)

    assert scheduler.armed_generation is None


def test_callback_errors_are_logged_not_raised():
    log = UndoLog()
    scheduler = UndoExpiryScheduler(log, on_expire=MagicMock(side_effect=RuntimeError("boom")))
    generation = record(log)
    scheduler.arm(delay=60)

    scheduler._expire(generation)

    assert log.pending is None
    scheduler.cancel()
