import pytest

from conftest import make_task
from src.todo.models import Priority, SortOption, UndoKind
from src.todo.store import UNSET


def snapshot(store):
    return [task.to_dict() for task in store.tasks]


@pytest.fixture
def seeded(make_store):
    return make_store(
        [
            make_task("a", "Submit the project report", 0, priority="high", due_date="2025-06-12"),
            make_task("b", "Buy milk and eggs", 5, priority="medium", location="Supermarket"),
            make_task("c", "Pay rent", 10, due_date="2025-06-10"),
            make_task("d", "Renew passport", 15, completed=True, priority="low", due_date="2025-06-01"),
        ]
    )


def test_create_inserts_newest_first(make_store):
    store = make_store()
    first = store.create("Buy milk")
    second = store.create("Call mom", priority="high", due_date="tomorrow", location=" Home ")
    assert [task.id for task in store.tasks] == [second.id, first.id]
    assert second.priority is Priority.HIGH
    assert second.due_date == "2025-06-12"
    assert second.location == "Home"
    assert second.completed is False
    assert store.undo_log.pending.kind is UndoKind.ADD


def test_create_rejects_empty_text(make_store):
    store = make_store()
    with pytest.raises(ValueError):
        store.create("   ")
    assert len(store) == 0


def test_create_with_unparseable_due_date(make_store):
    store = make_store()
    task = store.create("Read a book", due_date="whenever")
    assert task.due_date is None


def test_update_merges_fields(seeded, clock):
    clock.advance(minutes=1)
    updated = seeded.update("b", text="Buy oat milk", priority=None, due_date="friday")
    assert updated.text == "Buy oat milk"
    assert updated.priority is None
    assert updated.due_date == "2025-06-13"
    assert updated.location == "Supermarket"
    assert updated.last_updated > updated.created_at


def test_update_keeps_due_date_when_unparseable(seeded):
    updated = seeded.update("a", due_date="some time later")
    assert updated.due_date == "2025-06-12"


def test_unparseable_date_keeps_previous_undo(seeded):
    seeded.delete("b")
    seeded.update("c", due_date="some time later")
    assert seeded.undo_log.pending.kind is UndoKind.DELETE

    seeded.revert_last()
    assert seeded.get("b").text == "Buy milk and eggs"


def test_update_to_same_values_records_nothing(seeded, clock):
    before = seeded.get("a")
    clock.advance(minutes=1)
    assert seeded.update("a", text="Submit the project report", priority="high", due_date="2025-06-12") == before
    assert seeded.undo_log.pending is None


def test_update_unknown_id_is_noop(seeded):
    before = snapshot(seeded)
    assert seeded.update("missing", text="x") is None
    assert seeded.toggle("missing") is None
    assert seeded.delete("missing") == 0
    assert snapshot(seeded) == before
    assert seeded.undo_log.pending is None


def test_update_without_changes_records_nothing(seeded):
    seeded.update("a", priority=UNSET)
    assert seeded.undo_log.pending is None


def test_set_completed_and_revert(seeded):
    before = snapshot(seeded)
    assert seeded.set_completed(["a", "b", "missing"], True) == 2
    assert all(task.completed for task in seeded.tasks if task.id in ("a", "b"))
    assert seeded.undo_log.pending.kind is UndoKind.COMPLETE_MANY
    seeded.revert_last()
    assert snapshot(seeded) == before


def test_set_completed_skips_tasks_already_in_state(seeded):
    assert seeded.set_completed(["d"], True) == 0
    assert seeded.undo_log.pending is None
    assert seeded.set_completed(["c", "d"], True) == 1
    assert [task.id for task in seeded.undo_log.pending.snapshots] == ["c"]


def test_delete_kinds(seeded):
    seeded.delete("a")
    assert seeded.undo_log.pending.kind is UndoKind.DELETE
    seeded.delete(["b", "c"])
    assert seeded.undo_log.pending.kind is UndoKind.DELETE_MANY


def test_delete_revert_restores_order(seeded):
    before = snapshot(seeded)
    seeded.delete(["a", "c"])
    assert [task.id for task in seeded.tasks] == ["b", "d"]
    seeded.revert_last()
    assert snapshot(seeded) == before


def test_overdue_count_matches_deletion(seeded, clock):
    overdue = seeded.overdue_tasks(clock())
    assert sorted(task.id for task in overdue) == ["c", "d"]
    assert seeded.delete_overdue(clock()) == len(overdue)
    assert [task.id for task in seeded.tasks] == ["a", "b"]


def test_delete_all_and_revert(seeded):
    before = snapshot(seeded)
    assert seeded.delete_all() == 4
    assert len(seeded) == 0
    seeded.revert_last()
    assert snapshot(seeded) == before


def test_revert_only_once(seeded):
    seeded.create("New task")
    assert seeded.revert_last().kind is UndoKind.ADD
    assert seeded.revert_last() is None


def test_only_latest_mutation_is_undoable(seeded):
    seeded.delete("a")
    seeded.update("b", priority="high")
    seeded.revert_last()
    assert seeded.get("a") is None
    assert seeded.get("b").priority is Priority.MEDIUM


@pytest.mark.parametrize(
    "mutate",
    [
        lambda store: store.create("Walk the dog", priority="low"),
        lambda store: store.update("a", text="Submit the final report", location="Home"),
        lambda store: store.update_many([("a", {"priority": "low"}), ("c", {"due_date": "2025-06-20"})]),
        lambda store: store.toggle("d"),
        lambda store: store.set_completed(["a", "b", "c"], True),
        lambda store: store.delete("b"),
        lambda store: store.delete(["a", "d"]),
        lambda store: store.delete_overdue(),
        lambda store: store.delete_all(),
    ],
)
def test_revert_restores_exact_state(seeded, clock, mutate):
    before = snapshot(seeded)
    clock.advance(minutes=3)
    mutate(seeded)
    assert seeded.revert_last() is not None
    assert snapshot(seeded) == before


def test_duplicate_ids_are_dropped_on_load(make_store):
    store = make_store([make_task("x", "First"), make_task("x", "Second")])
    assert [task.text for task in store.tasks] == ["First"]


def test_tasks_returns_copies(seeded):
    seeded.tasks[0].text = "mutated"
    assert seeded.get("a").text == "Submit the project report"


def test_sort_by_due_date_puts_missing_last(seeded):
    order = [task.id for task in seeded.sorted(SortOption.DUE_DATE)]
    assert order == ["d", "c", "a", "b"]


def test_sort_by_priority(seeded):
    high_first = [task.id for task in seeded.sorted(SortOption.PRIORITY_HIGH_TO_LOW)]
    assert high_first == ["a", "b", "d", "c"]
    low_first = [task.id for task in seeded.sorted(SortOption.PRIORITY_LOW_TO_HIGH)]
    assert low_first == ["c", "d", "b", "a"]


def test_sort_is_stable_for_ties(make_store):
    store = make_store(
        [
            make_task("x", "First", 0, priority="high"),
            make_task("y", "Second", 1, priority="high"),
            make_task("z", "Third", 2, priority="high"),
        ]
    )
    assert [task.id for task in store.sorted(SortOption.PRIORITY_HIGH_TO_LOW)] == ["x", "y", "z"]
    assert [task.id for task in store.sorted(SortOption.PRIORITY_LOW_TO_HIGH)] == ["x", "y", "z"]


def test_completed_last(seeded):
    seeded.toggle("a")
    order = [task.id for task in seeded.sorted(SortOption.CREATION_DATE, completed_last=True)]
    assert order == ["b", "c", "a", "d"]


def test_last_updated_sort(seeded, clock):
    clock.advance(minutes=1)
    seeded.update("c", text="Pay the rent")
    assert seeded.sorted(SortOption.LAST_UPDATED)[0].id == "c"
