import json

from conftest import NOW, make_task
from src.todo.models import Settings, SortOption
from src.todo.repository import StateRepository


def test_missing_state_yields_seed_tasks(tmp_path):
    repo = StateRepository(db_path=tmp_path / "state.db")
    tasks = repo.load_tasks(NOW)
    assert [task.id for task in tasks] == ["seed-report", "seed-groceries", "seed-review"]
    assert tasks[0].due_date == "2025-06-12"
    assert tasks[2].completed is True


def test_tasks_round_trip(tmp_path):
    repo = StateRepository(db_path=tmp_path / "state.db")
    tasks = [
        make_task("a", "Submit the project report", 0, priority="high", due_date="2025-06-12"),
        make_task("b", "Buy milk", 5, completed=True, location="Store"),
    ]
    repo.save_tasks(tasks)

    reopened = StateRepository(db_path=tmp_path / "state.db")
    loaded = reopened.load_tasks(NOW)
    assert [task.to_dict() for task in loaded] == [task.to_dict() for task in tasks]


def test_empty_or_corrupt_state_falls_back_to_seeds(tmp_path):
    repo = StateRepository(db_path=tmp_path / "state.db")
    repo.save_tasks([])
    assert repo.load_tasks(NOW)[0].id == "seed-report"

    repo.save_blob(repo.tasks_key, "{not json")
    assert repo.load_tasks(NOW)[0].id == "seed-report"

    repo.save_blob(repo.tasks_key, json.dumps([{"id": "x"}]))
    assert repo.load_tasks(NOW)[0].id == "seed-report"


def test_settings_merge_over_defaults(tmp_path):
    repo = StateRepository(db_path=tmp_path / "state.db")
    assert repo.load_settings() == Settings()

    repo.save_blob(repo.settings_key, json.dumps({"move_completed_to_bottom": True, "theme": "dark"}))
    settings = repo.load_settings()
    assert settings.move_completed_to_bottom is True
    assert settings.sort_option is SortOption.CREATION_DATE

    repo.save_settings(Settings(sort_option=SortOption.DUE_DATE))
    assert repo.load_settings().sort_option is SortOption.DUE_DATE


def test_db_path_from_environment(tmp_path, monkeypatch):
    db_path = tmp_path / "env" / "state.db"
    monkeypatch.setenv("ECHO_TASKS_DB_PATH", str(db_path))
    repo = StateRepository()
    assert repo.db_path == db_path
    assert db_path.exists()
