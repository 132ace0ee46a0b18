from __future__ import annotations

import json
import logging
import os
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from .dates import format_date
from .models import Priority, Settings, Task

TASKS_KEY = "echo-tasks"
SETTINGS_KEY = "echo-tasks-settings"

logger = logging.getLogger(__name__)


def seed_tasks(now: Optional[datetime] = None) -> List[Task]:
    """Starter list used when nothing usable is stored."""
    now = now or datetime.now().astimezone()
    five_minutes_ago = now - timedelta(minutes=5)
    ten_minutes_ago = now - timedelta(minutes=10)
    return [
        Task(
            id="seed-report",
            text="Submit the project report",
            completed=False,
            priority=Priority.HIGH,
            due_date=format_date((now + timedelta(days=1)).date()),
            location="Office",
            created_at=now,
            last_updated=now,
        ),
        Task(
            id="seed-groceries",
            text="Buy milk and eggs",
            completed=False,
            priority=Priority.MEDIUM,
            due_date=None,
            location="Supermarket",
            created_at=five_minutes_ago,
            last_updated=five_minutes_ago,
        ),
        Task(
            id="seed-review",
            text="Review EchoTasks features",
            completed=True,
            priority=Priority.LOW,
            due_date=None,
            location=None,
            created_at=ten_minutes_ago,
            last_updated=ten_minutes_ago,
        ),
    ]


class StateRepository:
    """SQLite-backed key/value storage for the task list and settings blobs."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        tasks_key: str = TASKS_KEY,
        settings_key: str = SETTINGS_KEY,
    ):
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "echo_tasks.db"
        env_path = os.getenv("ECHO_TASKS_DB_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.tasks_key = tasks_key
        self.settings_key = settings_key
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def load_blob(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value_json FROM app_state WHERE key = ?", (key,)).fetchone()
        return row["value_json"] if row else None

    def save_blob(self, key: str, value_json: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO app_state (key, value_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value_json = excluded.value_json,
                    updated_at = excluded.updated_at
                """,
                (key, value_json, self._now()),
            )
            conn.commit()

    def load_tasks(self, now: Optional[datetime] = None) -> List[Task]:
        """Load the task list; missing, empty or corrupt data yields the seed tasks."""
        raw = self.load_blob(self.tasks_key)
        if raw is None:
            return seed_tasks(now)
        try:
            payload = json.loads(raw)
            tasks = [Task.from_dict(item) for item in payload]
        except (ValueError, KeyError, TypeError) as exc:
            logger.error("Stored tasks are unreadable, using seed tasks: %s", exc)
            return seed_tasks(now)
        if not tasks:
            return seed_tasks(now)
        return tasks

    def save_tasks(self, tasks: List[Task]) -> None:
        self.save_blob(
            self.tasks_key,
            json.dumps([task.to_dict() for task in tasks], ensure_ascii=False),
        )

    def load_settings(self) -> Settings:
        raw = self.load_blob(self.settings_key)
        if raw is None:
            return Settings()
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            logger.error("Stored settings are unreadable, using defaults: %s", exc)
            return Settings()
        if not isinstance(payload, dict):
            return Settings()
        return Settings.from_dict(payload)

    def save_settings(self, settings: Settings) -> None:
        self.save_blob(self.settings_key, json.dumps(settings.to_dict(), ensure_ascii=False))
