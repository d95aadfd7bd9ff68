"""Application record store: an in-memory fake and a SQLite store."""

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from .models import Application, PersonalTask

logger = logging.getLogger(__name__)


class DuplicateApplicationError(ValueError):
    """A record with the same (company, title) or URL already exists."""


class ApplicationNotFoundError(KeyError):
    """No record with the given id."""


def is_duplicate(candidate: Application, existing: Application) -> bool:
    """Same lowercase (company, title), or same non-empty URL."""
    if candidate.dedupe_key() == existing.dedupe_key():
        return True
    return bool(candidate.url and existing.url) and candidate.url.strip().lower() == existing.url.strip().lower()


class Repository:
    """CRUD contract for stored applications.

    Subclasses implement the ``_load``/``_save``/``_remove`` primitives and
    processed-message tracking; duplicate suppression lives here.
    """

    def list_all(self) -> list[Application]:
        raise NotImplementedError

    def _load(self, app_id: str) -> Optional[Application]:
        raise NotImplementedError

    def _save(self, app: Application) -> None:
        raise NotImplementedError

    def _remove(self, app_id: str) -> bool:
        raise NotImplementedError

    def is_processed(self, message_id: str) -> bool:
        raise NotImplementedError

    def mark_processed(self, message_id: str) -> None:
        raise NotImplementedError

    def list_tasks(self) -> list[PersonalTask]:
        raise NotImplementedError

    def save_task(self, task: PersonalTask) -> None:
        raise NotImplementedError

    def get(self, app_id: str) -> Application:
        app = self._load(app_id)
        if app is None:
            raise ApplicationNotFoundError(app_id)
        return app

    def find_duplicate(self, app: Application, pool: Optional[Iterable[Application]] = None) -> Optional[Application]:
        for existing in (self.list_all() if pool is None else pool):
            if existing.id == app.id or is_duplicate(app, existing):
                return existing
        return None

    def create(self, app: Application) -> Application:
        existing = self.find_duplicate(app)
        if existing is not None:
            raise DuplicateApplicationError(
                f"Already tracked: {existing.company} - {existing.title} ({existing.id})"
            )
        self._save(app)
        logger.debug(f"Created application {app.id}: {app.company} - {app.title}")
        return app

    def update(self, app_id: str, **fields) -> Application:
        """Whole-record read-modify-write; the merged record is re-validated."""
        current = self.get(app_id)
        data = current.model_dump()
        data.update(fields)
        data["id"] = current.id
        updated = Application.model_validate(data)
        self._save(updated)
        logger.debug(f"Updated application {app_id}: {', '.join(sorted(fields))}")
        return updated

    def delete(self, app_id: str) -> None:
        if not self._remove(app_id):
            raise ApplicationNotFoundError(app_id)
        logger.debug(f"Deleted application {app_id}")

    def bulk_create(self, apps: Iterable[Application]) -> list[str]:
        """Insert the non-duplicate records and return their ids.

        Duplicates are checked against the store and against records
        inserted earlier in the same batch.
        """
        pool = self.list_all()
        inserted = []
        for app in apps:
            existing = self.find_duplicate(app, pool)
            if existing is not None:
                logger.info(f"Skipping duplicate: {app.company} - {app.title}")
                continue
            self._save(app)
            pool.append(app)
            inserted.append(app.id)
        return inserted


class InMemoryRepository(Repository):
    """Dictionary-backed store for tests and dry runs."""

    def __init__(self, apps: Optional[Iterable[Application]] = None):
        self._apps: dict[str, Application] = {}
        self._processed: set[str] = set()
        self._tasks: dict[str, PersonalTask] = {}
        for app in apps or []:
            self._apps[app.id] = app

    def list_all(self) -> list[Application]:
        return [app.model_copy(deep=True) for app in self._apps.values()]

    def _load(self, app_id: str) -> Optional[Application]:
        app = self._apps.get(app_id)
        return app.model_copy(deep=True) if app else None

    def _save(self, app: Application) -> None:
        self._apps[app.id] = app.model_copy(deep=True)

    def _remove(self, app_id: str) -> bool:
        return self._apps.pop(app_id, None) is not None

    def is_processed(self, message_id: str) -> bool:
        return message_id in self._processed

    def mark_processed(self, message_id: str) -> None:
        self._processed.add(message_id)

    def list_tasks(self) -> list[PersonalTask]:
        return [task.model_copy() for task in self._tasks.values()]

    def save_task(self, task: PersonalTask) -> None:
        self._tasks[task.id] = task.model_copy()


class SqliteRepository(Repository):
    """Applications stored as JSON documents in a SQLite file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.init_db()

    def get_connection(self) -> sqlite3.Connection:
        """Get SQLite database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Initialize database schema."""
        conn = self.get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    company TEXT NOT NULL,
                    title TEXT NOT NULL,
                    url TEXT,
                    record TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_company_title
                ON applications (company, title)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS processed_messages (
                    message_id TEXT PRIMARY KEY,
                    processed_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    record TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.commit()
            logger.debug(f"Database initialized at {self.db_path}")
        finally:
            conn.close()

    def list_all(self) -> list[Application]:
        conn = self.get_connection()
        try:
            cursor = conn.execute("SELECT record FROM applications ORDER BY created_at")
            return [Application.model_validate_json(row["record"]) for row in cursor.fetchall()]
        finally:
            conn.close()

    def _load(self, app_id: str) -> Optional[Application]:
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT record FROM applications WHERE id = ?", (app_id,)).fetchone()
            return Application.model_validate_json(row["record"]) if row else None
        finally:
            conn.close()

    def _save(self, app: Application) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO applications (id, company, title, url, record, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (app.id, app.company, app.title, app.url, app.model_dump_json(), app.created_at.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def _remove(self, app_id: str) -> bool:
        conn = self.get_connection()
        try:
            cursor = conn.execute("DELETE FROM applications WHERE id = ?", (app_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def is_processed(self, message_id: str) -> bool:
        """Check if a mailbox message has already been imported."""
        conn = self.get_connection()
        try:
            cursor = conn.execute(
                "SELECT 1 FROM processed_messages WHERE message_id = ?", (message_id,)
            )
            return cursor.fetchone() is not None
        finally:
            conn.close()

    def mark_processed(self, message_id: str) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT OR IGNORE INTO processed_messages (message_id) VALUES (?)", (message_id,)
            )
            conn.commit()
            logger.debug(f"Marked message {message_id} as processed")
        finally:
            conn.close()

    def list_tasks(self) -> list[PersonalTask]:
        conn = self.get_connection()
        try:
            cursor = conn.execute("SELECT record FROM tasks ORDER BY created_at")
            return [PersonalTask.model_validate_json(row["record"]) for row in cursor.fetchall()]
        finally:
            conn.close()

    def save_task(self, task: PersonalTask) -> None:
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO tasks (id, title, record, created_at) VALUES (?, ?, ?, ?)",
                (task.id, task.title, task.model_dump_json(), task.created_at.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
