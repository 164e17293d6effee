"""SQLite store handle and schema management.

A Store owns one connection and one lock. Every engine operation runs
inside ``Store.transaction()``, which serialises callers and commits or
rolls back the whole operation atomically.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import structlog

from mastery.core.errors import PersistenceError

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/mastery.db")

# Default seconds to wait for the store lock
DEFAULT_LOCK_TIMEOUT = 10.0

# Columns the upsert primitive may address, per table
UPSERT_KEYS: dict[str, set[str]] = {
    "subjects": {"name"},
    "materials": {"name_en"},
    "resources": {"name"},
}

UPSERT_EXTRA_COLUMNS: dict[str, set[str]] = {
    "subjects": {"description"},
    "materials": {"name_ru"},
    "resources": {"type", "url"},
}


class Store:
    """Explicitly owned handle to the practice database.

    Example:
        store = Store(Path("db/mastery.db"))
        with store.transaction() as conn:
            conn.execute("SELECT COUNT(*) FROM subjects")
    """

    def __init__(
        self,
        db_path: Path | str = DEFAULT_DB_PATH,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
    ):
        self.db_path = str(db_path)
        self.lock_timeout = lock_timeout
        self._lock = threading.Lock()

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            # isolation_level=None: transactions are opened explicitly
            self._conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            _create_schema(self._conn)
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

        logger.info("database.initialized", path=self.db_path)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run one logical operation under the lock in one transaction.

        Yields:
            The shared connection

        Raises:
            PersistenceError: If the lock cannot be acquired or the store fails
        """
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise PersistenceError(
                f"Could not acquire store lock within {self.lock_timeout}s"
            )

        try:
            self._conn.execute("BEGIN")
            try:
                yield self._conn
            except BaseException:
                self._conn.rollback()
                raise
            self._conn.commit()
        except sqlite3.Error as e:
            if self._conn.in_transaction:
                self._conn.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            self._lock.release()

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()
        logger.debug("database.closed", path=self.db_path)

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_store(
    db_path: Path | str | None = None,
    lock_timeout: float | None = None,
) -> Store:
    """Open a Store using configured defaults for omitted arguments."""
    from mastery.config.app_config import load_app_config

    config = load_app_config()
    return Store(
        db_path if db_path is not None else config.database.path,
        lock_timeout if lock_timeout is not None else config.database.lock_timeout_seconds,
    )


def upsert_returning_id(
    conn: sqlite3.Connection,
    table: str,
    key_column: str,
    key_value: str,
    extra: dict[str, Any] | None = None,
) -> int:
    """Insert a row keyed on a unique column, or reuse the existing one.

    Extra columns are only written when the row is created.

    Args:
        conn: Open connection (inside a transaction)
        table: One of the tables in UPSERT_KEYS
        key_column: Unique column for that table
        key_value: Value to look up or insert
        extra: Additional columns for a newly created row

    Returns:
        Row id of the existing or newly created row

    Raises:
        ValueError: If table or column is not a known upsert target
    """
    if key_column not in UPSERT_KEYS.get(table, set()):
        raise ValueError(f"Not an upsert key: {table}.{key_column}")

    extra = extra or {}
    unknown = set(extra) - UPSERT_EXTRA_COLUMNS.get(table, set())
    if unknown:
        raise ValueError(f"Unknown columns for {table}: {sorted(unknown)}")

    columns = [key_column, *extra.keys()]
    placeholders = ", ".join("?" for _ in columns)
    row = conn.execute(
        f"""
        INSERT INTO {table} ({", ".join(columns)}) VALUES ({placeholders})
        ON CONFLICT({key_column}) DO UPDATE SET {key_column} = {key_column}
        RETURNING id
        """,
        (key_value, *extra.values()),
    ).fetchone()

    return int(row[0])


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS subjects (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS materials (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name_en TEXT UNIQUE NOT NULL,
            name_ru TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS subject_materials (
            subject_id INTEGER NOT NULL,
            material_id INTEGER NOT NULL,
            PRIMARY KEY (subject_id, material_id),
            FOREIGN KEY (subject_id) REFERENCES subjects(id) ON DELETE CASCADE,
            FOREIGN KEY (material_id) REFERENCES materials(id) ON DELETE CASCADE
        );

        -- generated_id is the human-readable display id (e.g. ALGE_001)
        CREATE TABLE IF NOT EXISTS problems (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            generated_id TEXT UNIQUE NOT NULL,
            material_id INTEGER NOT NULL,
            title TEXT NOT NULL,
            content_type TEXT NOT NULL DEFAULT 'text'
                CHECK(content_type IN ('text', 'image', 'both')),
            description TEXT,
            image_filename TEXT,
            is_solved INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (material_id) REFERENCES materials(id) ON DELETE CASCADE,
            UNIQUE(material_id, title)
        );

        -- ended_at NULL means the batch is open; at most one per problem
        CREATE TABLE IF NOT EXISTS batches (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            problem_id INTEGER NOT NULL,
            batch_number INTEGER NOT NULL,
            started_at TEXT NOT NULL,
            ended_at TEXT,
            is_fresh_start INTEGER NOT NULL DEFAULT 0,
            FOREIGN KEY (problem_id) REFERENCES problems(id) ON DELETE CASCADE,
            UNIQUE(problem_id, batch_number)
        );

        CREATE TABLE IF NOT EXISTS attempts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            batch_id INTEGER NOT NULL,
            attempt_number INTEGER NOT NULL,
            successful INTEGER NOT NULL DEFAULT 0,
            time_spent_minutes REAL,
            difficulty_rating INTEGER CHECK(difficulty_rating BETWEEN 1 AND 5),
            errors TEXT,
            resolution TEXT,
            commentary TEXT,
            status_tag TEXT CHECK(status_tag IN (
                'stuck', 'breakthrough', 'review', 'first_attempt', 'debugging'
            )),
            timestamp TEXT NOT NULL,
            FOREIGN KEY (batch_id) REFERENCES batches(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS resources (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            type TEXT NOT NULL DEFAULT 'other'
                CHECK(type IN ('ai', 'book', 'video', 'web', 'human', 'other')),
            url TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE TABLE IF NOT EXISTS attempt_resources (
            attempt_id INTEGER NOT NULL,
            resource_id INTEGER NOT NULL,
            notes TEXT,
            PRIMARY KEY (attempt_id, resource_id),
            FOREIGN KEY (attempt_id) REFERENCES attempts(id) ON DELETE CASCADE,
            FOREIGN KEY (resource_id) REFERENCES resources(id) ON DELETE CASCADE
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_problems_material ON problems(material_id);
        CREATE INDEX IF NOT EXISTS idx_batches_problem ON batches(problem_id);
        CREATE INDEX IF NOT EXISTS idx_batches_open ON batches(ended_at) WHERE ended_at IS NULL;
        CREATE INDEX IF NOT EXISTS idx_attempts_batch ON attempts(batch_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_timestamp ON attempts(timestamp);
        """
    )
