"""Tests for the store handle and the upsert primitive."""

import threading

import pytest

from mastery.core.errors import PersistenceError
from mastery.db.database import Store, upsert_returning_id


class TestStore:
    """Tests for Store lifecycle and transactions."""

    def test_creates_file_and_schema(self, tmp_path):
        """Store creates parent dirs, db file and tables."""
        db_path = tmp_path / "nested" / "mastery.db"
        store = Store(db_path)

        assert db_path.exists()
        with store.transaction() as conn:
            tables = {
                row["name"]
                for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                )
            }
        store.close()

        assert {
            "subjects",
            "materials",
            "subject_materials",
            "problems",
            "batches",
            "attempts",
            "resources",
            "attempt_resources",
        } <= tables

    def test_schema_init_is_idempotent(self, tmp_path):
        """Reopening an existing database keeps its data."""
        db_path = tmp_path / "mastery.db"
        with Store(db_path) as store:
            with store.transaction() as conn:
                upsert_returning_id(conn, "subjects", "name", "Algebra")

        with Store(db_path) as store:
            with store.transaction() as conn:
                count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]

        assert count == 1

    def test_transaction_rolls_back_on_error(self, store):
        """Exceptions inside a transaction discard its writes."""
        with pytest.raises(RuntimeError):
            with store.transaction() as conn:
                upsert_returning_id(conn, "subjects", "name", "Algebra")
                raise RuntimeError("boom")

        with store.transaction() as conn:
            count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]

        assert count == 0

    def test_sqlite_errors_become_persistence_errors(self, store):
        """Driver errors surface as PersistenceError with the driver message."""
        with pytest.raises(PersistenceError, match="no such table"):
            with store.transaction() as conn:
                conn.execute("SELECT * FROM missing_table")

    def test_held_lock_raises_persistence_error(self, store):
        """Failing to acquire the lock is a PersistenceError."""
        store.lock_timeout = 0.01
        store._lock.acquire()
        try:
            with pytest.raises(PersistenceError, match="lock"):
                with store.transaction():
                    pass
        finally:
            store._lock.release()

    def test_transactions_are_serialized(self, store):
        """Concurrent callers never interleave inside a transaction."""
        active = []
        overlaps = []

        def worker(n: int) -> None:
            with store.transaction() as conn:
                if active:
                    overlaps.append(n)
                active.append(n)
                upsert_returning_id(conn, "subjects", "name", f"Subject {n}")
                active.remove(n)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        with store.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0] == 8


class TestUpsertReturningId:
    """Tests for the shared upsert-by-unique-key primitive."""

    def test_same_key_returns_same_id(self, store):
        """Repeated upserts return the existing row id."""
        with store.transaction() as conn:
            first = upsert_returning_id(conn, "subjects", "name", "Algebra")
            second = upsert_returning_id(conn, "subjects", "name", "Algebra")
            count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]

        assert first == second
        assert count == 1

    def test_keys_are_case_sensitive(self, store):
        """'Algebra' and 'algebra' are different rows."""
        with store.transaction() as conn:
            upper = upsert_returning_id(conn, "subjects", "name", "Algebra")
            lower = upsert_returning_id(conn, "subjects", "name", "algebra")

        assert upper != lower

    def test_extra_columns_only_on_create(self, store):
        """Extra values are written on insert and ignored afterwards."""
        with store.transaction() as conn:
            upsert_returning_id(
                conn, "materials", "name_en", "Calculus", extra={"name_ru": "Матанализ"}
            )
            upsert_returning_id(
                conn, "materials", "name_en", "Calculus", extra={"name_ru": "Other"}
            )
            name_ru = conn.execute(
                "SELECT name_ru FROM materials WHERE name_en = 'Calculus'"
            ).fetchone()[0]

        assert name_ru == "Матанализ"

    def test_resource_default_type(self, store):
        """Resources accept a type on creation."""
        with store.transaction() as conn:
            rid = upsert_returning_id(
                conn, "resources", "name", "Book A", extra={"type": "other"}
            )
            row = conn.execute("SELECT type FROM resources WHERE id = ?", (rid,)).fetchone()

        assert row["type"] == "other"

    def test_rejects_unknown_table_or_column(self, store):
        """Only whitelisted tables and columns are accepted."""
        with store.transaction() as conn:
            with pytest.raises(ValueError):
                upsert_returning_id(conn, "problems", "title", "x")
            with pytest.raises(ValueError):
                upsert_returning_id(conn, "subjects", "name", "x", extra={"bogus": 1})
