"""Database module for SQLite persistence.

Provides:
- Store handle with lock-guarded transactions
- Schema initialization
- Shared upsert-by-unique-key primitive
- Read queries for problem detail and batch statistics
"""

from mastery.db.database import Store, open_store, upsert_returning_id

__all__ = ["Store", "open_store", "upsert_returning_id"]
