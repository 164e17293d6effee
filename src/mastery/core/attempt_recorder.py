"""Attempt persistence and resource linking.

Attempt numbers run across all batches of a problem: the next number is
the problem's attempt count plus one, computed at insert time.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

import structlog

from mastery.core.models import DEFAULT_RESOURCE_TYPE, AttemptInput, RecordedAttempt
from mastery.db.database import upsert_returning_id
from mastery.utils.time_utils import format_timestamp

logger = structlog.get_logger(__name__)


def next_attempt_number(conn: sqlite3.Connection, problem_id: int) -> int:
    """Count attempts across every batch of the problem, plus one."""
    row = conn.execute(
        """
        SELECT COUNT(*) FROM attempts a
        JOIN batches b ON a.batch_id = b.id
        WHERE b.problem_id = ?
        """,
        (problem_id,),
    ).fetchone()
    return int(row[0]) + 1


def unique_resource_names(names: list[str]) -> list[str]:
    """Drop empty names and exact duplicates, keeping first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if not name or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


def link_resources(
    conn: sqlite3.Connection,
    attempt_id: int,
    resource_names: list[str],
) -> list[int]:
    """Resolve resources by name and link them to an attempt.

    Returns:
        Resource ids linked, in input order
    """
    resource_ids = []
    for name in unique_resource_names(resource_names):
        resource_id = upsert_returning_id(
            conn, "resources", "name", name, extra={"type": DEFAULT_RESOURCE_TYPE}
        )
        conn.execute(
            "INSERT OR IGNORE INTO attempt_resources (attempt_id, resource_id) VALUES (?, ?)",
            (attempt_id, resource_id),
        )
        resource_ids.append(resource_id)
    return resource_ids


def record_attempt(
    conn: sqlite3.Connection,
    problem_id: int,
    batch_id: int,
    attempt: AttemptInput,
    now: datetime,
) -> RecordedAttempt:
    """Insert one attempt under a batch and link its resources.

    Args:
        conn: Open connection (inside a transaction)
        problem_id: Problem owning the batch
        batch_id: Batch chosen for the attempt
        attempt: Attempt fields
        now: Insert time (naive UTC)

    Returns:
        RecordedAttempt with row id and number
    """
    attempt_number = next_attempt_number(conn, problem_id)
    timestamp = format_timestamp(now)

    cursor = conn.execute(
        """
        INSERT INTO attempts (
            batch_id, attempt_number, successful, time_spent_minutes,
            difficulty_rating, errors, resolution, commentary, status_tag,
            timestamp
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            batch_id,
            attempt_number,
            int(attempt.successful),
            attempt.time_spent_minutes,
            attempt.difficulty_rating,
            attempt.errors,
            attempt.resolution,
            attempt.commentary,
            attempt.status_tag,
            timestamp,
        ),
    )
    attempt_id = cursor.lastrowid

    resource_ids = link_resources(conn, attempt_id, attempt.resources)

    logger.debug(
        "attempt.recorded",
        attempt_id=attempt_id,
        attempt_number=attempt_number,
        batch_id=batch_id,
        resources=len(resource_ids),
    )

    return RecordedAttempt(
        attempt_id=attempt_id,
        attempt_number=attempt_number,
        timestamp=timestamp,
        resource_ids=resource_ids,
    )
