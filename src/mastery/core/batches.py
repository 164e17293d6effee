"""Batch lifecycle for a problem.

A batch is a run of consecutive attempts. Per problem:

- no open batch        -> open the next batch (1 for a new problem)
- open batch, fresh    -> close it, open batch N+1
- open batch, idle     -> close it, open batch N+1
- open batch, recent   -> reuse it

"Idle" means more than ``idle_timeout_hours`` since the last attempt in the
open batch. A closed batch ends at last attempt + idle timeout, not at the
moment the next attempt arrives.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

import structlog

from mastery.core.models import BatchAssignment
from mastery.utils.time_utils import add_hours, format_timestamp, hours_between

logger = structlog.get_logger(__name__)

DEFAULT_IDLE_TIMEOUT_HOURS = 2.0


def get_open_batch(conn: sqlite3.Connection, problem_id: int) -> sqlite3.Row | None:
    """Return the open batch of a problem, if any."""
    return conn.execute(
        """
        SELECT id, batch_number FROM batches
        WHERE problem_id = ? AND ended_at IS NULL
        ORDER BY batch_number DESC LIMIT 1
        """,
        (problem_id,),
    ).fetchone()


def get_last_attempt_time(conn: sqlite3.Connection, batch_id: int) -> str | None:
    """Timestamp of the most recently inserted attempt in a batch."""
    row = conn.execute(
        "SELECT timestamp FROM attempts WHERE batch_id = ? ORDER BY id DESC LIMIT 1",
        (batch_id,),
    ).fetchone()
    return row["timestamp"] if row else None


def _next_batch_number(conn: sqlite3.Connection, problem_id: int) -> int:
    row = conn.execute(
        "SELECT COALESCE(MAX(batch_number), 0) FROM batches WHERE problem_id = ?",
        (problem_id,),
    ).fetchone()
    return int(row[0]) + 1


def _open_batch(
    conn: sqlite3.Connection,
    problem_id: int,
    batch_number: int,
    is_fresh_start: bool,
    now: datetime,
) -> int:
    cursor = conn.execute(
        """
        INSERT INTO batches (problem_id, batch_number, started_at, is_fresh_start)
        VALUES (?, ?, ?, ?)
        """,
        (problem_id, batch_number, format_timestamp(now), int(is_fresh_start)),
    )
    logger.debug(
        "batch.opened",
        problem_id=problem_id,
        batch_number=batch_number,
        is_fresh_start=is_fresh_start,
    )
    return cursor.lastrowid


def close_batch(conn: sqlite3.Connection, batch_id: int, ended_at: str) -> None:
    """Mark a batch as closed at the given time."""
    conn.execute(
        "UPDATE batches SET ended_at = ? WHERE id = ?",
        (ended_at, batch_id),
    )


def assign_batch(
    conn: sqlite3.Connection,
    problem_id: int,
    is_fresh_start: bool,
    now: datetime,
    idle_timeout_hours: float = DEFAULT_IDLE_TIMEOUT_HOURS,
) -> BatchAssignment:
    """Select or create the batch the next attempt belongs to.

    Args:
        conn: Open connection (inside a transaction)
        problem_id: Problem row id
        is_fresh_start: Caller asks for a new batch regardless of elapsed time
        now: Current time (naive UTC)
        idle_timeout_hours: Inactivity after which the open batch closes

    Returns:
        BatchAssignment for the attempt

    Raises:
        TimeFormatError: If the last attempt's timestamp is unparsable
    """
    open_batch = get_open_batch(conn, problem_id)

    if open_batch is None:
        batch_number = _next_batch_number(conn, problem_id)
        batch_id = _open_batch(conn, problem_id, batch_number, is_fresh_start, now)
        return BatchAssignment(batch_id=batch_id, batch_number=batch_number)

    last_time = get_last_attempt_time(conn, open_batch["id"])

    if is_fresh_start:
        start_new = True
    elif last_time is not None:
        start_new = hours_between(last_time, now) > idle_timeout_hours
    else:
        start_new = False

    if not start_new:
        return BatchAssignment(
            batch_id=open_batch["id"],
            batch_number=open_batch["batch_number"],
        )

    # An empty batch has no activity to anchor to
    if last_time is not None:
        closed_at = add_hours(last_time, idle_timeout_hours)
    else:
        closed_at = format_timestamp(now)
    close_batch(conn, open_batch["id"], closed_at)

    logger.info(
        "batch.closed",
        problem_id=problem_id,
        batch_number=open_batch["batch_number"],
        ended_at=closed_at,
        reason="fresh_start" if is_fresh_start else "idle",
    )

    batch_number = open_batch["batch_number"] + 1
    batch_id = _open_batch(conn, problem_id, batch_number, is_fresh_start, now)

    return BatchAssignment(
        batch_id=batch_id,
        batch_number=batch_number,
        batch_closed=True,
        closed_batch_id=open_batch["id"],
        closed_at=closed_at,
    )
