"""Streak-based mastery detection.

A problem is solved exactly when its latest ``streak_length`` attempts,
across all batches, are all successful. A failed attempt resets the flag
at once; a successful one triggers a fresh look at the history.
"""

from __future__ import annotations

import sqlite3

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_STREAK_LENGTH = 5


def recent_outcomes(
    conn: sqlite3.Connection,
    problem_id: int,
    limit: int = DEFAULT_STREAK_LENGTH,
) -> list[bool]:
    """Success flags of the latest attempts, newest first."""
    rows = conn.execute(
        """
        SELECT a.successful FROM attempts a
        JOIN batches b ON a.batch_id = b.id
        WHERE b.problem_id = ?
        ORDER BY a.id DESC
        LIMIT ?
        """,
        (problem_id, limit),
    ).fetchall()
    return [bool(row[0]) for row in rows]


def set_solved(conn: sqlite3.Connection, problem_id: int, solved: bool) -> None:
    conn.execute(
        "UPDATE problems SET is_solved = ?, updated_at = datetime('now') WHERE id = ?",
        (int(solved), problem_id),
    )


def recompute_mastery(
    conn: sqlite3.Connection,
    problem_id: int,
    streak_length: int = DEFAULT_STREAK_LENGTH,
) -> bool:
    """Set is_solved from the attempt history alone.

    Returns:
        The new is_solved value
    """
    outcomes = recent_outcomes(conn, problem_id, streak_length)
    solved = len(outcomes) >= streak_length and all(outcomes)
    set_solved(conn, problem_id, solved)
    return solved


def evaluate_mastery(
    conn: sqlite3.Connection,
    problem_id: int,
    was_successful: bool,
    streak_length: int = DEFAULT_STREAK_LENGTH,
) -> bool:
    """Update is_solved after a new attempt.

    Args:
        conn: Open connection (inside a transaction)
        problem_id: Problem row id
        was_successful: Outcome of the attempt just recorded
        streak_length: Consecutive successes required

    Returns:
        The new is_solved value
    """
    if not was_successful:
        set_solved(conn, problem_id, False)
        logger.debug("mastery.reset", problem_id=problem_id)
        return False

    solved = recompute_mastery(conn, problem_id, streak_length)
    if solved:
        logger.info("mastery.solved", problem_id=problem_id, streak=streak_length)
    return solved
