"""Human-readable problem identifiers.

Algorithm (sequential probing with timestamp fallback):
1. Prefix = first up-to-4 letters of the subject name, uppercased
   (FALLBACK_PREFIX when the name has no letters).
2. Probe PREFIX_001, PREFIX_002, ... against every generated id in the
   store; the first unused candidate wins.
3. After MAX_PROBES misses, use PREFIX_<epoch seconds>, suffixed with
   _2, _3, ... while that is taken as well.

Only race-free while the caller holds the Store lock.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import structlog

from mastery.utils.time_utils import utc_now

logger = structlog.get_logger(__name__)

PREFIX_LENGTH = 4
FALLBACK_PREFIX = "PROB"
MAX_PROBES = 9999


def subject_prefix(subject_name: str) -> str:
    """Derive the id prefix from a subject name.

    Examples:
        "Algebra" -> "ALGE"
        "C++" -> "C"
        "123" -> "PROB"
    """
    letters = [c for c in subject_name if c.isalpha()][:PREFIX_LENGTH]
    prefix = "".join(letters).upper()
    return prefix or FALLBACK_PREFIX


def format_candidate(prefix: str, number: int) -> str:
    """Format a probe candidate as PREFIX_NNN."""
    return f"{prefix}_{number:03d}"


def _id_exists(conn: sqlite3.Connection, generated_id: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM problems WHERE generated_id = ?", (generated_id,)
    ).fetchone()
    return row is not None


def generate_problem_id(
    conn: sqlite3.Connection,
    subject_name: str,
    now: datetime | None = None,
    max_probes: int = MAX_PROBES,
) -> str:
    """Generate a unique display id for a new problem.

    Args:
        conn: Open connection (inside a transaction)
        subject_name: Subject the problem belongs to
        now: Clock for the exhaustion fallback
        max_probes: Number of sequential candidates to try

    Returns:
        Unused generated id
    """
    prefix = subject_prefix(subject_name)

    for number in range(1, max_probes + 1):
        candidate = format_candidate(prefix, number)
        if not _id_exists(conn, candidate):
            return candidate

    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    base = f"{prefix}_{int(now.timestamp())}"

    fallback = base
    suffix = 2
    while _id_exists(conn, fallback):
        fallback = f"{base}_{suffix}"
        suffix += 1

    logger.warning(
        "id_generator.prefix_exhausted",
        prefix=prefix,
        max_probes=max_probes,
        fallback=fallback,
    )
    return fallback
