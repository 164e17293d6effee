"""Read queries for problems and batches."""

from __future__ import annotations

import structlog

from mastery.core.errors import NotFoundError
from mastery.core.models import AttemptView, BatchStats, ProblemDetail
from mastery.db.database import Store

logger = structlog.get_logger(__name__)

ATTEMPT_COLUMNS = """
    a.id, a.attempt_number, b.batch_number, a.successful,
    a.time_spent_minutes, a.difficulty_rating, a.status_tag,
    a.errors, a.resolution, a.commentary, a.timestamp
"""


def _row_to_attempt_view(row, resources: list[str]) -> AttemptView:
    return AttemptView(
        id=row["id"],
        attempt_number=row["attempt_number"],
        batch_number=row["batch_number"],
        successful=bool(row["successful"]),
        time_spent_minutes=row["time_spent_minutes"],
        difficulty_rating=row["difficulty_rating"],
        status_tag=row["status_tag"],
        errors=row["errors"],
        resolution=row["resolution"],
        commentary=row["commentary"],
        timestamp=row["timestamp"],
        resources=resources,
    )


def get_attempt(store: Store, attempt_id: int) -> AttemptView:
    """Get one attempt with its batch number and resource names.

    Raises:
        NotFoundError: If the attempt does not exist
    """
    with store.transaction() as conn:
        row = conn.execute(
            f"""
            SELECT {ATTEMPT_COLUMNS}
            FROM attempts a
            JOIN batches b ON a.batch_id = b.id
            WHERE a.id = ?
            """,
            (attempt_id,),
        ).fetchone()

        if row is None:
            raise NotFoundError("Attempt", attempt_id)

        resource_rows = conn.execute(
            """
            SELECT r.name FROM attempt_resources ar
            JOIN resources r ON ar.resource_id = r.id
            WHERE ar.attempt_id = ?
            ORDER BY r.name
            """,
            (attempt_id,),
        ).fetchall()

    return _row_to_attempt_view(row, [r["name"] for r in resource_rows])


def get_problem_detail(store: Store, problem_id: int) -> ProblemDetail:
    """Get a problem with its full attempt history.

    Args:
        store: Store handle
        problem_id: Problem row id

    Returns:
        ProblemDetail with attempts ordered by attempt number

    Raises:
        NotFoundError: If the problem does not exist
    """
    with store.transaction() as conn:
        row = conn.execute(
            """
            SELECT p.id, p.generated_id, p.title, p.description, p.image_filename,
                   p.content_type, p.is_solved, m.name_en AS material_name,
                   (SELECT s.name FROM subject_materials sm
                    JOIN subjects s ON sm.subject_id = s.id
                    WHERE sm.material_id = m.id
                    ORDER BY s.id LIMIT 1) AS subject_name
            FROM problems p
            JOIN materials m ON p.material_id = m.id
            WHERE p.id = ?
            """,
            (problem_id,),
        ).fetchone()

        if row is None:
            raise NotFoundError("Problem", problem_id)

        attempt_rows = conn.execute(
            f"""
            SELECT {ATTEMPT_COLUMNS}
            FROM attempts a
            JOIN batches b ON a.batch_id = b.id
            WHERE b.problem_id = ?
            ORDER BY a.attempt_number ASC, a.id ASC
            """,
            (problem_id,),
        ).fetchall()

        resource_rows = conn.execute(
            """
            SELECT ar.attempt_id, r.name FROM attempt_resources ar
            JOIN resources r ON ar.resource_id = r.id
            JOIN attempts a ON ar.attempt_id = a.id
            JOIN batches b ON a.batch_id = b.id
            WHERE b.problem_id = ?
            ORDER BY r.name
            """,
            (problem_id,),
        ).fetchall()

    resources_by_attempt: dict[int, list[str]] = {}
    for r in resource_rows:
        resources_by_attempt.setdefault(r["attempt_id"], []).append(r["name"])

    attempts = [
        _row_to_attempt_view(a, resources_by_attempt.get(a["id"], []))
        for a in attempt_rows
    ]

    return ProblemDetail(
        id=row["id"],
        generated_id=row["generated_id"],
        title=row["title"],
        description=row["description"],
        image_filename=row["image_filename"],
        content_type=row["content_type"],
        is_solved=bool(row["is_solved"]),
        material_name=row["material_name"],
        subject_name=row["subject_name"],
        attempts=attempts,
    )


def get_problem_batch_stats(store: Store, problem_id: int) -> list[BatchStats]:
    """Aggregate attempts per batch for a problem.

    Returns:
        One BatchStats per batch, ordered by batch number

    Raises:
        NotFoundError: If the problem does not exist
    """
    with store.transaction() as conn:
        exists = conn.execute(
            "SELECT 1 FROM problems WHERE id = ?", (problem_id,)
        ).fetchone()
        if exists is None:
            raise NotFoundError("Problem", problem_id)

        rows = conn.execute(
            """
            SELECT b.id, b.batch_number, b.problem_id, p.title,
                   b.started_at, b.ended_at, b.is_fresh_start,
                   COUNT(a.id) AS total_attempts,
                   COALESCE(SUM(a.successful), 0) AS successful_attempts,
                   COALESCE(SUM(a.time_spent_minutes), 0) AS total_time,
                   COALESCE(AVG(a.difficulty_rating), 0) AS avg_difficulty
            FROM batches b
            JOIN problems p ON b.problem_id = p.id
            LEFT JOIN attempts a ON a.batch_id = b.id
            WHERE b.problem_id = ?
            GROUP BY b.id
            ORDER BY b.batch_number ASC
            """,
            (problem_id,),
        ).fetchall()

    stats = []
    for row in rows:
        total = row["total_attempts"]
        successful = row["successful_attempts"]
        stats.append(
            BatchStats(
                batch_id=row["id"],
                batch_number=row["batch_number"],
                problem_id=row["problem_id"],
                problem_title=row["title"],
                started_at=row["started_at"],
                ended_at=row["ended_at"],
                is_fresh_start=bool(row["is_fresh_start"]),
                total_attempts=total,
                successful_attempts=successful,
                success_rate=(successful / total * 100.0) if total else 0.0,
                total_time_minutes=float(row["total_time"]),
                avg_difficulty=float(row["avg_difficulty"]),
            )
        )

    logger.debug("queries.batch_stats", problem_id=problem_id, batches=len(stats))
    return stats


def get_problem_id_by_generated_id(store: Store, generated_id: str) -> int:
    """Look up a problem's row id by its display id.

    Raises:
        NotFoundError: If no problem has that id
    """
    with store.transaction() as conn:
        row = conn.execute(
            "SELECT id FROM problems WHERE generated_id = ?", (generated_id,)
        ).fetchone()

    if row is None:
        raise NotFoundError("Problem", generated_id)
    return row["id"]
