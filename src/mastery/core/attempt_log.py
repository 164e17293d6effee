"""Attempt logging flow and attempt/problem mutations.

log_attempt runs, inside one store transaction:

    identity -> id_generator (new problems only) -> batches
             -> attempt_recorder -> mastery

Any failure rolls the whole operation back.

Mutations (update/delete of attempts) re-run mastery for the owning
problem but never touch batch assignment or attempt numbers.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from mastery.config.app_config import load_app_config
from mastery.core.attempt_recorder import link_resources, record_attempt
from mastery.core.batches import assign_batch
from mastery.core.errors import NotFoundError, ValidationError
from mastery.core.identity import derive_content_type, require_text, resolve_problem
from mastery.core.mastery import evaluate_mastery, recompute_mastery
from mastery.core.models import STATUS_TAGS, AttemptInput, LogAttemptResult
from mastery.db.database import Store
from mastery.utils.time_utils import utc_now

logger = structlog.get_logger(__name__)


def validate_attempt_input(attempt: AttemptInput) -> None:
    """Check optional attempt fields before touching the store.

    Raises:
        ValidationError: If a value is out of range
    """
    if attempt.difficulty_rating is not None and not 1 <= attempt.difficulty_rating <= 5:
        raise ValidationError(
            "difficulty_rating",
            f"Difficulty rating must be between 1 and 5, got {attempt.difficulty_rating}",
        )
    if attempt.status_tag is not None and attempt.status_tag not in STATUS_TAGS:
        raise ValidationError(
            "status_tag",
            f"Invalid status tag '{attempt.status_tag}'. "
            f"Expected one of: {', '.join(STATUS_TAGS)}",
        )
    if attempt.time_spent_minutes is not None and attempt.time_spent_minutes < 0:
        raise ValidationError(
            "time_spent_minutes",
            "Time spent cannot be negative",
        )


def log_attempt(
    store: Store,
    subject_name: str,
    material_name_en: str,
    problem_title: str,
    attempt: AttemptInput,
    is_fresh_start: bool = False,
    material_name_ru: str | None = None,
    problem_description: str | None = None,
    problem_image_filename: str | None = None,
    now: datetime | None = None,
    idle_timeout_hours: float | None = None,
    streak_length: int | None = None,
) -> LogAttemptResult:
    """Log one practice attempt.

    Args:
        store: Store handle
        subject_name: Subject name
        material_name_en: Material English name
        problem_title: Problem title within the material
        attempt: Attempt fields and resources
        is_fresh_start: Force a new batch
        material_name_ru: Secondary material name (new materials only)
        problem_description: Problem description (new problems only)
        problem_image_filename: Image reference (new problems only)
        now: Clock override (naive UTC); defaults to the current time
        idle_timeout_hours: Overrides the configured batch idle timeout
        streak_length: Overrides the configured mastery streak

    Returns:
        LogAttemptResult with ids, numbers and batch outcome

    Raises:
        ValidationError: On blank names or out-of-range attempt fields
        TimeFormatError: If a stored timestamp cannot be parsed
        PersistenceError: If the store fails
    """
    require_text(subject_name, "subject_name", "Subject name")
    require_text(material_name_en, "material_name_en", "Material name")
    require_text(problem_title, "problem_title", "Problem title")
    validate_attempt_input(attempt)

    config = load_app_config()
    if idle_timeout_hours is None:
        idle_timeout_hours = config.batching.idle_timeout_hours
    if streak_length is None:
        streak_length = config.mastery.streak_length
    now = now or utc_now()

    with store.transaction() as conn:
        problem = resolve_problem(
            conn,
            subject_name=subject_name,
            material_name_en=material_name_en,
            problem_title=problem_title,
            material_name_ru=material_name_ru,
            problem_description=problem_description,
            problem_image_filename=problem_image_filename,
            now=now,
        )
        batch = assign_batch(
            conn,
            problem.problem_id,
            is_fresh_start=is_fresh_start,
            now=now,
            idle_timeout_hours=idle_timeout_hours,
        )
        recorded = record_attempt(conn, problem.problem_id, batch.batch_id, attempt, now)
        is_solved = evaluate_mastery(
            conn, problem.problem_id, attempt.successful, streak_length
        )

    logger.info(
        "attempt.logged",
        generated_id=problem.generated_id,
        attempt_number=recorded.attempt_number,
        batch_number=batch.batch_number,
        batch_closed=batch.batch_closed,
        successful=attempt.successful,
        is_solved=is_solved,
    )

    return LogAttemptResult(
        attempt_id=recorded.attempt_id,
        problem_id=problem.problem_id,
        generated_id=problem.generated_id,
        batch_number=batch.batch_number,
        attempt_number=recorded.attempt_number,
        batch_closed=batch.batch_closed,
        is_solved=is_solved,
    )


def _problem_id_for_attempt(conn, attempt_id: int) -> int:
    row = conn.execute(
        """
        SELECT b.problem_id FROM attempts a
        JOIN batches b ON a.batch_id = b.id
        WHERE a.id = ?
        """,
        (attempt_id,),
    ).fetchone()
    if row is None:
        raise NotFoundError("Attempt", attempt_id)
    return row["problem_id"]


def update_attempt(
    store: Store,
    attempt_id: int,
    attempt: AttemptInput,
    streak_length: int | None = None,
) -> bool:
    """Overwrite the mutable fields of an attempt.

    Resource links are replaced by the given list. Batch and numbering
    are untouched; mastery is re-evaluated.

    Returns:
        The problem's is_solved value afterwards

    Raises:
        NotFoundError: If the attempt does not exist
        ValidationError: On out-of-range fields
    """
    validate_attempt_input(attempt)
    if streak_length is None:
        streak_length = load_app_config().mastery.streak_length

    with store.transaction() as conn:
        problem_id = _problem_id_for_attempt(conn, attempt_id)
        conn.execute(
            """
            UPDATE attempts
            SET successful = ?, time_spent_minutes = ?, difficulty_rating = ?,
                errors = ?, resolution = ?, commentary = ?, status_tag = ?
            WHERE id = ?
            """,
            (
                int(attempt.successful),
                attempt.time_spent_minutes,
                attempt.difficulty_rating,
                attempt.errors,
                attempt.resolution,
                attempt.commentary,
                attempt.status_tag,
                attempt_id,
            ),
        )
        conn.execute("DELETE FROM attempt_resources WHERE attempt_id = ?", (attempt_id,))
        link_resources(conn, attempt_id, attempt.resources)
        is_solved = recompute_mastery(conn, problem_id, streak_length)

    logger.info("attempt.updated", attempt_id=attempt_id, is_solved=is_solved)
    return is_solved


def delete_attempt(
    store: Store,
    attempt_id: int,
    streak_length: int | None = None,
) -> bool:
    """Delete an attempt; its resource links cascade.

    Returns:
        The problem's is_solved value afterwards

    Raises:
        NotFoundError: If the attempt does not exist
    """
    if streak_length is None:
        streak_length = load_app_config().mastery.streak_length

    with store.transaction() as conn:
        problem_id = _problem_id_for_attempt(conn, attempt_id)
        conn.execute("DELETE FROM attempts WHERE id = ?", (attempt_id,))
        is_solved = recompute_mastery(conn, problem_id, streak_length)

    logger.info("attempt.deleted", attempt_id=attempt_id, is_solved=is_solved)
    return is_solved


def update_problem(
    store: Store,
    problem_id: int,
    title: str,
    description: str | None = None,
) -> None:
    """Update a problem's title and description.

    Raises:
        ValidationError: If title is blank
        NotFoundError: If the problem does not exist
        PersistenceError: If the title clashes within the material
    """
    require_text(title, "title", "Problem title")

    with store.transaction() as conn:
        row = conn.execute(
            "SELECT image_filename FROM problems WHERE id = ?", (problem_id,)
        ).fetchone()
        if row is None:
            raise NotFoundError("Problem", problem_id)

        conn.execute(
            """
            UPDATE problems
            SET title = ?, description = ?, content_type = ?,
                updated_at = datetime('now')
            WHERE id = ?
            """,
            (
                title,
                description,
                derive_content_type(description, row["image_filename"]),
                problem_id,
            ),
        )

    logger.info("problem.updated", problem_id=problem_id)


def delete_problem(store: Store, problem_id: int) -> None:
    """Delete a problem with its batches, attempts and resource links.

    Raises:
        NotFoundError: If the problem does not exist
    """
    with store.transaction() as conn:
        cursor = conn.execute("DELETE FROM problems WHERE id = ?", (problem_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("Problem", problem_id)

    logger.info("problem.deleted", problem_id=problem_id)
