"""Identity resolution for Subject, Material and Problem.

Subjects, materials and their link are created on first use and reused
afterwards. Problems are found by (material, title) and created with a
generated display id when missing.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

import structlog

from mastery.core.errors import ValidationError
from mastery.core.id_generator import generate_problem_id
from mastery.core.models import ContentType, ProblemRef
from mastery.db.database import upsert_returning_id

logger = structlog.get_logger(__name__)


def require_text(value: str | None, field_name: str, label: str) -> str:
    """Reject empty or whitespace-only required strings."""
    if value is None or not value.strip():
        raise ValidationError(field_name, f"{label} cannot be empty")
    return value


def derive_content_type(
    description: str | None,
    image_filename: str | None,
) -> ContentType:
    """Classify problem content from what was supplied."""
    if image_filename:
        return "both" if description else "image"
    return "text"


def resolve_subject(conn: sqlite3.Connection, name: str) -> int:
    """Find or create a subject by name."""
    return upsert_returning_id(conn, "subjects", "name", name)


def resolve_material(
    conn: sqlite3.Connection,
    name_en: str,
    name_ru: str | None = None,
) -> int:
    """Find or create a material by English name."""
    return upsert_returning_id(
        conn, "materials", "name_en", name_en, extra={"name_ru": name_ru}
    )


def link_subject_material(
    conn: sqlite3.Connection,
    subject_id: int,
    material_id: int,
) -> None:
    """Link a subject to a material; existing links are left alone."""
    conn.execute(
        "INSERT OR IGNORE INTO subject_materials (subject_id, material_id) VALUES (?, ?)",
        (subject_id, material_id),
    )


def resolve_problem(
    conn: sqlite3.Connection,
    subject_name: str,
    material_name_en: str,
    problem_title: str,
    material_name_ru: str | None = None,
    problem_description: str | None = None,
    problem_image_filename: str | None = None,
    now: datetime | None = None,
) -> ProblemRef:
    """Resolve the Subject -> Material -> Problem chain.

    Args:
        conn: Open connection (inside a transaction)
        subject_name: Subject name (unique, case-sensitive)
        material_name_en: Material English name (unique)
        problem_title: Problem title, unique within the material
        material_name_ru: Secondary-language name, used on creation only
        problem_description: Description, used on creation only
        problem_image_filename: Image reference, used on creation only
        now: Clock for the id generator fallback

    Returns:
        ProblemRef with row ids and display id

    Raises:
        ValidationError: If a required name is blank
    """
    require_text(subject_name, "subject_name", "Subject name")
    require_text(material_name_en, "material_name_en", "Material name")
    require_text(problem_title, "problem_title", "Problem title")

    subject_id = resolve_subject(conn, subject_name)
    material_id = resolve_material(conn, material_name_en, material_name_ru)
    link_subject_material(conn, subject_id, material_id)

    row = conn.execute(
        "SELECT id, generated_id FROM problems WHERE material_id = ? AND title = ?",
        (material_id, problem_title),
    ).fetchone()

    if row is not None:
        return ProblemRef(
            problem_id=row["id"],
            generated_id=row["generated_id"],
            subject_id=subject_id,
            material_id=material_id,
        )

    generated_id = generate_problem_id(conn, subject_name, now=now)
    content_type = derive_content_type(problem_description, problem_image_filename)

    cursor = conn.execute(
        """
        INSERT INTO problems (
            generated_id, material_id, title, description,
            image_filename, content_type
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            generated_id,
            material_id,
            problem_title,
            problem_description,
            problem_image_filename,
            content_type,
        ),
    )

    logger.info(
        "identity.problem_created",
        problem_id=cursor.lastrowid,
        generated_id=generated_id,
        content_type=content_type,
    )

    return ProblemRef(
        problem_id=cursor.lastrowid,
        generated_id=generated_id,
        subject_id=subject_id,
        material_id=material_id,
        created=True,
    )
