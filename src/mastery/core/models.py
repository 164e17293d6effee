"""Data classes shared by the engine and its front ends."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ContentType = Literal["text", "image", "both"]

# Fixed vocabulary for Attempt.status_tag
STATUS_TAGS = ("stuck", "breakthrough", "review", "first_attempt", "debugging")

# Default type for resources created while linking
DEFAULT_RESOURCE_TYPE = "other"


@dataclass
class AttemptInput:
    """Caller-supplied fields of one practice attempt."""

    successful: bool
    time_spent_minutes: float | None = None
    difficulty_rating: int | None = None
    errors: str | None = None
    resolution: str | None = None
    commentary: str | None = None
    status_tag: str | None = None
    resources: list[str] = field(default_factory=list)


@dataclass
class ProblemRef:
    """Identity of a resolved problem."""

    problem_id: int
    generated_id: str
    subject_id: int
    material_id: int
    created: bool = False


@dataclass
class BatchAssignment:
    """Which batch an attempt belongs to, and whether one was closed."""

    batch_id: int
    batch_number: int
    batch_closed: bool = False
    closed_batch_id: int | None = None
    closed_at: str | None = None


@dataclass
class RecordedAttempt:
    """A persisted attempt row."""

    attempt_id: int
    attempt_number: int
    timestamp: str
    resource_ids: list[int] = field(default_factory=list)


@dataclass
class LogAttemptResult:
    """Result of logging one attempt."""

    attempt_id: int
    problem_id: int
    generated_id: str
    batch_number: int
    attempt_number: int
    batch_closed: bool
    is_solved: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "attempt_id": self.attempt_id,
            "problem_id": self.problem_id,
            "generated_id": self.generated_id,
            "batch_number": self.batch_number,
            "attempt_number": self.attempt_number,
            "batch_closed": self.batch_closed,
            "is_solved": self.is_solved,
        }


@dataclass
class AttemptView:
    """Attempt as shown in a problem's history."""

    id: int
    attempt_number: int
    batch_number: int
    successful: bool
    time_spent_minutes: float | None
    difficulty_rating: int | None
    status_tag: str | None
    errors: str | None
    resolution: str | None
    commentary: str | None
    timestamp: str
    resources: list[str] = field(default_factory=list)


@dataclass
class ProblemDetail:
    """Problem with its material, subject and full attempt history."""

    id: int
    generated_id: str
    title: str
    description: str | None
    image_filename: str | None
    content_type: str
    is_solved: bool
    material_name: str
    subject_name: str | None
    attempts: list[AttemptView] = field(default_factory=list)


@dataclass
class BatchStats:
    """Aggregated numbers for one batch."""

    batch_id: int
    batch_number: int
    problem_id: int
    problem_title: str
    started_at: str
    ended_at: str | None
    is_fresh_start: bool
    total_attempts: int
    successful_attempts: int
    success_rate: float
    total_time_minutes: float
    avg_difficulty: float
