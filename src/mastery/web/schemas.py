"""Pydantic schemas for Web API.

Serialization models for attempts, problems and batch statistics.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from mastery.core.models import AttemptInput


class StatusTag(str, Enum):
    """Fixed vocabulary for attempt status tags."""

    STUCK = "stuck"
    BREAKTHROUGH = "breakthrough"
    REVIEW = "review"
    FIRST_ATTEMPT = "first_attempt"
    DEBUGGING = "debugging"


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# ATTEMPT SCHEMAS
# =============================================================================


class AttemptData(BaseModel):
    """Fields of one practice attempt."""

    successful: bool
    time_spent_minutes: float | None = Field(default=None, ge=0)
    difficulty_rating: int | None = Field(default=None, ge=1, le=5)
    errors: str | None = None
    resolution: str | None = None
    commentary: str | None = None
    status_tag: StatusTag | None = None
    resources: list[str] = Field(default_factory=list)

    def to_input(self) -> AttemptInput:
        """Convert to the engine's AttemptInput."""
        return AttemptInput(
            successful=self.successful,
            time_spent_minutes=self.time_spent_minutes,
            difficulty_rating=self.difficulty_rating,
            errors=self.errors,
            resolution=self.resolution,
            commentary=self.commentary,
            status_tag=self.status_tag.value if self.status_tag else None,
            resources=list(self.resources),
        )


class LogAttemptRequest(BaseModel):
    """Request body for logging an attempt."""

    subject_name: str = Field(..., max_length=200)
    material_name_en: str = Field(..., max_length=200)
    material_name_ru: str | None = Field(default=None, max_length=200)
    problem_title: str = Field(..., max_length=500)
    problem_description: str | None = None
    problem_image_filename: str | None = None
    attempt: AttemptData
    is_fresh_start: bool = False


class LogAttemptResponse(BaseModel):
    """Response for a logged attempt."""

    attempt_id: int
    problem_id: int
    generated_id: str
    batch_number: int
    attempt_number: int
    batch_closed: bool
    is_solved: bool


# =============================================================================
# PROBLEM SCHEMAS
# =============================================================================


class ProblemUpdate(BaseModel):
    """Request body for updating a problem."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None


class AttemptViewResponse(BaseModel):
    """One attempt in a problem's history."""

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
    resources: list[str]

    model_config = {"from_attributes": True}


class ProblemDetailResponse(BaseModel):
    """Problem with attempt history."""

    id: int
    generated_id: str
    title: str
    description: str | None
    image_filename: str | None
    content_type: str
    is_solved: bool
    material_name: str
    subject_name: str | None
    attempts: list[AttemptViewResponse]

    model_config = {"from_attributes": True}


class BatchStatsResponse(BaseModel):
    """Statistics for one batch."""

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

    model_config = {"from_attributes": True}


class BatchStatsListResponse(BaseModel):
    """Response for a problem's batches."""

    batches: list[BatchStatsResponse]
    count: int
