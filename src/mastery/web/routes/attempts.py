"""Attempt endpoints."""

from fastapi import APIRouter, Depends, status

from mastery.core.attempt_log import delete_attempt, log_attempt, update_attempt
from mastery.core.errors import MasteryError
from mastery.db.database import Store
from mastery.web.deps import get_store, to_http_exception
from mastery.web.schemas import AttemptData, LogAttemptRequest, LogAttemptResponse

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.post("", response_model=LogAttemptResponse, status_code=status.HTTP_201_CREATED)
def create_attempt(
    body: LogAttemptRequest,
    store: Store = Depends(get_store),
) -> LogAttemptResponse:
    """Log a practice attempt, creating subject/material/problem as needed."""
    try:
        result = log_attempt(
            store,
            subject_name=body.subject_name,
            material_name_en=body.material_name_en,
            material_name_ru=body.material_name_ru,
            problem_title=body.problem_title,
            problem_description=body.problem_description,
            problem_image_filename=body.problem_image_filename,
            attempt=body.attempt.to_input(),
            is_fresh_start=body.is_fresh_start,
        )
    except MasteryError as e:
        raise to_http_exception(e) from e

    return LogAttemptResponse(**result.to_dict())


@router.put("/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT)
def edit_attempt(
    attempt_id: int,
    body: AttemptData,
    store: Store = Depends(get_store),
) -> None:
    """Overwrite the mutable fields of an attempt."""
    try:
        update_attempt(store, attempt_id, body.to_input())
    except MasteryError as e:
        raise to_http_exception(e) from e


@router.delete("/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_attempt(
    attempt_id: int,
    store: Store = Depends(get_store),
) -> None:
    """Delete an attempt."""
    try:
        delete_attempt(store, attempt_id)
    except MasteryError as e:
        raise to_http_exception(e) from e
