"""Problem endpoints."""

from fastapi import APIRouter, Depends, status

from mastery.core.attempt_log import delete_problem, update_problem
from mastery.core.errors import MasteryError
from mastery.db.database import Store
from mastery.db.queries import get_problem_batch_stats, get_problem_detail
from mastery.web.deps import get_store, to_http_exception
from mastery.web.schemas import (
    BatchStatsListResponse,
    BatchStatsResponse,
    ProblemDetailResponse,
    ProblemUpdate,
)

router = APIRouter(prefix="/api/problems", tags=["problems"])


@router.get("/{problem_id}", response_model=ProblemDetailResponse)
def get_problem(
    problem_id: int,
    store: Store = Depends(get_store),
) -> ProblemDetailResponse:
    """Get a problem with its attempt history."""
    try:
        detail = get_problem_detail(store, problem_id)
    except MasteryError as e:
        raise to_http_exception(e) from e

    return ProblemDetailResponse.model_validate(detail)


@router.put("/{problem_id}", status_code=status.HTTP_204_NO_CONTENT)
def edit_problem(
    problem_id: int,
    body: ProblemUpdate,
    store: Store = Depends(get_store),
) -> None:
    """Update a problem's title and description."""
    try:
        update_problem(store, problem_id, body.title, body.description)
    except MasteryError as e:
        raise to_http_exception(e) from e


@router.delete("/{problem_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_problem(
    problem_id: int,
    store: Store = Depends(get_store),
) -> None:
    """Delete a problem with its batches and attempts."""
    try:
        delete_problem(store, problem_id)
    except MasteryError as e:
        raise to_http_exception(e) from e


@router.get("/{problem_id}/batches", response_model=BatchStatsListResponse)
def list_batches(
    problem_id: int,
    store: Store = Depends(get_store),
) -> BatchStatsListResponse:
    """List per-batch statistics for a problem."""
    try:
        stats = get_problem_batch_stats(store, problem_id)
    except MasteryError as e:
        raise to_http_exception(e) from e

    batches = [BatchStatsResponse.model_validate(s) for s in stats]
    return BatchStatsListResponse(batches=batches, count=len(batches))
