"""Fixtures for F1 tests - attempt logging engine."""

from datetime import datetime, timedelta

import pytest

from mastery.core.attempt_log import log_attempt
from mastery.core.models import AttemptInput
from mastery.db.database import Store

# Fixed clock for batch tests (naive UTC)
BASE_TIME = datetime(2025, 1, 6, 10, 0, 0)


@pytest.fixture
def store():
    """In-memory store with schema."""
    s = Store(":memory:")
    yield s
    s.close()


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def log(store):
    """Log an attempt on a default problem with sensible defaults.

    Usage:
        log(successful=True, at=timedelta(hours=1))
    """

    def _log(
        successful: bool = True,
        at: timedelta = timedelta(0),
        title: str = "Quadratic roots",
        subject: str = "Algebra",
        material: str = "Linear Algebra Done Right",
        fresh: bool = False,
        resources: list[str] | None = None,
        **attempt_fields,
    ):
        return log_attempt(
            store,
            subject_name=subject,
            material_name_en=material,
            problem_title=title,
            attempt=AttemptInput(
                successful=successful,
                resources=resources or [],
                **attempt_fields,
            ),
            is_fresh_start=fresh,
            now=BASE_TIME + at,
        )

    return _log
