"""Tests for problem detail and batch statistics queries."""

from datetime import timedelta

import pytest

from mastery.core.errors import NotFoundError
from mastery.db.queries import (
    get_attempt,
    get_problem_batch_stats,
    get_problem_detail,
    get_problem_id_by_generated_id,
)


class TestProblemDetail:
    """Tests for get_problem_detail."""

    def test_includes_names_and_attempts(self, store, log):
        first = log(resources=["Book A", "AI chat"], difficulty_rating=3)
        log(successful=False, at=timedelta(hours=3), status_tag="stuck")

        detail = get_problem_detail(store, first.problem_id)

        assert detail.generated_id == "ALGE_001"
        assert detail.title == "Quadratic roots"
        assert detail.subject_name == "Algebra"
        assert detail.material_name == "Linear Algebra Done Right"
        assert detail.content_type == "text"
        assert detail.is_solved is False
        assert [a.attempt_number for a in detail.attempts] == [1, 2]
        assert [a.batch_number for a in detail.attempts] == [1, 2]
        assert detail.attempts[0].resources == ["AI chat", "Book A"]
        assert detail.attempts[0].successful is True
        assert detail.attempts[1].status_tag == "stuck"

    def test_missing_problem(self, store):
        with pytest.raises(NotFoundError):
            get_problem_detail(store, 1)


class TestBatchStats:
    """Tests for get_problem_batch_stats."""

    def test_aggregates_per_batch(self, store, log):
        first = log(time_spent_minutes=10, difficulty_rating=4)
        log(successful=False, at=timedelta(minutes=20), time_spent_minutes=5, difficulty_rating=2)
        log(at=timedelta(minutes=30), fresh=True)

        stats = get_problem_batch_stats(store, first.problem_id)

        assert [s.batch_number for s in stats] == [1, 2]
        one, two = stats
        assert one.total_attempts == 2
        assert one.successful_attempts == 1
        assert one.success_rate == 50.0
        assert one.total_time_minutes == 15.0
        assert one.avg_difficulty == 3.0
        assert one.ended_at == "2025-01-06 12:20:00"
        assert two.ended_at is None
        assert two.is_fresh_start is True
        assert two.success_rate == 100.0
        assert two.avg_difficulty == 0.0

    def test_unknown_problem_raises(self, store):
        with pytest.raises(NotFoundError, match="Problem not found: 99"):
            get_problem_batch_stats(store, 99)


class TestGeneratedIdLookup:
    def test_lookup(self, store, log):
        result = log()
        assert get_problem_id_by_generated_id(store, "ALGE_001") == result.problem_id

    def test_lookup_missing(self, store):
        with pytest.raises(NotFoundError):
            get_problem_id_by_generated_id(store, "NOPE_001")


class TestGetAttempt:
    """Tests for get_attempt."""

    def test_returns_stored_fields(self, store, log):
        result = log(
            successful=False,
            errors="sign slip",
            status_tag="stuck",
            resources=["Video", "Book A"],
        )

        attempt = get_attempt(store, result.attempt_id)

        assert attempt.successful is False
        assert attempt.errors == "sign slip"
        assert attempt.status_tag == "stuck"
        assert attempt.batch_number == 1
        assert attempt.resources == ["Book A", "Video"]

    def test_missing_attempt(self, store):
        with pytest.raises(NotFoundError, match="Attempt not found: 4"):
            get_attempt(store, 4)
