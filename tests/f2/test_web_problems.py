"""Tests for problem endpoints."""

import pytest

from mastery.core.errors import (
    NotFoundError,
    PersistenceError,
    TimeFormatError,
    ValidationError,
)
from mastery.web.deps import to_http_exception


class TestGetProblem:
    """Tests for GET /api/problems/{id}."""

    def test_get_problem_detail(self, client, attempt_payload):
        attempt_payload["problem_description"] = "Find both eigenvalues"
        created = client.post("/api/attempts", json=attempt_payload).json()

        response = client.get(f"/api/problems/{created['problem_id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["generated_id"] == "ALGE_001"
        assert data["subject_name"] == "Algebra"
        assert data["description"] == "Find both eigenvalues"
        assert data["content_type"] == "text"
        assert len(data["attempts"]) == 1
        assert data["attempts"][0]["resources"] == ["Book A"]

    def test_get_missing_problem_is_404(self, client):
        assert client.get("/api/problems/1").status_code == 404


class TestUpdateProblem:
    """Tests for PUT /api/problems/{id}."""

    def test_update_problem(self, client, attempt_payload):
        created = client.post("/api/attempts", json=attempt_payload).json()

        response = client.put(
            f"/api/problems/{created['problem_id']}",
            json={"title": "Renamed", "description": "New text"},
        )
        assert response.status_code == 204

        data = client.get(f"/api/problems/{created['problem_id']}").json()
        assert data["title"] == "Renamed"
        assert data["description"] == "New text"

    def test_update_missing_problem_is_404(self, client):
        response = client.put("/api/problems/3", json={"title": "X"})
        assert response.status_code == 404

    def test_title_clash_is_500(self, client, attempt_payload):
        first = client.post("/api/attempts", json=attempt_payload).json()
        attempt_payload["problem_title"] = "Trace of a matrix"
        second = client.post("/api/attempts", json=attempt_payload).json()

        response = client.put(
            f"/api/problems/{second['problem_id']}",
            json={"title": "Eigenvalues of a 2x2 matrix"},
        )

        assert response.status_code == 500
        assert "UNIQUE" in response.json()["detail"]
        data = client.get(f"/api/problems/{first['problem_id']}").json()
        assert data["title"] == "Eigenvalues of a 2x2 matrix"


class TestDeleteProblem:
    """Tests for DELETE /api/problems/{id}."""

    def test_delete_problem(self, client, attempt_payload):
        created = client.post("/api/attempts", json=attempt_payload).json()

        assert client.delete(f"/api/problems/{created['problem_id']}").status_code == 204
        assert client.get(f"/api/problems/{created['problem_id']}").status_code == 404

    def test_logging_again_recreates_problem(self, client, attempt_payload):
        created = client.post("/api/attempts", json=attempt_payload).json()
        client.delete(f"/api/problems/{created['problem_id']}")

        data = client.post("/api/attempts", json=attempt_payload).json()
        assert data["attempt_number"] == 1
        assert data["generated_id"] == "ALGE_001"


class TestBatches:
    """Tests for GET /api/problems/{id}/batches."""

    def test_list_batches(self, client, attempt_payload):
        created = client.post("/api/attempts", json=attempt_payload).json()
        attempt_payload["is_fresh_start"] = True
        attempt_payload["attempt"]["successful"] = False
        client.post("/api/attempts", json=attempt_payload)

        response = client.get(f"/api/problems/{created['problem_id']}/batches")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        first, second = data["batches"]
        assert first["batch_number"] == 1
        assert first["ended_at"] is not None
        assert first["success_rate"] == 100.0
        assert second["ended_at"] is None
        assert second["is_fresh_start"] is True
        assert second["success_rate"] == 0.0

    def test_unknown_problem_is_404(self, client):
        response = client.get("/api/problems/42/batches")

        assert response.status_code == 404
        assert response.json()["detail"] == "Problem not found: 42"


class TestErrorMapping:
    """Tests for engine error to HTTP status mapping."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (ValidationError("title", "Problem title cannot be empty"), 400),
            (NotFoundError("Attempt", 3), 404),
            (PersistenceError("disk I/O error"), 500),
            (TimeFormatError("yesterday", "bad format"), 500),
        ],
    )
    def test_status_codes(self, error, code):
        exc = to_http_exception(error)

        assert exc.status_code == code
        assert exc.detail == str(error)
