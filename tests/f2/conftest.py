"""Fixtures for F2 tests - CLI and Web API."""

import pytest
from fastapi.testclient import TestClient

from mastery.db.database import Store
from mastery.web.api import create_app


@pytest.fixture
def db_path(tmp_path):
    """Database file inside the test's temp dir."""
    return tmp_path / "db" / "mastery.db"


@pytest.fixture
def store(db_path):
    s = Store(db_path)
    yield s
    s.close()


@pytest.fixture
def client(store):
    """Test client bound to an isolated store."""
    app = create_app(store)
    return TestClient(app)


@pytest.fixture
def attempt_payload():
    """Minimal valid POST /api/attempts body."""
    return {
        "subject_name": "Algebra",
        "material_name_en": "Linear Algebra Done Right",
        "problem_title": "Eigenvalues of a 2x2 matrix",
        "attempt": {"successful": True, "resources": ["Book A"]},
        "is_fresh_start": False,
    }
