"""Tests for health endpoint."""


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_returns_version(self, client):
        data = client.get("/health").json()
        assert data["version"] == "0.1.0"

    def test_health_returns_timestamp(self, client):
        data = client.get("/health").json()
        # ISO format check
        assert "T" in data["timestamp"]
