"""Tests for health check endpoint."""

from fastapi.testclient import TestClient


class TestHealth:
    def test_health_returns_ok(self, client: TestClient):
        """GET /health returns 200 with status ok in the success envelope."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"status": "ok"}
