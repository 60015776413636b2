"""
Tests for health check endpoint.
"""
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import get_db
from app.main import app


def test_health_endpoint_returns_ok(client):
    """Test that /api/health returns ok when DB is healthy."""
    response = client.get("/api/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["ok"] is True
    assert data["db"] is True
    assert "environment" in data


def test_health_endpoint_with_db_failure():
    """Test that /api/health returns 503 when SELECT 1 fails."""
    class FailingSession:
        def execute(self, *args, **kwargs):
            raise SQLAlchemyError("Simulated DB failure")

    def failing_get_db():
        yield FailingSession()

    app.dependency_overrides[get_db] = failing_get_db

    try:
        client = TestClient(app)
        response = client.get("/api/health")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        data = response.json()
        assert "detail" in data
    finally:
        app.dependency_overrides.clear()


def test_health_endpoint_trace_id_header(client):
    """Test that health endpoint includes trace_id in response headers."""
    response = client.get("/api/health")

    # RequestLoggingMiddleware should add X-Trace-ID header
    assert "X-Trace-ID" in response.headers
    assert len(response.headers["X-Trace-ID"]) > 0


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["docs"] == "/docs"
