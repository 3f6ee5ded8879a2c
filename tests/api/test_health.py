"""
Tests for health and readiness endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from intent_engine.api.main import app
from intent_engine.api.routes.health import API_VERSION


@pytest.fixture
def client():
    """Create test client without running the lifespan."""
    yield TestClient(app)
    for name in ("engine", "scheduler"):
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def running_scheduler():
    scheduler = MagicMock()
    scheduler.is_running = True
    return scheduler


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client):
        """Health endpoint returns 200 OK."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "intent-engine"
        assert data["version"] == API_VERSION

    def test_root_lists_endpoints(self, client):
        data = client.get("/").json()

        assert data["service"] == "Intent Engine API"
        assert data["endpoints"]["metrics"] == "/metrics"


class TestReadinessEndpoint:
    """Tests for /ready endpoint."""

    def test_not_ready_without_engine(self, client):
        """Ready endpoint returns 503 before startup completes."""
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == "Engine not initialized"

    def test_not_ready_without_scheduler(self, client, engine):
        app.state.engine = engine
        app.state.scheduler = MagicMock(is_running=False)

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == "Processing scheduler not running"

    def test_ready_with_memory_store(self, client, engine, running_scheduler):
        app.state.engine = engine
        app.state.scheduler = running_scheduler

        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["signal_store"] == "memory"
        assert data["workflow_circuits"] == []

    def test_not_ready_when_mongodb_unreachable(self, client, engine, running_scheduler):
        """With the MongoDB backend, a failed ping makes the service unready."""
        app.state.engine = engine
        app.state.scheduler = running_scheduler

        with patch("intent_engine.api.routes.health.get_settings") as mock_settings, \
             patch("intent_engine.api.routes.health.db_manager") as mock_db:
            mock_settings.return_value.signal_store_backend = "mongodb"
            mock_db.ping = AsyncMock(return_value=False)

            response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["reason"] == "MongoDB unreachable"

    def test_ready_when_mongodb_answers(self, client, engine, running_scheduler):
        app.state.engine = engine
        app.state.scheduler = running_scheduler

        with patch("intent_engine.api.routes.health.get_settings") as mock_settings, \
             patch("intent_engine.api.routes.health.db_manager") as mock_db:
            mock_settings.return_value.signal_store_backend = "mongodb"
            mock_db.ping = AsyncMock(return_value=True)

            response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["signal_store"] == "mongodb"
