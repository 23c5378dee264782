# tests/api/test_health_api.py
from datetime import datetime
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError
from starlette.testclient import TestClient

from signup_service.db.session import get_db
from signup_service.main import app


def test_health_ok(test_client_e2e: TestClient):
    response = test_client_e2e.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00")).tzinfo is not None


def test_health_reports_unreachable_database(test_client_e2e: TestClient):
    broken_db = MagicMock()
    broken_db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("could not connect"))
    app.dependency_overrides[get_db] = lambda: broken_db

    response = test_client_e2e.get("/api/health")

    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "Database connection failed"}
    assert "could not connect" not in response.text


def test_health_counts_against_general_limit(test_client_e2e: TestClient):
    limiters = app.state.rate_limiters
    test_client_e2e.get("/api/health")

    # TestClient connects as "testclient"
    assert len(limiters.general._windows["testclient"]) == 1
    assert "testclient" not in limiters.registration._windows
