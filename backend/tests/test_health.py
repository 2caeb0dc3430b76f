"""Tests for health, metrics and request tagging"""
import json
import logging

from fastapi.testclient import TestClient

from athletics_api.main import app
from athletics_api.models.user import User
from athletics_api.utils.logger import JSONFormatter, request_id_var


def test_health_check(client: TestClient):
    """Test the liveness endpoint"""
    response = client.get("/api/health_check/check")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "success"
    assert data["uptime_seconds"] >= 0


def test_readiness_reports_active_tokens(client: TestClient, user: User, login):
    """Test that readiness checks the database and counts live tokens"""
    response = client.get("/api/health_check/ready")
    assert response.status_code == 200
    checks = response.json()["checks"]
    assert checks["database"] is True
    assert checks["token_cache"] is True
    assert checks["active_tokens"] == 0

    login()
    response = client.get("/api/health_check/ready")
    assert response.json()["checks"]["active_tokens"] == 2


def test_readiness_with_closed_cache(client: TestClient):
    """Test that a closed token cache makes the service not ready"""
    app.state.token_cache.close()

    response = client.get("/api/health_check/ready")
    assert response.status_code == 503
    assert response.json()["checks"]["token_cache"] is False


def test_root(client: TestClient):
    """Test the service index"""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_metrics_count_session_events(client: TestClient, user: User, login):
    """Test that session events show up on the metrics endpoint"""
    login()
    client.get("/api/auth/logout")

    response = client.get("/metrics")
    assert response.status_code == 200
    assert 'athletics_session_events_total{event="login"}' in response.text
    assert 'athletics_session_events_total{event="logout"}' in response.text
    assert 'route="/api/auth/login"' in response.text


def test_request_id_is_echoed(client: TestClient):
    """Test that a caller-supplied request id comes back on the response"""
    response = client.get("/api/health_check/check", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/api/health_check/check").headers["X-Request-ID"]
    assert generated and generated != "req-123"


def test_json_log_line_carries_context():
    """Test that log lines are JSON with extra fields and the current request id"""
    record = logging.LogRecord("athletics_api", logging.INFO, __file__, 1, "Issued token", None, None)
    record.user_id = 7
    record.action = "login"

    context_token = request_id_var.set("req-456")
    try:
        logging.getLogger("athletics_api").handlers[0].filter(record)
    finally:
        request_id_var.reset(context_token)

    line = json.loads(JSONFormatter().format(record))
    assert line["message"] == "Issued token"
    assert line["level"] == "INFO"
    assert line["user_id"] == 7
    assert line["action"] == "login"
    assert line["request_id"] == "req-456"
