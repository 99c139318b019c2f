"""
Tests for the health endpoints.

- database failure makes the service unhealthy (503)
- an unusable index only degrades it (200)
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from identity_search.api.routes.health import (
    CheckResult,
    DatabaseCheck,
    HealthStatus,
    SearchIndexCheck,
    StartupTracker,
    create_health_router,
    overall_status,
)
from identity_search.components.index_bootstrap import IndexReadiness


def _ok() -> None:
    return None


def _broken() -> None:
    raise RuntimeError("unable to open database file")


@pytest.fixture
def readiness() -> IndexReadiness:
    return IndexReadiness()


def _client(checks) -> TestClient:
    app = FastAPI()
    app.include_router(create_health_router(lambda: checks, version="1.0.0-test"))
    return TestClient(app)


# --- Checks ---


def test_database_check_healthy():
    result = DatabaseCheck(_ok).check()
    assert result.status == HealthStatus.HEALTHY
    assert result.latency_ms >= 0


def test_database_check_unhealthy():
    result = DatabaseCheck(_broken).check()
    assert result.status == HealthStatus.UNHEALTHY
    assert "unable to open database file" in result.message


def test_index_check_follows_readiness(readiness):
    check = SearchIndexCheck(readiness)
    assert check.check().status == HealthStatus.DEGRADED

    readiness.mark_ready()
    assert check.check().status == HealthStatus.HEALTHY

    readiness.mark_degraded("Connection refused")
    result = check.check()
    assert result.status == HealthStatus.DEGRADED
    assert result.details["last_error"] == "Connection refused"


def test_overall_status():
    healthy = CheckResult("a", HealthStatus.HEALTHY)
    degraded = CheckResult("b", HealthStatus.DEGRADED)
    unhealthy = CheckResult("c", HealthStatus.UNHEALTHY)

    assert overall_status([healthy]) == HealthStatus.HEALTHY
    assert overall_status([healthy, degraded]) == HealthStatus.DEGRADED
    assert overall_status([degraded, unhealthy]) == HealthStatus.UNHEALTHY


# --- Endpoints ---


def test_all_healthy(readiness):
    readiness.mark_ready()
    client = _client([DatabaseCheck(_ok), SearchIndexCheck(readiness)])

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0-test"
    assert {c["name"] for c in data["checks"]} == {"database", "search_index"}


def test_index_down_is_degraded_not_failing(readiness):
    readiness.mark_degraded("Connection refused")
    client = _client([DatabaseCheck(_ok), SearchIndexCheck(readiness)])

    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


def test_database_down_is_unhealthy(readiness):
    readiness.mark_ready()
    client = _client([DatabaseCheck(_broken), SearchIndexCheck(readiness)])

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_liveness():
    StartupTracker.mark_started()
    client = _client([DatabaseCheck(_broken)])

    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json()["alive"] is True
    assert response.json()["uptime_seconds"] >= 0
