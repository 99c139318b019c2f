"""
Health endpoints.

- /health/live: process is up
- /health and /health/ready: dependency checks. A database failure makes
  the service unhealthy (503). An unusable search index only degrades it:
  search still answers from the database.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from identity_search.components.index_bootstrap import IndexReadiness, IndexState

# --- Types ---


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class CheckResult:
    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)


class HealthCheck(Protocol):
    name: str

    def check(self) -> CheckResult:
        ...


class StartupTracker:
    """Tracks application startup time for uptime calculation."""

    _start_time: float | None = None

    @classmethod
    def mark_started(cls) -> None:
        cls._start_time = time.time()

    @classmethod
    def get_uptime_seconds(cls) -> float:
        if cls._start_time is None:
            return 0.0
        return time.time() - cls._start_time


# --- Checks ---


class DatabaseCheck:
    """System-of-record connectivity."""

    name = "database"

    def __init__(self, check_fn: Callable[[], object]) -> None:
        self._check_fn = check_fn

    def check(self) -> CheckResult:
        start = time.time()
        try:
            self._check_fn()
        except Exception as e:
            return CheckResult(
                name=self.name,
                status=HealthStatus.UNHEALTHY,
                message=f"Database error: {e!s}",
                latency_ms=(time.time() - start) * 1000,
            )
        return CheckResult(
            name=self.name,
            status=HealthStatus.HEALTHY,
            message="Database connected",
            latency_ms=(time.time() - start) * 1000,
        )


class SearchIndexCheck:
    """Reports the bootstrapper's view of the index; does not call it."""

    name = "search_index"

    def __init__(self, readiness: IndexReadiness) -> None:
        self._readiness = readiness

    def check(self) -> CheckResult:
        snapshot = self._readiness.snapshot()
        if snapshot.state is IndexState.READY:
            return CheckResult(name=self.name, status=HealthStatus.HEALTHY, message="Index ready")
        message = "Index unavailable, using database fallback"
        if snapshot.state is IndexState.UNKNOWN:
            message = "Index not bootstrapped yet"
        return CheckResult(
            name=self.name,
            status=HealthStatus.DEGRADED,
            message=message,
            details={"last_error": snapshot.last_error},
        )


def overall_status(results: list[CheckResult]) -> HealthStatus:
    if any(r.status == HealthStatus.UNHEALTHY for r in results):
        return HealthStatus.UNHEALTHY
    if all(r.status == HealthStatus.HEALTHY for r in results):
        return HealthStatus.HEALTHY
    return HealthStatus.DEGRADED


# --- FastAPI Router ---


def create_health_router(
    checks: Callable[[], list[HealthCheck]],
    version: str = "0.0.0",
) -> APIRouter:
    """Health router; `checks` is called per request so it can be resolved lazily."""
    router = APIRouter(tags=["health"])

    def _report() -> JSONResponse:
        results = [c.check() for c in checks()]
        overall = overall_status(results)
        content = {
            "status": overall.value,
            "version": version,
            "uptime_seconds": StartupTracker.get_uptime_seconds(),
            "checks": [
                {
                    "name": r.name,
                    "status": r.status.value,
                    "message": r.message,
                    "latency_ms": r.latency_ms,
                }
                for r in results
            ],
        }
        status_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if overall == HealthStatus.UNHEALTHY
            else status.HTTP_200_OK
        )
        return JSONResponse(content=content, status_code=status_code)

    @router.get("/health", response_model=None)
    def health_check() -> JSONResponse:
        return _report()

    @router.get("/health/ready", response_model=None)
    def readiness_check() -> JSONResponse:
        return _report()

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        return JSONResponse(
            content={"alive": True, "uptime_seconds": StartupTracker.get_uptime_seconds()},
            status_code=status.HTTP_200_OK,
        )

    return router
