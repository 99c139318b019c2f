"""
Index bootstrap data models.

Frozen dataclasses for inputs and outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class BootstrapStatus(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class EnsureReadyInput:
    """Retry policy for one bootstrap run."""

    max_attempts: int = 5
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    number_of_replicas: int = 0


@dataclass(frozen=True)
class EnsureReadyOutput:
    status: BootstrapStatus
    attempts: int
    index_created: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status is BootstrapStatus.SUCCESS

    @classmethod
    def ready(cls, attempts: int, index_created: bool) -> EnsureReadyOutput:
        return cls(status=BootstrapStatus.SUCCESS, attempts=attempts, index_created=index_created)

    @classmethod
    def degraded(cls, attempts: int, error: str | None) -> EnsureReadyOutput:
        return cls(status=BootstrapStatus.DEGRADED, attempts=attempts, error=error)
