"""Process-wide record of whether the search index is usable."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class IndexState(str, Enum):
    UNKNOWN = "unknown"
    READY = "ready"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class ReadinessSnapshot:
    state: IndexState
    last_attempt_at: datetime | None
    last_error: str | None


class IndexReadiness:
    """Thread-safe holder written by the bootstrapper, read by search."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = IndexState.UNKNOWN
        self._last_attempt_at: datetime | None = None
        self._last_error: str | None = None

    @property
    def state(self) -> IndexState:
        with self._lock:
            return self._state

    def is_ready(self) -> bool:
        return self.state is IndexState.READY

    def mark_ready(self, at: datetime | None = None) -> None:
        with self._lock:
            self._state = IndexState.READY
            self._last_attempt_at = at
            self._last_error = None

    def mark_degraded(self, error: str | None, at: datetime | None = None) -> None:
        with self._lock:
            self._state = IndexState.DEGRADED
            self._last_attempt_at = at
            self._last_error = error

    def snapshot(self) -> ReadinessSnapshot:
        with self._lock:
            return ReadinessSnapshot(self._state, self._last_attempt_at, self._last_error)
