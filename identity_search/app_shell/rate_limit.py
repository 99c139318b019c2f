from collections import deque
from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol

from identity_search.adapters.clock import SystemClock
from identity_search.rules.models import RateLimitRules, RateLimitWindow

SWEEP_INTERVAL_SECONDS = 60


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...


class RateLimiter:
    """Sliding-window admission gate for the authentication endpoints.

    Attempts are keyed by `<scope>:<client>` so that signup, login and
    verification budgets never share a window. Keys whose window has fully
    expired are dropped, at most once per sweep interval.
    """

    def __init__(
        self,
        rules: RateLimitRules,
        clock: ClockPort | None = None,
        sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS,
    ):
        self.rules = rules
        self._clock = clock or SystemClock()
        self._attempts: dict[str, deque[datetime]] = {}
        self._windows: dict[str, int] = {}
        self._sweep_interval = timedelta(seconds=sweep_interval_seconds)
        self._last_sweep: datetime | None = None
        self._lock = Lock()

    def allow(self, key: str, window: RateLimitWindow) -> bool:
        """Record an attempt under `key` if the window still has room."""
        if window.max_attempts <= 0:
            return False

        now = self._clock.now_utc()
        oldest_allowed = now - timedelta(seconds=window.window_seconds)
        with self._lock:
            self._sweep(now)
            seen = self._attempts.get(key)
            if seen is not None:
                while seen and seen[0] <= oldest_allowed:
                    seen.popleft()
                if len(seen) >= window.max_attempts:
                    return False
            else:
                seen = self._attempts[key] = deque()
            seen.append(now)
            self._windows[key] = window.window_seconds
            return True

    def _sweep(self, now: datetime) -> None:
        if self._last_sweep is not None and now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [
            key
            for key, seen in self._attempts.items()
            if not seen or seen[-1] <= now - timedelta(seconds=self._windows.get(key, 0))
        ]
        for key in expired:
            del self._attempts[key]
            self._windows.pop(key, None)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._attempts)

    def check_signup(self, client: str) -> bool:
        return self.allow(f"signup:{client}", self.rules.signup)

    def check_login(self, client: str) -> bool:
        return self.allow(f"login:{client}", self.rules.login)

    def check_verify(self, client: str) -> bool:
        return self.allow(f"verify:{client}", self.rules.verify)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()
            self._windows.clear()
            self._last_sweep = None
