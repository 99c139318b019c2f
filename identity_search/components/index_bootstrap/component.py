"""
Index bootstrap component implementation.

Makes sure the identity index exists before indexing traffic starts. An
unreachable index service is retried with exponential backoff; when all
attempts fail the run ends DEGRADED instead of raising, and search keeps
working against the system of record.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from .models import EnsureReadyInput, EnsureReadyOutput
from .ports import IndexAdminPort, SleeperPort
from .schema import IDENTITY_INDEX_MAPPINGS, build_index_settings
from .state import IndexReadiness

logger = logging.getLogger(__name__)


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay after the given 1-based attempt: base * 2**(attempt-1), capped."""
    if attempt < 1:
        return 0.0
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def _ensure_index(index: IndexAdminPort, replicas: int) -> bool:
    """Create the index if absent. Returns True when this call created it."""
    if index.index_exists():
        return False
    created = index.create_index(IDENTITY_INDEX_MAPPINGS, build_index_settings(replicas))
    if created:
        logger.info("Created index %s", index.index_name)
    return created


def run_ensure_ready(
    inp: EnsureReadyInput,
    index: IndexAdminPort,
    readiness: IndexReadiness,
    sleeper: SleeperPort,
    time: TimePort | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> EnsureReadyOutput:
    """Ping, create the index if missing, retry with backoff; never raises.

    `should_stop` is checked before every retry. Once it returns True the run
    ends DEGRADED with "Bootstrap cancelled" and readiness is left unchanged.
    """
    last_error: str | None = None

    for attempt in range(1, inp.max_attempts + 1):
        if attempt > 1 and should_stop is not None and should_stop():
            logger.info("Index bootstrap cancelled after %d attempt(s)", attempt - 1)
            return EnsureReadyOutput.degraded(attempts=attempt - 1, error="Bootstrap cancelled")
        logger.info(
            "Connecting to index service (attempt %d/%d)", attempt, inp.max_attempts
        )
        try:
            if index.ping():
                created = _ensure_index(index, inp.number_of_replicas)
                readiness.mark_ready(time.now_utc() if time else None)
                logger.info("Index %s ready", index.index_name)
                return EnsureReadyOutput.ready(attempts=attempt, index_created=created)
            last_error = "Index service did not answer ping"
        except Exception as e:
            last_error = str(e) or e.__class__.__name__

        logger.warning(
            "Index bootstrap failed (attempt %d/%d): %s", attempt, inp.max_attempts, last_error
        )
        if attempt < inp.max_attempts:
            delay = backoff_delay(attempt, inp.base_delay_seconds, inp.max_delay_seconds)
            logger.info("Waiting %.1fs before retry", delay)
            sleeper.sleep(delay)

    logger.error(
        "All %d index bootstrap attempts failed; continuing without the index",
        inp.max_attempts,
    )
    readiness.mark_degraded(last_error, time.now_utc() if time else None)
    return EnsureReadyOutput.degraded(attempts=inp.max_attempts, error=last_error)
