"""
Threaded delayed-task scheduler.

Runs fire-and-forget work (index updates triggered by lifecycle hooks) off the
request path. A timer waits out the delay, then the callable runs on a small
worker pool. Failures are logged and never reach the code that scheduled the
task.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

logger = logging.getLogger(__name__)


class ThreadedTaskScheduler:
    """Implements TaskSchedulerPort with threading.Timer + ThreadPoolExecutor."""

    def __init__(self, worker_count: int = 2, task_timeout_seconds: float = 10.0) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="index-task"
        )
        self._task_timeout = task_timeout_seconds
        self._lock = threading.Lock()
        self._timers: set[threading.Timer] = set()
        self._futures: set[Future[None]] = set()
        self._accepting = True
        self._closed = False

    def schedule(self, name: str, fn: Callable[[], object], delay_seconds: float = 0.0) -> bool:
        """Run `fn` after `delay_seconds`. Returns False once shut down."""
        with self._lock:
            if not self._accepting:
                logger.warning("Scheduler shutting down, rejecting task %s", name)
                return False

            timer = threading.Timer(delay_seconds, self._submit, args=(name, fn))
            timer.daemon = True
            self._timers.add(timer)
            timer.start()
        return True

    def _submit(self, name: str, fn: Callable[[], object]) -> None:
        with self._lock:
            self._timers.discard(threading.current_thread())  # type: ignore[arg-type]
            if self._closed:
                logger.warning("Scheduler closed before task %s started", name)
                return
            future = self._executor.submit(self._run, name, fn)
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            self._futures.discard(future)

    def _run(self, name: str, fn: Callable[[], object]) -> None:
        started = time.monotonic()
        try:
            fn()
        except Exception:
            logger.exception("Background task %s failed", name)
        finally:
            elapsed = time.monotonic() - started
            if elapsed > self._task_timeout:
                logger.warning(
                    "Background task %s exceeded its timeout (%.1fs > %.1fs)",
                    name,
                    elapsed,
                    self._task_timeout,
                )

    def pending(self) -> int:
        with self._lock:
            return len(self._timers) + len(self._futures)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks. With `wait`, let timers fire and tasks finish.

        New tasks are refused before the pending timers are collected, so every
        accepted task is either run or cancelled here.
        """
        with self._lock:
            self._accepting = False
            timers = list(self._timers)
        if wait:
            for timer in timers:
                timer.join()
        else:
            for timer in timers:
                timer.cancel()

        with self._lock:
            self._closed = True
            self._timers.clear()
        self._executor.shutdown(wait=wait)
