from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any

from identity_search.adapters.auth.crypto import JWTAuthAdapter
from identity_search.adapters.clock import SystemClock, SystemSleeper
from identity_search.adapters.dev_email import DevEmailAdapter
from identity_search.adapters.search.elastic import ElasticsearchIndex
from identity_search.adapters.sqlite.repos import SQLiteIdentityRepo, SQLiteVerificationRepo
from identity_search.adapters.tasks import ThreadedTaskScheduler
from identity_search.app_shell.rate_limit import RateLimiter
from identity_search.components.index_bootstrap import (
    EnsureReadyInput,
    EnsureReadyOutput,
    IndexReadiness,
    run_ensure_ready,
)
from identity_search.components.index_writer import IndexWriter
from identity_search.components.lifecycle import LifecycleBridge, TaskSchedulerPort
from identity_search.components.search import QueryOptions, SearchService
from identity_search.rules.models import Rules

logger = logging.getLogger(__name__)


def build_elasticsearch_index(rules: Rules) -> ElasticsearchIndex:
    cfg = rules.search
    return ElasticsearchIndex.from_url(
        url=os.environ.get("ELASTIC_URL", cfg.url),
        index_name=cfg.index_name,
        username=os.environ.get(cfg.username_env),
        password=os.environ.get(cfg.password_env),
        verify_certs=cfg.verify_certs,
        bootstrap_timeout=cfg.bootstrap_timeout_seconds,
        request_timeout=cfg.request_timeout_seconds,
    )


@dataclass
class ServiceContext:
    rules: Rules
    identity_repo: SQLiteIdentityRepo
    verification_repo: SQLiteVerificationRepo
    index: Any  # IndexAdminPort + DocumentIndexPort + SearchIndexPort
    readiness: IndexReadiness
    writer: IndexWriter
    scheduler: TaskSchedulerPort
    bridge: LifecycleBridge
    search_service: SearchService
    rate_limiter: RateLimiter
    mailer: DevEmailAdapter
    auth_adapter: JWTAuthAdapter
    clock: Any
    sleeper: Any
    stopping: threading.Event = field(default_factory=threading.Event)
    bootstrap_thread: threading.Thread | None = None

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: Rules,
        index: Any = None,
        scheduler: TaskSchedulerPort | None = None,
        clock: Any = None,
        sleeper: Any = None,
        auth_adapter: JWTAuthAdapter | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock()
        stopping = threading.Event()
        index = index if index is not None else build_elasticsearch_index(rules)
        scheduler = scheduler or ThreadedTaskScheduler(
            worker_count=rules.lifecycle.worker_count,
            task_timeout_seconds=rules.lifecycle.task_timeout_seconds,
        )

        identity_repo = SQLiteIdentityRepo(db_path)
        verification_repo = SQLiteVerificationRepo(db_path)
        readiness = IndexReadiness()
        writer = IndexWriter(index)

        bridge = LifecycleBridge(
            identity_repo=identity_repo,
            verification_repo=verification_repo,
            writer=writer,
            scheduler=scheduler,
            time=clock,
            verification_delay_seconds=rules.lifecycle.verification_delay_ms / 1000,
        )
        defaults = rules.search_defaults
        search_service = SearchService(
            index=index,
            fallback_repo=identity_repo,
            clock=clock,
            readiness=readiness,
            options=QueryOptions(
                fuzziness=defaults.fuzziness,
                name_boost=defaults.name_boost,
                email_boost=defaults.email_boost,
                max_page_size=defaults.max_limit,
            ),
        )

        return cls(
            rules=rules,
            identity_repo=identity_repo,
            verification_repo=verification_repo,
            index=index,
            readiness=readiness,
            writer=writer,
            scheduler=scheduler,
            bridge=bridge,
            search_service=search_service,
            rate_limiter=RateLimiter(rules.rate_limits, clock),
            mailer=DevEmailAdapter(),
            auth_adapter=auth_adapter or JWTAuthAdapter(),
            clock=clock,
            sleeper=sleeper or SystemSleeper(stopping),
            stopping=stopping,
        )

    def ensure_index(self, max_attempts: int | None = None) -> EnsureReadyOutput:
        cfg = self.rules.bootstrap
        inp = EnsureReadyInput(
            max_attempts=max_attempts or cfg.max_attempts,
            base_delay_seconds=cfg.base_delay_seconds,
            max_delay_seconds=cfg.max_delay_seconds,
            number_of_replicas=self.rules.search.number_of_replicas,
        )
        return run_ensure_ready(
            inp,
            self.index,
            self.readiness,
            self.sleeper,
            self.clock,
            should_stop=self.stopping.is_set,
        )

    def start_bootstrap(self, delay_seconds: float = 0.0) -> threading.Thread:
        """Run ensure_index on its own daemon thread, outside the task pool."""

        def _bootstrap() -> None:
            if self.stopping.wait(delay_seconds):
                return
            try:
                self.ensure_index()
            except Exception:
                logger.exception("Startup index bootstrap failed")

        thread = threading.Thread(target=_bootstrap, name="index-bootstrap", daemon=True)
        self.bootstrap_thread = thread
        thread.start()
        return thread

    def close(self) -> None:
        self.stopping.set()
        if self.bootstrap_thread is not None:
            # A ping already in flight finishes within the bootstrap timeout.
            self.bootstrap_thread.join(timeout=self.rules.search.bootstrap_timeout_seconds)
        shutdown = getattr(self.scheduler, "shutdown", None)
        if shutdown is not None:
            shutdown(wait=True)
        close = getattr(self.index, "close", None)
        if close is not None:
            close()
