import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from identity_search.adapters.sqlite.migrator import SQLiteMigrator
from identity_search.api.deps import get_context, get_settings, set_context
from identity_search.api.routes.health import (
    DatabaseCheck,
    HealthCheck,
    SearchIndexCheck,
    StartupTracker,
    create_health_router,
)
from identity_search.rules.loader import load_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load rules on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        logger.info("Rules loaded from %s", settings.rules_path)
    except Exception as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    if applied:
        logger.info("Applied migrations: %s", ", ".join(applied))

    ctx = ServiceContext.create(settings.db_path, rules)
    set_context(ctx)
    StartupTracker.mark_started()

    # The API serves degraded results while the index bootstrap retries.
    ctx.start_bootstrap(delay_seconds=rules.bootstrap.startup_delay_seconds)

    yield

    ctx.close()
    set_context(None)


app = FastAPI(
    title="Identity Search API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


def _health_checks() -> list[HealthCheck]:
    ctx = get_context()
    return [DatabaseCheck(ctx.identity_repo.ping), SearchIndexCheck(ctx.readiness)]


# --- Routers ---
from identity_search.api.routes import admin_search, auth, users  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(admin_search.router, prefix="/api/admin/search", tags=["Admin Search"])
app.include_router(create_health_router(_health_checks, version=app.version))


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
