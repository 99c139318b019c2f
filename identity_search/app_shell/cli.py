"""
Operator CLI.

    python -m identity_search.app_shell.cli migrate [--rollback]
    python -m identity_search.app_shell.cli ensure-index
    python -m identity_search.app_shell.cli reindex [--id UUID]
    python -m identity_search.app_shell.cli search "jane" [--role admin]
    python -m identity_search.app_shell.cli serve [--host 0.0.0.0] [--port 8000]
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from uuid import UUID

import uvicorn

from identity_search.adapters.sqlite.migrator import SQLiteMigrator
from identity_search.app_shell.context import ServiceContext
from identity_search.components.reindex import (
    ReindexAllInput,
    ReindexIdentityInput,
    run_reindex_all,
    run_reindex_identity,
)
from identity_search.components.search import SearchFilters, SearchInput
from identity_search.rules.loader import load_rules

logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("IDS_DATA_DIR", "./data")
DB_PATH = str(Path(DATA_DIR) / "identity.db")
MIGRATIONS_DIR = "migrations"
RULES_PATH = os.environ.get("IDS_RULES_PATH", "rules.yaml")


def get_context() -> ServiceContext:
    if not Path(RULES_PATH).exists():
        logger.error("Rules file %s not found.", RULES_PATH)
        sys.exit(1)

    rules = load_rules(Path(RULES_PATH))
    return ServiceContext.create(DB_PATH, rules)


def handle_migrate(args: argparse.Namespace) -> int:
    Path(DATA_DIR).mkdir(parents=True, exist_ok=True)
    migrator = SQLiteMigrator(DB_PATH, MIGRATIONS_DIR)
    if args.rollback:
        name = migrator.rollback_last()
        print(f"Rolled back {name}." if name else "Nothing to roll back.")
        return 0

    applied = migrator.run_migrations()
    print(f"Applied {len(applied)} migration(s).")
    for name in applied:
        print(f"  {name}")
    return 0


def handle_ensure_index(ctx: ServiceContext, args: argparse.Namespace) -> int:
    result = ctx.ensure_index(max_attempts=args.attempts)
    print(
        f"Index {ctx.rules.search.index_name}: {result.status.value} "
        f"after {result.attempts} attempt(s), created={result.index_created}"
    )
    if result.error:
        print(f"Last error: {result.error}")
    return 0 if result.success else 1


def handle_reindex(ctx: ServiceContext, args: argparse.Namespace) -> int:
    if args.id:
        result = run_reindex_identity(
            ReindexIdentityInput(UUID(args.id)), ctx.identity_repo, ctx.writer
        )
    else:
        result = run_reindex_all(
            ReindexAllInput(batch_size=args.batch_size), ctx.identity_repo, ctx.writer
        )
    print(f"Indexed {result.indexed}, failed {result.failed}.")
    for failed_id in result.failed_ids:
        print(f"  failed: {failed_id}")
    if result.error:
        print(f"Error: {result.error}")
    return 0 if result.success else 1


def handle_search(ctx: ServiceContext, args: argparse.Namespace) -> int:
    # Without an explicit bootstrap the index is not known to be ready.
    ctx.ensure_index(max_attempts=1)
    result = ctx.search_service.search(
        SearchInput(
            text=args.query,
            filters=SearchFilters(role=args.role),
            page_size=args.limit,
        )
    )
    if not result.success:
        print(f"Search unavailable: {result.error}")
        return 1

    print(f"{result.total} result(s) from {result.source.value} in {result.took_ms}ms")
    for hit in result.results:
        print(json.dumps(hit.document, default=str))
    return 0


def handle_serve(args: argparse.Namespace) -> int:
    # The API lifespan migrates, loads rules and schedules the index bootstrap.
    logger.info("Starting API on %s:%d", args.host, args.port)
    uvicorn.run(
        "identity_search.api.main:app",
        host=args.host,
        port=args.port,
        log_config=None,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Identity Search CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply pending database migrations")
    migrate_parser.add_argument(
        "--rollback", action="store_true", help="Undo the most recent migration"
    )

    # ensure-index
    ensure_parser = subparsers.add_parser("ensure-index", help="Create the search index if missing")
    ensure_parser.add_argument(
        "--attempts", type=int, default=None, help="Override bootstrap.max_attempts"
    )

    # reindex
    reindex_parser = subparsers.add_parser("reindex", help="Rebuild index documents")
    reindex_parser.add_argument("--id", help="Reindex a single identity")
    reindex_parser.add_argument("--batch-size", type=int, default=200)

    # search
    search_parser = subparsers.add_parser("search", help="Run a search query")
    search_parser.add_argument("query", nargs="?", default=None)
    search_parser.add_argument("--role", default=None)
    search_parser.add_argument("--limit", type=int, default=10)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

    if args.command == "migrate":
        return handle_migrate(args)
    if args.command == "serve":
        return handle_serve(args)

    ctx = get_context()
    try:
        if args.command == "ensure-index":
            return handle_ensure_index(ctx, args)
        if args.command == "reindex":
            return handle_reindex(ctx, args)
        if args.command == "search":
            return handle_search(ctx, args)
    finally:
        ctx.close()
    return 1


if __name__ == "__main__":
    sys.exit(main())
