"""
Admin endpoints for the search index.

Retry the index bootstrap out-of-band after a degraded start, inspect index
readiness, and rebuild documents from the system of record.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from identity_search.api.deps import get_context, require_admin
from identity_search.api.schemas import BootstrapResponse, ReindexResponse
from identity_search.app_shell.context import ServiceContext
from identity_search.components.reindex import (
    ReindexAllInput,
    ReindexIdentityInput,
    run_reindex_all,
    run_reindex_identity,
)
from identity_search.domain.entities import Identity

router = APIRouter()


class ReindexRequest(BaseModel):
    identity_id: UUID | None = None
    batch_size: int = 200


@router.get("/status")
def index_status(
    _admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, Any]:
    snapshot = ctx.readiness.snapshot()
    return {
        "state": snapshot.state.value,
        "last_attempt_at": snapshot.last_attempt_at,
        "last_error": snapshot.last_error,
    }


@router.post("/bootstrap", response_model=BootstrapResponse)
def bootstrap_index(
    max_attempts: int = 1,
    _admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> BootstrapResponse:
    """Retry index creation; one attempt by default so the request stays short."""
    result = ctx.ensure_index(max_attempts=max(max_attempts, 1))
    return BootstrapResponse(
        status=result.status.value,
        attempts=result.attempts,
        index_created=result.index_created,
        error=result.error,
    )


@router.post("/reindex", response_model=ReindexResponse)
def reindex(
    req: ReindexRequest,
    _admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> ReindexResponse:
    if req.identity_id is not None:
        result = run_reindex_identity(
            ReindexIdentityInput(req.identity_id), ctx.identity_repo, ctx.writer
        )
        if result.error == "Identity not found":
            raise HTTPException(status_code=404, detail="User not found")
    else:
        result = run_reindex_all(
            ReindexAllInput(batch_size=req.batch_size), ctx.identity_repo, ctx.writer
        )
    return ReindexResponse(
        indexed=result.indexed,
        failed=result.failed,
        failed_ids=result.failed_ids,
        success=result.success,
        error=result.error,
    )
