import math
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from identity_search.api.deps import get_context, require_admin
from identity_search.api.schemas import (
    IdentityResponse,
    IdentityUpdateRequest,
    Pagination,
    SearchData,
    SearchInfo,
    SearchResponse,
)
from identity_search.app_shell.context import ServiceContext
from identity_search.components.identity_admin import (
    DeleteIdentityInput,
    UpdateIdentityInput,
    run_delete_identity,
    run_update_identity,
)
from identity_search.components.search import (
    SearchFilters,
    SearchHit,
    SearchInput,
    SearchOutput,
    SearchSource,
)
from identity_search.domain.entities import Identity

router = APIRouter()


def _hit_to_json(hit: SearchHit) -> dict[str, Any]:
    doc = dict(hit.document)
    if hit.score is not None:
        doc["_score"] = hit.score
    if hit.highlight:
        doc["_highlight"] = hit.highlight
    return doc


def _search_envelope(
    result: SearchOutput, query: str | None, page: int, limit: int
) -> dict[str, Any]:
    response = SearchResponse(
        data=SearchData(
            users=[_hit_to_json(hit) for hit in result.results],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=result.total,
                totalPages=math.ceil(result.total / limit) if limit else 0,
            ),
            searchInfo=SearchInfo(
                query=query or "all users",
                took=result.took_ms,
                source=result.source.value,
                degraded=result.degraded,
            ),
        )
    )
    return response.model_dump()


def _run_search(
    ctx: ServiceContext,
    query: str | None,
    role: str | None,
    is_active: bool | None,
    email_verified: bool | None,
    page: int,
    limit: int | None,
) -> Any:
    defaults = ctx.rules.search_defaults
    limit = min(limit or defaults.default_limit, defaults.max_limit)
    result = ctx.search_service.search(
        SearchInput(
            text=query,
            filters=SearchFilters(role=role, is_active=is_active, email_verified=email_verified),
            page_from=(page - 1) * limit,
            page_size=limit,
        )
    )
    if not result.success or result.source is SearchSource.NONE:
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Search unavailable"},
        )
    return _search_envelope(result, query, page, limit)


@router.get("/search")
def search_users(
    q: str | None = None,
    role: str | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    email_verified: bool | None = Query(default=None, alias="emailVerified"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    _admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> Any:
    """Search identities through the index, or the database when it is down."""
    return _run_search(ctx, q, role, is_active, email_verified, page, limit)


@router.get("")
def list_users(
    search: str | None = None,
    q: str | None = None,
    role: str | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    email_verified: bool | None = Query(default=None, alias="emailVerified"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    _admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> Any:
    """List identities; `search` and `q` are interchangeable."""
    return _run_search(ctx, search or q, role, is_active, email_verified, page, limit)


@router.patch("/{user_id}", response_model=IdentityResponse)
def update_user(
    user_id: str,
    req: IdentityUpdateRequest,
    admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> Any:
    """Update name, roles or active flag (admin only)."""
    result = run_update_identity(
        UpdateIdentityInput(
            actor=admin,
            target_id=user_id,
            name=req.name,
            auth_role=req.auth_role,
            org_role=req.org_role,
            is_active=req.is_active,
        ),
        identity_repo=ctx.identity_repo,
        hooks=ctx.bridge,
        time=ctx.clock,
    )
    if not result.success:
        if result.error == "Access denied":
            raise HTTPException(status_code=403, detail="Access denied")
        if result.error == "User not found":
            raise HTTPException(status_code=404, detail="User not found")
        raise HTTPException(status_code=400, detail=result.error)
    return result.identity


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    admin: Identity = Depends(require_admin),
    ctx: ServiceContext = Depends(get_context),
) -> dict[str, str]:
    """Delete an identity (admin only)."""
    result = run_delete_identity(
        DeleteIdentityInput(actor=admin, target_id=user_id),
        identity_repo=ctx.identity_repo,
        hooks=ctx.bridge,
    )
    if not result.success:
        if result.error == "Access denied":
            raise HTTPException(status_code=403, detail="Access denied")
        if result.error == "User not found":
            raise HTTPException(status_code=404, detail="User not found")
        raise HTTPException(status_code=400, detail=result.error)
    return {"status": "deleted"}
