from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from identity_search.domain.entities import AuthRole, OrgRole


# --- Auth ---
class SignupRequest(BaseModel):
    email: str
    password: str
    name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- Identities ---
class IdentityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None
    auth_role: AuthRole
    org_role: OrgRole
    is_active: bool
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class SignupResponse(BaseModel):
    user: IdentityResponse
    verification_required: bool


class VerifyEmailResponse(BaseModel):
    status: bool
    user: IdentityResponse
    access_token: str | None = None


class IdentityUpdateRequest(BaseModel):
    name: str | None = None
    auth_role: AuthRole | None = None
    org_role: OrgRole | None = None
    is_active: bool | None = None


# --- Search ---
class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class SearchInfo(BaseModel):
    query: str
    took: int
    source: str
    degraded: bool


class SearchData(BaseModel):
    users: list[dict[str, Any]]
    pagination: Pagination
    searchInfo: SearchInfo


class SearchResponse(BaseModel):
    success: bool = True
    data: SearchData


# --- Admin ---
class BootstrapResponse(BaseModel):
    status: str
    attempts: int
    index_created: bool
    error: str | None = None


class ReindexResponse(BaseModel):
    indexed: int
    failed: int
    failed_ids: list[str]
    success: bool
    error: str | None = None
