from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from identity_search.domain.entities import AuthRole, Identity, OrgRole


@dataclass(frozen=True)
class ResolveInput:
    identity_id: UUID


@dataclass(frozen=True)
class RoleAssignment:
    auth_role: AuthRole
    org_role: OrgRole
    escalated: bool


@dataclass(frozen=True)
class ResolveOutput:
    assignment: RoleAssignment | None = None
    identity: Identity | None = None
    success: bool = False
    error: str | None = None
