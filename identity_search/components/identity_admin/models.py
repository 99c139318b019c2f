from dataclasses import dataclass

from identity_search.domain.entities import AuthRole, Identity, OrgRole


@dataclass
class UpdateIdentityInput:
    actor: Identity
    target_id: str
    name: str | None = None
    auth_role: AuthRole | None = None
    org_role: OrgRole | None = None
    is_active: bool | None = None


@dataclass
class DeleteIdentityInput:
    actor: Identity
    target_id: str


@dataclass
class IdentityOutput:
    identity: Identity | None = None
    success: bool = False
    error: str | None = None
