"""
Identity administration - role/status changes and deletion by admins.

Changes are written to the system of record and then announced to the
lifecycle hooks, which keep the search index in step.
"""

from typing import Any
from uuid import UUID

from identity_search.components.lifecycle import IdentityDeletedEvent, IdentityUpdatedEvent
from identity_search.domain.entities import ELEVATED_AUTH_ROLE, Identity

from .models import DeleteIdentityInput, IdentityOutput, UpdateIdentityInput
from .ports import AdminHooksPort, IdentityRepoPort, TimePort


def can_manage_identities(actor: Identity) -> bool:
    return actor.is_active and actor.auth_role == ELEVATED_AUTH_ROLE


def _parse_id(raw: str) -> UUID | None:
    try:
        return UUID(str(raw))
    except (ValueError, TypeError):
        return None


def run_update_identity(
    inp: UpdateIdentityInput,
    identity_repo: IdentityRepoPort,
    hooks: AdminHooksPort,
    time: TimePort,
) -> IdentityOutput:
    if not can_manage_identities(inp.actor):
        return IdentityOutput(success=False, error="Access denied")

    uid = _parse_id(inp.target_id)
    if uid is None:
        return IdentityOutput(success=False, error="Invalid user ID format")

    target = identity_repo.get_by_id(uid)
    if not target:
        return IdentityOutput(success=False, error="User not found")

    # Self-lockout check
    if target.id == inp.actor.id:
        if inp.auth_role is not None and inp.auth_role != ELEVATED_AUTH_ROLE:
            return IdentityOutput(success=False, error="Cannot remove admin role from yourself")
        if inp.is_active is False:
            return IdentityOutput(success=False, error="Cannot disable yourself")

    changes: dict[str, Any] = {}
    if inp.name is not None:
        changes["name"] = inp.name.strip() or None
    if inp.auth_role is not None:
        changes["auth_role"] = inp.auth_role
    if inp.org_role is not None:
        changes["org_role"] = inp.org_role
    if inp.is_active is not None:
        changes["is_active"] = inp.is_active

    if not changes:
        return IdentityOutput(identity=target, success=True)

    updated = identity_repo.update_fields(uid, changes, time.now_utc())
    if not updated:
        return IdentityOutput(success=False, error="User not found")

    hooks.on_identity_updated(IdentityUpdatedEvent(identity_id=uid))
    return IdentityOutput(identity=updated, success=True)


def run_delete_identity(
    inp: DeleteIdentityInput,
    identity_repo: IdentityRepoPort,
    hooks: AdminHooksPort,
) -> IdentityOutput:
    if not can_manage_identities(inp.actor):
        return IdentityOutput(success=False, error="Access denied")

    uid = _parse_id(inp.target_id)
    if uid is None:
        return IdentityOutput(success=False, error="Invalid user ID format")

    if uid == inp.actor.id:
        return IdentityOutput(success=False, error="Cannot delete yourself")

    target = identity_repo.get_by_id(uid)
    if not target or not identity_repo.delete(uid):
        return IdentityOutput(success=False, error="User not found")

    hooks.on_identity_deleted(IdentityDeletedEvent(identity_id=uid))
    return IdentityOutput(identity=target, success=True)
