"""
First-account privilege resolution.

The very first identity in the system of record becomes the administrator.
Whether an identity is "first" is derived from the current record count at
the time of the call; there is no cached flag.

Known gap: two signups committing before either is resolved can both see a
count of 1 and both be escalated. Nothing here serializes resolution.
"""

from __future__ import annotations

import logging

from identity_search.domain.entities import (
    DEFAULT_ORG_ROLE,
    ELEVATED_AUTH_ROLE,
    HIGHEST_ORG_ROLE,
    STANDARD_AUTH_ROLE,
)

from .models import ResolveInput, ResolveOutput, RoleAssignment
from .ports import IdentityRepoPort, TimePort

logger = logging.getLogger(__name__)


def decide_roles(identity_count: int) -> RoleAssignment:
    """Elevated roles iff the new identity is the only one that exists."""
    if identity_count == 1:
        return RoleAssignment(ELEVATED_AUTH_ROLE, HIGHEST_ORG_ROLE, escalated=True)
    return RoleAssignment(STANDARD_AUTH_ROLE, DEFAULT_ORG_ROLE, escalated=False)


def run_resolve(
    inp: ResolveInput, identity_repo: IdentityRepoPort, time: TimePort
) -> ResolveOutput:
    """Decide and persist the roles of a freshly created identity."""
    assignment = decide_roles(identity_repo.count())

    identity = identity_repo.set_roles(
        inp.identity_id, assignment.auth_role, assignment.org_role, time.now_utc()
    )
    if identity is None:
        return ResolveOutput(assignment=assignment, success=False, error="Identity not found")

    if assignment.escalated:
        logger.info("First identity %s created - admin privileges granted", identity.email)
    else:
        logger.info("Assigned default roles to %s", identity.email)

    return ResolveOutput(assignment=assignment, identity=identity, success=True)
