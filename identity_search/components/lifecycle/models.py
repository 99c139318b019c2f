"""
Lifecycle event and outcome models.

A verification event arrives either with the identity already resolved or
with nothing but the raw token in its query context; the two shapes are
separate types so the bridge handles each explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from identity_search.domain.entities import Identity


@dataclass(frozen=True)
class SignupEvent:
    """A new identity was created.

    `identity` is the record as it was before role resolution. The bridge
    indexes a fresh read of the record, not this snapshot.
    """

    identity_id: UUID
    identity: Identity | None = None


@dataclass(frozen=True)
class Resolved:
    identity: Identity


@dataclass(frozen=True)
class TokenOnly:
    token: str | None = None
    context: dict[str, str] = field(default_factory=dict)

    def extract_token(self) -> str | None:
        token = self.token or self.context.get("token")
        return token or None


VerificationPayload = Resolved | TokenOnly


@dataclass(frozen=True)
class VerificationEvent:
    payload: VerificationPayload


@dataclass(frozen=True)
class IdentityUpdatedEvent:
    identity_id: UUID


@dataclass(frozen=True)
class IdentityDeletedEvent:
    identity_id: UUID


@dataclass(frozen=True)
class HookOutcome:
    """What a hook did. Hooks never raise; `error` explains a skipped event."""

    accepted: bool
    identity_id: UUID | None = None
    scheduled: bool = False
    escalated: bool = False
    error: str | None = None
