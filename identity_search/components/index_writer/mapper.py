"""Identity -> SearchDocument projection. Pure; no I/O."""

from __future__ import annotations

from datetime import UTC, datetime

from identity_search.domain.entities import Identity, SearchDocument


def to_index_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def to_document(identity: Identity) -> SearchDocument:
    return SearchDocument(
        id=str(identity.id),
        email=identity.email,
        name=identity.name or None,
        role=identity.auth_role,
        organizational_role=identity.org_role,
        is_active=identity.is_active,
        email_verified=identity.email_verified,
        created_at=to_index_time(identity.created_at),
        updated_at=to_index_time(identity.updated_at),
    )
