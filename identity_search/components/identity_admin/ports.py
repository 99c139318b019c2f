from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from identity_search.components.lifecycle import (
    HookOutcome,
    IdentityDeletedEvent,
    IdentityUpdatedEvent,
)
from identity_search.domain.entities import Identity


class IdentityRepoPort(Protocol):
    def get_by_id(self, identity_id: UUID) -> Identity | None: ...
    def update_fields(
        self, identity_id: UUID, fields: dict[str, Any], updated_at: datetime
    ) -> Identity | None: ...
    def delete(self, identity_id: UUID) -> bool: ...


class AdminHooksPort(Protocol):
    def on_identity_updated(self, event: IdentityUpdatedEvent) -> HookOutcome: ...
    def on_identity_deleted(self, event: IdentityDeletedEvent) -> HookOutcome: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
