from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from identity_search.components.index_writer import WriteResult
from identity_search.domain.entities import (
    AuthRole,
    Identity,
    OrgRole,
    SearchDocument,
    VerificationToken,
)


class IdentityRepoPort(Protocol):
    def get_by_id(self, identity_id: UUID) -> Identity | None: ...
    def get_by_email(self, email: str) -> Identity | None: ...
    def count(self) -> int: ...
    def set_roles(
        self, identity_id: UUID, auth_role: AuthRole, org_role: OrgRole, updated_at: datetime
    ) -> Identity | None: ...


class VerificationRepoPort(Protocol):
    def find_valid(self, value: str, now: datetime) -> VerificationToken | None: ...


class IndexWriterPort(Protocol):
    def upsert(self, document: SearchDocument) -> WriteResult: ...
    def partial_update(self, doc_id: UUID | str, changes: dict[str, Any]) -> WriteResult: ...
    def remove(self, doc_id: UUID | str) -> WriteResult: ...


class TaskSchedulerPort(Protocol):
    """Runs work off the caller's path, after an optional delay."""

    def schedule(self, name: str, fn: Callable[[], object], delay_seconds: float = 0.0) -> bool:
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
