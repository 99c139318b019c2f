from datetime import datetime
from typing import Protocol
from uuid import UUID

from identity_search.domain.entities import AuthRole, Identity, OrgRole


class IdentityRepoPort(Protocol):
    def count(self) -> int: ...
    def get_by_id(self, identity_id: UUID) -> Identity | None: ...
    def set_roles(
        self, identity_id: UUID, auth_role: AuthRole, org_role: OrgRole, updated_at: datetime
    ) -> Identity | None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
