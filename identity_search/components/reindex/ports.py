from typing import Protocol
from uuid import UUID

from identity_search.components.index_writer import WriteResult
from identity_search.domain.entities import Identity, SearchDocument


class IdentityRepoPort(Protocol):
    def get_by_id(self, identity_id: UUID) -> Identity | None: ...
    def list_batch(self, offset: int, limit: int) -> list[Identity]: ...


class IndexWriterPort(Protocol):
    def upsert(self, document: SearchDocument) -> WriteResult: ...
