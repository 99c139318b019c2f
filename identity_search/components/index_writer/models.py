from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WriteOp(str, Enum):
    UPSERT = "upsert"
    PARTIAL_UPDATE = "partial_update"
    REMOVE = "remove"


@dataclass(frozen=True)
class WriteResult:
    op: WriteOp
    doc_id: str
    success: bool
    error: str | None = None

    @classmethod
    def ok(cls, op: WriteOp, doc_id: str) -> WriteResult:
        return cls(op=op, doc_id=doc_id, success=True)

    @classmethod
    def failed(cls, op: WriteOp, doc_id: str, error: str) -> WriteResult:
        return cls(op=op, doc_id=doc_id, success=False, error=error)
