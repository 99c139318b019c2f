from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class ReindexIdentityInput:
    identity_id: UUID


@dataclass(frozen=True)
class ReindexAllInput:
    batch_size: int = 200


@dataclass(frozen=True)
class ReindexOutput:
    indexed: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)
    success: bool = False
    error: str | None = None
