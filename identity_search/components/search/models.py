"""Search component models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SearchSource(str, Enum):
    INDEX = "elasticsearch"
    DATABASE_FALLBACK = "database_fallback"
    NONE = "none"


class IndexUnavailableError(Exception):
    """The index cannot serve this query; the caller should fall back."""


@dataclass(frozen=True)
class SearchFilters:
    role: str | None = None
    is_active: bool | None = None
    email_verified: bool | None = None


@dataclass(frozen=True)
class SearchInput:
    text: str | None = None
    filters: SearchFilters = field(default_factory=SearchFilters)
    page_from: int = 0
    page_size: int = 10


@dataclass(frozen=True)
class SearchHit:
    document: dict[str, Any]
    score: float | None = None
    highlight: dict[str, list[str]] | None = None


@dataclass(frozen=True)
class SearchOutput:
    results: list[SearchHit]
    total: int
    took_ms: int
    source: SearchSource
    degraded: bool = False
    success: bool = True
    error: str | None = None

    @classmethod
    def unavailable(cls, error: str) -> SearchOutput:
        return cls(
            results=[],
            total=0,
            took_ms=0,
            source=SearchSource.NONE,
            degraded=True,
            success=False,
            error=error,
        )
