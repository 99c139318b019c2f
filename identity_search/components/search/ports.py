from typing import Any, Protocol

from identity_search.domain.entities import Identity


class SearchIndexPort(Protocol):
    def search(self, body: dict[str, Any]) -> dict[str, Any]:
        """Run a query DSL body; returns the raw response."""
        ...


class FallbackRepoPort(Protocol):
    def search_fallback(
        self,
        text: str | None,
        role: str | None,
        is_active: bool | None,
        email_verified: bool | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Identity], int]: ...


class ReadinessPort(Protocol):
    def is_ready(self) -> bool: ...


class MonotonicClockPort(Protocol):
    def monotonic(self) -> float: ...
