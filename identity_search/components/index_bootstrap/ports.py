"""Index bootstrap port definitions."""

from __future__ import annotations

from typing import Any, Protocol


class IndexAdminPort(Protocol):
    """The slice of the index service the bootstrapper needs."""

    index_name: str

    def ping(self) -> bool:
        """True if the index service answers."""
        ...

    def index_exists(self) -> bool:
        ...

    def create_index(self, mappings: dict[str, Any], settings: dict[str, Any]) -> bool:
        """Create the index; False (not an error) if it already exists."""
        ...


class SleeperPort(Protocol):
    def sleep(self, seconds: float) -> None:
        ...
