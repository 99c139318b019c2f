from typing import Any, Protocol


class DocumentIndexPort(Protocol):
    """Document writes against the search index. Implementations may raise."""

    def put_document(self, doc_id: str, body: dict[str, Any]) -> None:
        """Insert or replace; visible to search on return."""
        ...

    def update_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into the document, creating it if missing."""
        ...

    def delete_document(self, doc_id: str) -> bool:
        """Delete; False if there was nothing to delete."""
        ...
