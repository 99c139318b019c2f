"""
Index writer.

Create, update and delete identity documents by id. The index is a derived
view of the system of record, so none of these calls raise: failures are
logged and reported through WriteResult, and the identity operation that
triggered the write carries on regardless.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from identity_search.domain.entities import DOCUMENT_FIELD_ALIASES, SearchDocument

from .mapper import to_index_time
from .models import WriteOp, WriteResult
from .ports import DocumentIndexPort

logger = logging.getLogger(__name__)


def _describe(error: Exception) -> str:
    return str(error) or error.__class__.__name__


def _to_wire_fields(doc_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    unknown = set(changes) - set(DOCUMENT_FIELD_ALIASES)
    if unknown:
        raise ValueError(f"Unknown document fields: {sorted(unknown)}")

    wire: dict[str, Any] = {"id": doc_id}
    for name, value in changes.items():
        if isinstance(value, datetime):
            value = to_index_time(value)
        wire[DOCUMENT_FIELD_ALIASES[name]] = value
    return wire


class IndexWriter:
    """Idempotent, non-throwing document writes."""

    def __init__(self, index: DocumentIndexPort) -> None:
        self._index = index

    def upsert(self, document: SearchDocument) -> WriteResult:
        """Insert or fully replace the document keyed by its id."""
        try:
            self._index.put_document(document.id, document.to_body())
        except Exception as e:
            logger.exception("Failed to index identity %s", document.id)
            return WriteResult.failed(WriteOp.UPSERT, document.id, _describe(e))

        logger.info("Indexed identity %s", document.id)
        return WriteResult.ok(WriteOp.UPSERT, document.id)

    def partial_update(self, doc_id: UUID | str, changes: dict[str, Any]) -> WriteResult:
        """Merge only the given fields; a missing document is created from them.

        Field names are the snake_case SearchDocument names
        (e.g. ``email_verified``, ``updated_at``).
        """
        doc_id = str(doc_id)
        try:
            fields = _to_wire_fields(doc_id, changes)
            self._index.update_document(doc_id, fields)
        except Exception as e:
            logger.exception("Failed to update identity %s in index", doc_id)
            return WriteResult.failed(WriteOp.PARTIAL_UPDATE, doc_id, _describe(e))

        logger.info("Updated identity %s in index (%s)", doc_id, ", ".join(sorted(changes)))
        return WriteResult.ok(WriteOp.PARTIAL_UPDATE, doc_id)

    def remove(self, doc_id: UUID | str) -> WriteResult:
        """Delete the document; deleting an absent document succeeds."""
        doc_id = str(doc_id)
        try:
            existed = self._index.delete_document(doc_id)
        except Exception as e:
            logger.exception("Failed to remove identity %s from index", doc_id)
            return WriteResult.failed(WriteOp.REMOVE, doc_id, _describe(e))

        if existed:
            logger.info("Removed identity %s from index", doc_id)
        else:
            logger.info("Identity %s was not in the index", doc_id)
        return WriteResult.ok(WriteOp.REMOVE, doc_id)
