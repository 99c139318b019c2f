"""
Reindex component.

Rebuilds index documents from the system of record, for one identity or
for all of them. Used to repair the index after an outage.
"""

from __future__ import annotations

import logging

from identity_search.components.index_writer import to_document

from .models import ReindexAllInput, ReindexIdentityInput, ReindexOutput
from .ports import IdentityRepoPort, IndexWriterPort

logger = logging.getLogger(__name__)


def run_reindex_identity(
    inp: ReindexIdentityInput, identity_repo: IdentityRepoPort, writer: IndexWriterPort
) -> ReindexOutput:
    identity = identity_repo.get_by_id(inp.identity_id)
    if identity is None:
        return ReindexOutput(success=False, error="Identity not found")

    result = writer.upsert(to_document(identity))
    if not result.success:
        return ReindexOutput(
            failed=1, failed_ids=[result.doc_id], success=False, error=result.error
        )
    return ReindexOutput(indexed=1, success=True)


def run_reindex_all(
    inp: ReindexAllInput, identity_repo: IdentityRepoPort, writer: IndexWriterPort
) -> ReindexOutput:
    if inp.batch_size < 1:
        return ReindexOutput(success=False, error="Batch size must be positive")

    indexed = 0
    failed_ids: list[str] = []
    offset = 0

    while True:
        batch = identity_repo.list_batch(offset, inp.batch_size)
        if not batch:
            break
        for identity in batch:
            result = writer.upsert(to_document(identity))
            if result.success:
                indexed += 1
            else:
                failed_ids.append(result.doc_id)
        offset += len(batch)

    logger.info("Reindex finished: %d indexed, %d failed", indexed, len(failed_ids))
    return ReindexOutput(
        indexed=indexed,
        failed=len(failed_ids),
        failed_ids=failed_ids,
        success=not failed_ids,
        error=f"{len(failed_ids)} identities failed to index" if failed_ids else None,
    )
