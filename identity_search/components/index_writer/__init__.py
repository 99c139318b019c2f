"""Index writer component - document upsert, partial update and removal."""

from .component import IndexWriter
from .mapper import to_document, to_index_time
from .models import WriteOp, WriteResult
from .ports import DocumentIndexPort

__all__ = [
    "IndexWriter",
    "to_document",
    "to_index_time",
    "WriteOp",
    "WriteResult",
    "DocumentIndexPort",
]
