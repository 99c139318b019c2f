"""Reindex component - rebuilds index documents from the system of record."""

from .component import run_reindex_all, run_reindex_identity
from .models import ReindexAllInput, ReindexIdentityInput, ReindexOutput

__all__ = [
    "run_reindex_all",
    "run_reindex_identity",
    "ReindexAllInput",
    "ReindexIdentityInput",
    "ReindexOutput",
]
