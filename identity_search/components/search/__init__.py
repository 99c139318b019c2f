"""Search component - identity queries with a database fallback."""

from .component import QueryOptions, SearchService, build_query, parse_response
from .models import (
    IndexUnavailableError,
    SearchFilters,
    SearchHit,
    SearchInput,
    SearchOutput,
    SearchSource,
)
from .ports import FallbackRepoPort, SearchIndexPort

__all__ = [
    "SearchService",
    "QueryOptions",
    "build_query",
    "parse_response",
    "IndexUnavailableError",
    "SearchFilters",
    "SearchHit",
    "SearchInput",
    "SearchOutput",
    "SearchSource",
    "FallbackRepoPort",
    "SearchIndexPort",
]
