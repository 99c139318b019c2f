"""
Identity search with database fallback.

Queries go to the search index first: relevance-ranked, typo-tolerant
matching across name and email, with role/active/verified as hard filters,
newest update first, offset pagination.

If the index is not ready, or the query fails for any reason, the same
request is answered from the system of record with a case-insensitive
substring match and the same filters and pagination. Such responses are
flagged `degraded`. Only when the fallback fails too is the search reported
as unavailable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from identity_search.components.index_writer import to_document

from .models import (
    IndexUnavailableError,
    SearchFilters,
    SearchHit,
    SearchInput,
    SearchOutput,
    SearchSource,
)
from .ports import FallbackRepoPort, MonotonicClockPort, ReadinessPort, SearchIndexPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryOptions:
    fuzziness: str = "AUTO"
    name_boost: float = 2.0
    email_boost: float = 1.5
    max_page_size: int = 100


def _filter_clauses(filters: SearchFilters) -> list[dict[str, Any]]:
    clauses: list[dict[str, Any]] = []
    if filters.role:
        clauses.append({"term": {"role": filters.role}})
    if filters.is_active is not None:
        clauses.append({"term": {"isActive": filters.is_active}})
    if filters.email_verified is not None:
        clauses.append({"term": {"emailVerified": filters.email_verified}})
    return clauses


def build_query(inp: SearchInput, options: QueryOptions) -> dict[str, Any]:
    """Query DSL body for a search request. Pure."""
    must: list[dict[str, Any]]
    text = (inp.text or "").strip()
    if text:
        must = [
            {
                "multi_match": {
                    "query": text,
                    "fields": [f"name^{options.name_boost:g}", f"email^{options.email_boost:g}"],
                    "type": "best_fields",
                    "fuzziness": options.fuzziness,
                    "operator": "and",
                }
            }
        ]
    else:
        must = [{"match_all": {}}]

    return {
        "query": {"bool": {"must": must, "filter": _filter_clauses(inp.filters)}},
        "from": inp.page_from,
        "size": inp.page_size,
        "sort": [{"updatedAt": {"order": "desc"}}],
        "highlight": {"fields": {"name": {}, "email": {}}},
        "track_total_hits": True,
    }


def _total_hits(hits: dict[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total or 0)


def parse_response(response: dict[str, Any]) -> tuple[list[SearchHit], int, int]:
    hits = response.get("hits", {})
    results = [
        SearchHit(
            document=hit.get("_source", {}),
            score=hit.get("_score"),
            highlight=hit.get("highlight"),
        )
        for hit in hits.get("hits", [])
    ]
    return results, _total_hits(hits), int(response.get("took", 0))


class SearchService:
    def __init__(
        self,
        index: SearchIndexPort,
        fallback_repo: FallbackRepoPort,
        clock: MonotonicClockPort,
        readiness: ReadinessPort | None = None,
        options: QueryOptions | None = None,
    ) -> None:
        self._index = index
        self._fallback_repo = fallback_repo
        self._clock = clock
        self._readiness = readiness
        self._options = options or QueryOptions()

    def normalize(self, inp: SearchInput) -> SearchInput:
        text = (inp.text or "").strip() or None
        page_from = max(inp.page_from, 0)
        page_size = min(max(inp.page_size, 1), self._options.max_page_size)
        return SearchInput(text=text, filters=inp.filters, page_from=page_from, page_size=page_size)

    def search(self, inp: SearchInput) -> SearchOutput:
        inp = self.normalize(inp)
        try:
            return self._search_index(inp)
        except Exception as e:
            logger.warning("Index search failed, using database fallback: %s", e)

        try:
            return self._search_fallback(inp)
        except Exception as e:
            logger.exception("Database fallback search failed")
            return SearchOutput.unavailable(str(e) or "Search unavailable")

    def _search_index(self, inp: SearchInput) -> SearchOutput:
        if self._readiness is not None and not self._readiness.is_ready():
            raise IndexUnavailableError("Search index is not ready")

        response = self._index.search(build_query(inp, self._options))
        results, total, took = parse_response(response)
        return SearchOutput(
            results=results, total=total, took_ms=took, source=SearchSource.INDEX
        )

    def _search_fallback(self, inp: SearchInput) -> SearchOutput:
        started = self._clock.monotonic()
        identities, total = self._fallback_repo.search_fallback(
            text=inp.text,
            role=inp.filters.role,
            is_active=inp.filters.is_active,
            email_verified=inp.filters.email_verified,
            offset=inp.page_from,
            limit=inp.page_size,
        )
        took_ms = int((self._clock.monotonic() - started) * 1000)
        return SearchOutput(
            results=[SearchHit(document=to_document(i).to_body()) for i in identities],
            total=total,
            took_ms=took_ms,
            source=SearchSource.DATABASE_FALLBACK,
            degraded=True,
        )
