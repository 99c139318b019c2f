"""
Tests for the search component.

Query building is pure; SearchService is exercised against the in-memory
index and repository so the fallback paths can be forced.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from identity_search.components.index_bootstrap import IndexReadiness
from identity_search.components.index_writer import to_document
from identity_search.components.search import (
    QueryOptions,
    SearchFilters,
    SearchInput,
    SearchService,
    SearchSource,
    build_query,
    parse_response,
)
from identity_search.domain.entities import Identity
from tests.fakes import FIXED_NOW, FakeIndex, MockIdentityRepo, MockTimePort


def _identity(email: str, name: str | None, minutes: int, **extra) -> Identity:
    stamp = FIXED_NOW + timedelta(minutes=minutes)
    return Identity(email=email, name=name, created_at=stamp, updated_at=stamp, **extra)


@pytest.fixture
def people() -> list[Identity]:
    return [
        _identity("jane@example.com", "Jane Doe", 1, auth_role="admin", email_verified=True),
        _identity("john@example.com", "John Smith", 2),
        _identity("janet@other.org", "Janet Roe", 3, is_active=False),
    ]


@pytest.fixture
def repo(people) -> MockIdentityRepo:
    repo = MockIdentityRepo()
    for identity in people:
        repo.save(identity)
    return repo


@pytest.fixture
def index(people) -> FakeIndex:
    index = FakeIndex()
    index.exists = True
    for identity in people:
        index.put_document(str(identity.id), to_document(identity).to_body())
    return index


@pytest.fixture
def readiness() -> IndexReadiness:
    readiness = IndexReadiness()
    readiness.mark_ready()
    return readiness


@pytest.fixture
def service(index, repo, readiness) -> SearchService:
    return SearchService(index, repo, MockTimePort(), readiness=readiness)


# --- Query building ---


class TestBuildQuery:
    def test_text_query_is_fuzzy_and_boosted(self):
        body = build_query(SearchInput(text="jane"), QueryOptions())

        (must,) = body["query"]["bool"]["must"]
        match = must["multi_match"]
        assert match["query"] == "jane"
        assert match["fields"] == ["name^2", "email^1.5"]
        assert match["fuzziness"] == "AUTO"
        assert match["operator"] == "and"
        assert match["type"] == "best_fields"

    def test_empty_text_matches_all(self):
        body = build_query(SearchInput(text="   "), QueryOptions())
        assert body["query"]["bool"]["must"] == [{"match_all": {}}]

    def test_filters_are_terms(self):
        filters = SearchFilters(role="admin", is_active=False, email_verified=True)
        body = build_query(SearchInput(filters=filters), QueryOptions())

        assert body["query"]["bool"]["filter"] == [
            {"term": {"role": "admin"}},
            {"term": {"isActive": False}},
            {"term": {"emailVerified": True}},
        ]

    def test_paging_sort_and_highlight(self):
        body = build_query(SearchInput(page_from=20, page_size=10), QueryOptions())

        assert body["from"] == 20
        assert body["size"] == 10
        assert body["sort"] == [{"updatedAt": {"order": "desc"}}]
        assert set(body["highlight"]["fields"]) == {"name", "email"}
        assert body["track_total_hits"] is True


def test_parse_response_reads_hits():
    response = {
        "took": 7,
        "hits": {
            "total": {"value": 42, "relation": "eq"},
            "hits": [
                {
                    "_id": "1",
                    "_score": 3.5,
                    "_source": {"id": "1", "email": "a@b.c"},
                    "highlight": {"email": ["<em>a</em>@b.c"]},
                }
            ],
        },
    }

    results, total, took = parse_response(response)

    assert total == 42
    assert took == 7
    assert results[0].document == {"id": "1", "email": "a@b.c"}
    assert results[0].score == 3.5
    assert results[0].highlight == {"email": ["<em>a</em>@b.c"]}


# --- SearchService ---


class TestSearchService:
    def test_searches_index_when_ready(self, service, index):
        result = service.search(SearchInput(text="jane"))

        assert result.success is True
        assert result.source is SearchSource.INDEX
        assert result.degraded is False
        assert {hit.document["email"] for hit in result.results} == {
            "jane@example.com",
            "janet@other.org",
        }
        assert len(index.searches) == 1

    def test_newest_update_first(self, service):
        result = service.search(SearchInput())

        emails = [hit.document["email"] for hit in result.results]
        assert emails == ["janet@other.org", "john@example.com", "jane@example.com"]
        assert result.total == 3

    def test_filters_apply(self, service):
        result = service.search(
            SearchInput(filters=SearchFilters(is_active=True, email_verified=True))
        )
        assert [hit.document["email"] for hit in result.results] == ["jane@example.com"]

    def test_index_error_falls_back_to_database(self, service, index):
        index.fail_search = True

        result = service.search(SearchInput(text="JOHN"))

        assert result.success is True
        assert result.source is SearchSource.DATABASE_FALLBACK
        assert result.degraded is True
        assert [hit.document["email"] for hit in result.results] == ["john@example.com"]
        assert result.results[0].document["role"] == "user"

    def test_not_ready_skips_index(self, index, repo):
        readiness = IndexReadiness()
        readiness.mark_degraded("Connection refused")
        service = SearchService(index, repo, MockTimePort(), readiness=readiness)

        result = service.search(SearchInput(text="jan"))

        assert result.source is SearchSource.DATABASE_FALLBACK
        assert result.total == 2
        assert index.searches == []

    def test_unknown_readiness_skips_index(self, index, repo):
        service = SearchService(index, repo, MockTimePort(), readiness=IndexReadiness())

        result = service.search(SearchInput())

        assert result.degraded is True
        assert index.searches == []

    def test_fallback_applies_filters_and_paging(self, index, repo):
        index.available = False
        service = SearchService(index, repo, MockTimePort())

        result = service.search(
            SearchInput(filters=SearchFilters(is_active=True), page_from=1, page_size=1)
        )

        assert result.total == 2
        assert [hit.document["email"] for hit in result.results] == ["jane@example.com"]

    def test_both_sources_down_is_unavailable(self, index, repo):
        index.available = False
        repo.fail_search = True
        service = SearchService(index, repo, MockTimePort())

        result = service.search(SearchInput(text="jane"))

        assert result.success is False
        assert result.source is SearchSource.NONE
        assert result.results == []
        assert "database is locked" in result.error

    def test_page_size_is_clamped(self, index, repo):
        service = SearchService(index, repo, MockTimePort(), options=QueryOptions(max_page_size=2))

        normalized = service.normalize(SearchInput(text="  ", page_from=-5, page_size=500))

        assert normalized.text is None
        assert normalized.page_from == 0
        assert normalized.page_size == 2
