"""In-memory doubles shared across the test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import UUID

from identity_search.domain.entities import AuthRole, Identity, OrgRole, VerificationToken
from identity_search.domain.errors import DuplicateEmailError

PROJECT_ROOT = Path(__file__).resolve().parents[1]
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


class MockTimePort:
    """Deterministic clock; `advance` moves both wall and monotonic time."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self._now = now
        self._mono = 100.0

    def now_utc(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._mono

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)
        self._mono += seconds


class RecordingSleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)


class ManualScheduler:
    """Collects scheduled tasks; tests decide when (and in what order) they run."""

    def __init__(self) -> None:
        self.tasks: list[tuple[str, Callable[[], object], float]] = []
        self.closed = False

    def schedule(self, name: str, fn: Callable[[], object], delay_seconds: float = 0.0) -> bool:
        if self.closed:
            return False
        self.tasks.append((name, fn, delay_seconds))
        return True

    @property
    def names(self) -> list[str]:
        return [name for name, _, _ in self.tasks]

    def run_all(self, reverse: bool = False) -> list[object]:
        tasks = list(reversed(self.tasks)) if reverse else list(self.tasks)
        self.tasks.clear()
        return [fn() for _, fn, _ in tasks]

    def shutdown(self, wait: bool = True) -> None:
        self.closed = True


class IndexDown(ConnectionError):
    pass


class FakeIndex:
    """In-memory stand-in for ElasticsearchIndex.

    `search` understands the subset of the query DSL that build_query emits:
    multi_match (substring on name/email), term filters, sort on updatedAt,
    from/size.
    """

    def __init__(self, index_name: str = "lha_users") -> None:
        self.index_name = index_name
        self.docs: dict[str, dict[str, Any]] = {}
        self.exists = False
        self.available = True
        self.ping_failures = 0
        self.create_calls = 0
        self.fail_writes = False
        self.fail_search = False
        self.searches: list[dict[str, Any]] = []
        self.closed = False

    def _check(self) -> None:
        if not self.available:
            raise IndexDown("Connection refused")

    # --- admin ---

    def ping(self) -> bool:
        if self.ping_failures > 0:
            self.ping_failures -= 1
            raise IndexDown("Connection refused")
        return self.available

    def index_exists(self) -> bool:
        self._check()
        return self.exists

    def create_index(self, mappings: dict[str, Any], settings: dict[str, Any]) -> bool:
        self._check()
        self.create_calls += 1
        if self.exists:
            return False
        self.exists = True
        self.mappings = mappings
        self.settings = settings
        return True

    # --- documents ---

    def put_document(self, doc_id: str, body: dict[str, Any]) -> None:
        self._check()
        if self.fail_writes:
            raise IndexDown("write rejected")
        self.docs[doc_id] = dict(body)

    def update_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        self._check()
        if self.fail_writes:
            raise IndexDown("write rejected")
        self.docs.setdefault(doc_id, {}).update(fields)

    def delete_document(self, doc_id: str) -> bool:
        self._check()
        if self.fail_writes:
            raise IndexDown("write rejected")
        return self.docs.pop(doc_id, None) is not None

    # --- search ---

    def search(self, body: dict[str, Any]) -> dict[str, Any]:
        self._check()
        self.searches.append(body)
        if self.fail_search:
            raise IndexDown("search_phase_execution_exception")

        query = body["query"]["bool"]
        docs = list(self.docs.values())

        for clause in query["must"]:
            if "multi_match" in clause:
                text = clause["multi_match"]["query"].lower()
                docs = [
                    d
                    for d in docs
                    if text in str(d.get("name", "")).lower()
                    or text in str(d.get("email", "")).lower()
                ]
        for clause in query["filter"]:
            ((field, value),) = clause["term"].items()
            docs = [d for d in docs if d.get(field) == value]

        docs.sort(key=lambda d: d.get("updatedAt", ""), reverse=True)
        start = body.get("from", 0)
        page = docs[start : start + body.get("size", 10)]
        return {
            "took": 3,
            "hits": {
                "total": {"value": len(docs), "relation": "eq"},
                "hits": [{"_id": d.get("id"), "_score": 1.0, "_source": d} for d in page],
            },
        }

    def close(self) -> None:
        self.closed = True


class MockIdentityRepo:
    """In-memory identity repository."""

    def __init__(self) -> None:
        self.identities: dict[UUID, Identity] = {}
        self.fail_search = False

    def save(self, identity: Identity) -> Identity:
        for other in self.identities.values():
            if other.email == identity.email and other.id != identity.id:
                raise DuplicateEmailError(identity.email)
        self.identities[identity.id] = identity
        return identity

    def get_by_id(self, identity_id: UUID) -> Identity | None:
        return self.identities.get(identity_id)

    def get_by_email(self, email: str) -> Identity | None:
        for identity in self.identities.values():
            if identity.email == email:
                return identity
        return None

    def count(self) -> int:
        return len(self.identities)

    def update_fields(
        self, identity_id: UUID, fields: dict[str, Any], updated_at: datetime
    ) -> Identity | None:
        current = self.identities.get(identity_id)
        if current is None:
            return None
        updated = current.model_copy(update={**fields, "updated_at": updated_at})
        self.identities[identity_id] = updated
        return updated

    def set_roles(
        self, identity_id: UUID, auth_role: AuthRole, org_role: OrgRole, updated_at: datetime
    ) -> Identity | None:
        return self.update_fields(
            identity_id, {"auth_role": auth_role, "org_role": org_role}, updated_at
        )

    def delete(self, identity_id: UUID) -> bool:
        return self.identities.pop(identity_id, None) is not None

    def list_batch(self, offset: int, limit: int) -> list[Identity]:
        ordered = sorted(self.identities.values(), key=lambda i: (i.created_at, str(i.id)))
        return ordered[offset : offset + limit]

    def search_fallback(
        self,
        text: str | None,
        role: str | None,
        is_active: bool | None,
        email_verified: bool | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Identity], int]:
        if self.fail_search:
            raise RuntimeError("database is locked")
        matches = list(self.identities.values())
        if text:
            needle = text.lower()
            matches = [
                i
                for i in matches
                if needle in (i.name or "").lower() or needle in i.email.lower()
            ]
        if role is not None:
            matches = [i for i in matches if i.auth_role == role]
        if is_active is not None:
            matches = [i for i in matches if i.is_active == is_active]
        if email_verified is not None:
            matches = [i for i in matches if i.email_verified == email_verified]
        matches.sort(key=lambda i: i.updated_at, reverse=True)
        return matches[offset : offset + limit], len(matches)

    def ping(self) -> None:
        return None


class MockVerificationRepo:
    def __init__(self) -> None:
        self.tokens: dict[str, VerificationToken] = {}

    def save(self, token: VerificationToken) -> VerificationToken:
        self.tokens[token.value] = token
        return token

    def find_valid(self, value: str, now: datetime) -> VerificationToken | None:
        token = self.tokens.get(value)
        if token is None or token.consumed_at is not None or token.expires_at <= now:
            return None
        return token

    def consume(self, value: str, now: datetime) -> bool:
        token = self.tokens.get(value)
        if token is None or token.consumed_at is not None:
            return False
        self.tokens[value] = token.model_copy(update={"consumed_at": now})
        return True
