"""
Elasticsearch index adapter.

Implements IndexPort on top of the official synchronous client. Every call
carries an explicit request timeout: bootstrap operations (ping, exists,
create) use the longer bootstrap timeout, document writes and queries use the
steady-state timeout.

Writes use refresh="wait_for" so a successful return means the document is
visible to the next search.
"""

from __future__ import annotations

import logging
from typing import Any

from elasticsearch import BadRequestError, Elasticsearch, NotFoundError

logger = logging.getLogger(__name__)


class ElasticsearchIndex:
    """One index on one cluster."""

    def __init__(
        self,
        client: Elasticsearch,
        index_name: str,
        bootstrap_timeout: float = 10.0,
        request_timeout: float = 5.0,
    ) -> None:
        self._client = client
        self.index_name = index_name
        self._bootstrap_timeout = bootstrap_timeout
        self._request_timeout = request_timeout

    @classmethod
    def from_url(
        cls,
        url: str,
        index_name: str,
        username: str | None = None,
        password: str | None = None,
        verify_certs: bool = False,
        bootstrap_timeout: float = 10.0,
        request_timeout: float = 5.0,
    ) -> ElasticsearchIndex:
        client_kwargs: dict[str, Any] = {
            "request_timeout": request_timeout,
            "verify_certs": verify_certs,
        }
        if not verify_certs:
            client_kwargs["ssl_show_warn"] = False
        if username and password:
            client_kwargs["basic_auth"] = (username, password)
        client = Elasticsearch(url, **client_kwargs)
        return cls(client, index_name, bootstrap_timeout, request_timeout)

    def _bootstrap(self) -> Elasticsearch:
        return self._client.options(request_timeout=self._bootstrap_timeout)

    def _steady(self) -> Elasticsearch:
        return self._client.options(request_timeout=self._request_timeout)

    # --- Bootstrap operations ---

    def ping(self) -> bool:
        return bool(self._bootstrap().ping())

    def index_exists(self) -> bool:
        return bool(self._bootstrap().indices.exists(index=self.index_name))

    def create_index(self, mappings: dict[str, Any], settings: dict[str, Any]) -> bool:
        """Create the index. Returns False if it already existed."""
        try:
            self._bootstrap().indices.create(
                index=self.index_name, mappings=mappings, settings=settings
            )
        except BadRequestError as e:
            if e.message == "resource_already_exists_exception":
                logger.info("Index %s already exists", self.index_name)
                return False
            raise
        return True

    # --- Document operations ---

    def put_document(self, doc_id: str, body: dict[str, Any]) -> None:
        self._steady().index(
            index=self.index_name, id=doc_id, document=body, refresh="wait_for"
        )

    def update_document(self, doc_id: str, fields: dict[str, Any]) -> None:
        self._steady().update(
            index=self.index_name,
            id=doc_id,
            doc=fields,
            doc_as_upsert=True,
            refresh="wait_for",
        )

    def delete_document(self, doc_id: str) -> bool:
        """Delete a document. Returns False if it was not there."""
        try:
            self._steady().delete(index=self.index_name, id=doc_id, refresh="wait_for")
        except NotFoundError:
            return False
        return True

    def search(self, body: dict[str, Any]) -> dict[str, Any]:
        params = dict(body)
        if "from" in params:
            params["from_"] = params.pop("from")
        response = self._steady().search(index=self.index_name, **params)
        return dict(response.body)

    def close(self) -> None:
        self._client.close()
