"""Mapping and settings for the identity index."""

from __future__ import annotations

from typing import Any

_TEXT_WITH_KEYWORD: dict[str, Any] = {
    "type": "text",
    "analyzer": "standard",
    "fields": {"keyword": {"type": "keyword"}},
}

IDENTITY_INDEX_MAPPINGS: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "email": _TEXT_WITH_KEYWORD,
        "name": _TEXT_WITH_KEYWORD,
        "role": {"type": "keyword"},
        "organizationalRole": {"type": "keyword"},
        "isActive": {"type": "boolean"},
        "emailVerified": {"type": "boolean"},
        "createdAt": {"type": "date"},
        "updatedAt": {"type": "date"},
    }
}


def build_index_settings(number_of_replicas: int = 0) -> dict[str, Any]:
    return {
        "number_of_shards": 1,
        "number_of_replicas": number_of_replicas,
        "analysis": {
            "analyzer": {
                "custom_text_analyzer": {
                    "type": "custom",
                    "tokenizer": "standard",
                    "filter": ["lowercase", "asciifolding"],
                }
            }
        },
    }
