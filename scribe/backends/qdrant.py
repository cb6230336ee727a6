# Version: v1.0
"""
scribe.backends.qdrant — Qdrant client cache, payload scans and mutations.

Sync and async clients are cached per URL; the async one is required by
QdrantVectorStore(aclient=...) so that aretrieve() works.
"""

import threading

import qdrant_client
from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qdrant_models

from scribe.config import (
    logger,
    DEFAULT_QDRANT_URL,
    COLLECTION_NAME,
    ALLOWED_META_KEYS,
)

# ---------------------------------------------------------------------------
# Client cache — one client instance per URL for the process lifetime
# ---------------------------------------------------------------------------
_client_cache: dict[str, qdrant_client.QdrantClient] = {}
_client_lock = threading.Lock()

_async_client_cache: dict[str, AsyncQdrantClient] = {}
_async_client_lock = threading.Lock()


def get_client(url: str = DEFAULT_QDRANT_URL) -> qdrant_client.QdrantClient:
    """Return a cached QdrantClient for *url*, creating one on first call."""
    if url not in _client_cache:
        with _client_lock:
            if url not in _client_cache:  # double-checked
                _client_cache[url] = qdrant_client.QdrantClient(url=url)
    return _client_cache[url]


def get_async_client(url: str = DEFAULT_QDRANT_URL) -> AsyncQdrantClient:
    """Return a cached AsyncQdrantClient for *url*, creating one on first call."""
    if url not in _async_client_cache:
        with _async_client_lock:
            if url not in _async_client_cache:  # double-checked
                _async_client_cache[url] = AsyncQdrantClient(url=url)
    return _async_client_cache[url]


def _source_filter(source: str) -> qdrant_models.Filter:
    return qdrant_models.Filter(
        must=[
            qdrant_models.FieldCondition(
                key="source",
                match=qdrant_models.MatchValue(value=source),
            )
        ]
    )


def scroll_field(key: str) -> set[str]:
    """Scroll the whole collection and collect distinct values for *key*."""
    values: set[str] = set()
    client = get_client()
    offset = None
    while True:
        records, offset = client.scroll(
            collection_name=COLLECTION_NAME,
            limit=1000,
            with_payload=[key],
            offset=offset,
        )
        for record in records:
            if record.payload and key in record.payload:
                values.add(record.payload[key])
        if offset is None:
            break
    return values


def get_distinct_metadata(key: str) -> list[str]:
    """Return sorted distinct payload values for *key*, empty list on error.

    Raises:
        ValueError: If *key* is not in ALLOWED_META_KEYS.
    """
    if key not in ALLOWED_META_KEYS:
        raise ValueError(f"Disallowed metadata key: {key!r}")
    try:
        return sorted(scroll_field(key))
    except Exception as e:
        logger.warning(f"Qdrant distinct '{key}' error: {e}")
        return []


def is_duplicate(content_hash: str, source: str) -> bool:
    """Return True if this content hash is already indexed for *source*.

    Fails open (returns False) on any error so indexing is never
    silently blocked by a connectivity issue.
    """
    try:
        client = get_client()
        records, _ = client.scroll(
            collection_name=COLLECTION_NAME,
            scroll_filter=qdrant_models.Filter(
                must=[
                    qdrant_models.FieldCondition(
                        key="source",
                        match=qdrant_models.MatchValue(value=source),
                    ),
                    qdrant_models.FieldCondition(
                        key="content_hash",
                        match=qdrant_models.MatchValue(value=content_hash),
                    ),
                ]
            ),
            limit=1,
            with_payload=False,
            with_vectors=False,
        )
        return len(records) > 0
    except Exception as e:
        logger.warning(f"Qdrant dedup check failed (fail-open): {e}")
        return False


def delete_by_source(source: str) -> None:
    """Delete every point indexed from *source*.

    Raises:
        Exception: Propagated from the Qdrant client on failure.
    """
    try:
        get_client().delete(
            collection_name=COLLECTION_NAME,
            points_selector=qdrant_models.FilterSelector(filter=_source_filter(source)),
        )
    except Exception as e:
        logger.error(f"Qdrant delete_by_source error: {e}")
        raise

