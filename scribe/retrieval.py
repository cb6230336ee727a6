# Version: v1.0
"""
scribe.retrieval — Passage search and topic-level indexing over Qdrant.

Formatted documents are indexed one topic per llama-index Document, so every
retrieved passage can name its source file and topic. Search failures are
reported as "no passages" rather than raised.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from llama_index.core import Document
from llama_index.core.schema import QueryBundle

from scribe.backends import qdrant as qdrant_backend
from scribe.config import (
    logger,
    DEFAULT_RAG_TOP_K,
    DEFAULT_RERANKER_CANDIDATE_K,
    DEFAULT_RERANKER_MODEL,
    RERANKER_ENABLED,
)
from scribe.indexes import get_vector_index
from scribe.models import RetrievedPassage
from scribe.topics import segment_topics

if TYPE_CHECKING:
    from llama_index.postprocessor.flag_reranker import FlagEmbeddingReranker

_reranker: "FlagEmbeddingReranker | None" = None


def content_hash(text: str, source: str) -> str:
    """Return a SHA-256 hex digest of *text* scoped to its source document.

    The same topic text in two documents hashes differently, so each
    document keeps its own index entry.
    """
    return hashlib.sha256(f"{source}\x00{text}".encode()).hexdigest()


# ---------------------------------------------------------------------------
# Reranker singleton
# ---------------------------------------------------------------------------


def get_reranker(top_n: int = DEFAULT_RAG_TOP_K) -> "FlagEmbeddingReranker":
    """Return the process-level FlagEmbeddingReranker, loading it on first use.

    Raises:
        ImportError: If llama-index-postprocessor-flag-reranker is not installed.
    """
    global _reranker
    if _reranker is None:
        from llama_index.postprocessor.flag_reranker import FlagEmbeddingReranker

        logger.info(f"Loading reranker model: {DEFAULT_RERANKER_MODEL}")
        _reranker = FlagEmbeddingReranker(
            model=DEFAULT_RERANKER_MODEL,
            top_n=top_n,
            use_fp16=True,
        )
    _reranker.top_n = top_n
    return _reranker


def reset_reranker() -> None:
    """Clear the cached reranker. Intended for tests."""
    global _reranker
    _reranker = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


async def search(
    query: str,
    top_k: int = DEFAULT_RAG_TOP_K,
    rerank: bool = True,
) -> list[RetrievedPassage]:
    """Return up to *top_k* passages for *query*, best first.

    Retrieves a candidate set, drops passages with identical text, and
    optionally reranks with the cross-encoder. Any failure yields [].
    """
    if not query or not query.strip() or top_k < 1:
        return []

    logger.info(f"Retrieve: query={query!r} top_k={top_k} rerank={rerank}")
    try:
        index = get_vector_index()
        nodes = await index.as_retriever(
            similarity_top_k=max(top_k, DEFAULT_RERANKER_CANDIDATE_K),
        ).aretrieve(query)
    except Exception as e:
        logger.warning(f"Retrieval failed, continuing without passages: {e}")
        return []

    seen_content: set[str] = set()
    unique_nodes = []
    for n in nodes:
        text = n.node.get_content()
        if text not in seen_content:
            seen_content.add(text)
            unique_nodes.append(n)
    nodes = unique_nodes

    if rerank and RERANKER_ENABLED and nodes:
        try:
            nodes = get_reranker(top_k).postprocess_nodes(
                nodes, query_bundle=QueryBundle(query_str=query)
            )
        except Exception as rerank_err:
            logger.warning(f"Reranker failed, using un-reranked results: {rerank_err}")

    passages = [
        RetrievedPassage(
            content=n.node.get_content(),
            source_document=n.node.metadata.get("source", "unknown"),
            topic_label=n.node.metadata.get("topic") or None,
            relevance=float(n.score) if n.score is not None else 0.0,
        )
        for n in nodes[:top_k]
    ]
    logger.info(f"Retrieved {len(passages)} passages")
    return passages


# ---------------------------------------------------------------------------
# Indexing
# ---------------------------------------------------------------------------


def sync_document(name: str, text: str, skip_duplicates: bool = True) -> dict[str, int]:
    """Index *text* from document *name*, one entry per topic.

    A document without headings is indexed as a single passage.

    Returns:
        Counts: {'indexed': N, 'skipped': M, 'errors': K}.
    """
    topics = segment_topics(text)
    passages = [(t.title, t.id, t.content) for t in topics if t.content]
    if not passages and text.strip():
        passages = [("", "", text.strip())]

    indexed = 0
    skipped = 0
    errors = 0
    for title, topic_id, passage in passages:
        chash = content_hash(passage, name)
        if skip_duplicates and qdrant_backend.is_duplicate(chash, name):
            skipped += 1
            continue
        try:
            doc = Document(
                text=passage,
                doc_id=chash,
                metadata={
                    "source": name,
                    "topic": title,
                    "topic_id": topic_id,
                    "content_hash": chash,
                },
            )
            get_vector_index().insert(doc)
            indexed += 1
        except Exception as e:
            logger.error(f"Error indexing topic {topic_id!r} of {name}: {e}")
            errors += 1

    logger.info(
        f"Indexed {name}: {len(passages)} passages, indexed={indexed}, "
        f"skipped={skipped}, errors={errors}"
    )
    return {"indexed": indexed, "skipped": skipped, "errors": errors}


def remove_document(name: str) -> None:
    """Remove every indexed passage of *name*."""
    logger.info(f"Removing {name} from the retrieval index")
    qdrant_backend.delete_by_source(name)
