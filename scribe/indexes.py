# Version: v1.0
"""
scribe.indexes — LlamaIndex settings bootstrap and the vector index factory.
"""

import threading

from llama_index.core import Settings, VectorStoreIndex
from llama_index.core.node_parser import SentenceSplitter
from llama_index.embeddings.ollama import OllamaEmbedding
from llama_index.llms.ollama import Ollama
from llama_index.vector_stores.qdrant import QdrantVectorStore

from scribe.backends.qdrant import get_client as get_qdrant_client, get_async_client as get_async_qdrant_client
from scribe.config import (
    DEFAULT_OLLAMA_URL,
    DEFAULT_QDRANT_URL,
    DEFAULT_EMBED_MODEL,
    DEFAULT_LLM_MODEL,
    DEFAULT_LLM_TIMEOUT,
    DEFAULT_CONTEXT_WINDOW,
    EMBED_CHUNK_SIZE,
    EMBED_CHUNK_OVERLAP,
    COLLECTION_NAME,
    logger,
)

import nest_asyncio

nest_asyncio.apply()

# ---------------------------------------------------------------------------
# Singleton LLM / Embed settings
# ---------------------------------------------------------------------------
_settings_initialized = False
_settings_lock = threading.Lock()

# ---------------------------------------------------------------------------
# Index caching — reuse connections across calls
# ---------------------------------------------------------------------------
_vector_index_cache = None
_index_cache_lock = threading.Lock()


def setup_settings() -> None:
    """Initialize LLM, embedding and node-parser settings once (thread-safe).

    Uses double-checked locking so concurrent callers block only on the
    very first initialization.
    """
    global _settings_initialized
    if _settings_initialized:
        return
    with _settings_lock:
        if _settings_initialized:
            return
        Settings.llm = Ollama(
            model=DEFAULT_LLM_MODEL,
            base_url=DEFAULT_OLLAMA_URL,
            request_timeout=DEFAULT_LLM_TIMEOUT,
            context_window=DEFAULT_CONTEXT_WINDOW,
        )
        Settings.embed_model = OllamaEmbedding(
            model_name=DEFAULT_EMBED_MODEL,
            base_url=DEFAULT_OLLAMA_URL,
        )
        # Long topics are split further before embedding
        Settings.node_parser = SentenceSplitter(
            chunk_size=EMBED_CHUNK_SIZE,
            chunk_overlap=EMBED_CHUNK_OVERLAP,
        )
        _settings_initialized = True
        logger.info(f"LlamaIndex settings ready (embed={DEFAULT_EMBED_MODEL})")


def get_vector_index() -> VectorStoreIndex:
    """Return a VectorStoreIndex backed by the local Qdrant collection.

    Uses a cached instance for performance. Thread-safe via double-checked locking.
    """
    global _vector_index_cache
    if _vector_index_cache is not None:
        return _vector_index_cache

    with _index_cache_lock:
        if _vector_index_cache is not None:
            return _vector_index_cache

        setup_settings()
        client = get_qdrant_client(url=DEFAULT_QDRANT_URL)
        aclient = get_async_qdrant_client(url=DEFAULT_QDRANT_URL)
        vector_store = QdrantVectorStore(
            client=client, aclient=aclient, collection_name=COLLECTION_NAME
        )
        _vector_index_cache = VectorStoreIndex.from_vector_store(vector_store=vector_store)
        return _vector_index_cache


def reset_index_cache() -> None:
    """Drop the cached index so the next call reconnects. Used by tests."""
    global _vector_index_cache
    with _index_cache_lock:
        _vector_index_cache = None
