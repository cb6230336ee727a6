# Version: v1.0
"""
scribe.config — All constants, logging, and the shared FastMCP instance.
"""

import logging
import os

from mcp.server.fastmcp import FastMCP

# ---------------------------------------------------------------------------
# Service defaults
# ---------------------------------------------------------------------------
DEFAULT_OLLAMA_URL = os.environ.get("OLLAMA_URL", "http://localhost:11434")
DEFAULT_QDRANT_URL = os.environ.get("QDRANT_URL", "http://localhost:6333")
DEFAULT_EMBED_MODEL = os.environ.get("EMBED_MODEL", "nomic-embed-text")
DEFAULT_LLM_MODEL = os.environ.get("LLM_MODEL", "llama3.1:8b")

# ---------------------------------------------------------------------------
# LLM defaults
# ---------------------------------------------------------------------------
DEFAULT_LLM_TIMEOUT = float(os.environ.get("LLM_TIMEOUT", "300.0"))
DEFAULT_CONTEXT_WINDOW = int(os.environ.get("CONTEXT_WINDOW", "8192"))
MAX_TOKENS_TRANSCRIPTION = int(os.environ.get("MAX_TOKENS_TRANSCRIPTION", "4096"))
MAX_TOKENS_PROMPT = int(os.environ.get("MAX_TOKENS_PROMPT", "8192"))

# ---------------------------------------------------------------------------
# Document storage
# ---------------------------------------------------------------------------
TRANSCRIPTIONS_DIR = os.environ.get("TRANSCRIPTIONS_DIR", "./transcriptions")
PROMPTS_DIR = os.environ.get("PROMPTS_DIR", "./prompts")
SYSTEM_PROMPT_SINGLE_CHUNK = os.environ.get("SYSTEM_PROMPT_SINGLE_CHUNK", "format-single-chunk")
SYSTEM_PROMPT_MULTI_CHUNK = os.environ.get("SYSTEM_PROMPT_MULTI_CHUNK", "format-multi-chunk")

# ---------------------------------------------------------------------------
# Transcript chunking
# ---------------------------------------------------------------------------
# Character counts, not bytes or tokens
CHUNK_SIZE = int(os.environ.get("CHUNK_SIZE", "100000"))
BOUNDARY_WINDOW = int(os.environ.get("BOUNDARY_WINDOW", "1000"))
OVERLAP_SIZE = int(os.environ.get("OVERLAP_SIZE", "500"))
# 1 keeps the chunk loop strictly sequential
FORMAT_CONCURRENCY = int(os.environ.get("FORMAT_CONCURRENCY", "1"))

# ---------------------------------------------------------------------------
# Retrieval index
# ---------------------------------------------------------------------------
EMBED_CHUNK_SIZE = int(os.environ.get("EMBED_CHUNK_SIZE", "1024"))
EMBED_CHUNK_OVERLAP = int(os.environ.get("EMBED_CHUNK_OVERLAP", "128"))
DEFAULT_RAG_TOP_K = int(os.environ.get("RAG_TOP_K", "5"))

DEFAULT_RERANKER_MODEL = os.environ.get("RERANKER_MODEL", "BAAI/bge-reranker-v2-m3")
DEFAULT_RERANKER_CANDIDATE_K = int(os.environ.get("RERANKER_CANDIDATE_K", "20"))
RERANKER_ENABLED = os.environ.get("RERANKER_ENABLED", "true").lower() != "false"

# ---------------------------------------------------------------------------
# Allowlist — only these payload keys may be scanned for distinct values
# ---------------------------------------------------------------------------
ALLOWED_META_KEYS = frozenset({"source", "topic_id", "content_hash"})

# ---------------------------------------------------------------------------
# Qdrant collection name — single source of truth
# ---------------------------------------------------------------------------
COLLECTION_NAME = "scribe_rag"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mcp-scribe-rag")

# ---------------------------------------------------------------------------
# Shared FastMCP application instance
# ---------------------------------------------------------------------------
mcp = FastMCP("mcp-scribe-rag")
