# Version: v1.0
"""
scribe — Transcript formatting and topic-aware context assembly over MCP.

Sub-modules
-----------
config     : Service defaults, constants, shared FastMCP instance.
errors     : Exception hierarchy shared by the pipeline.
models     : Chunk, Topic, selection and result dataclasses.
chunking   : Boundary scanner, chunk splitter, overlap windows.
topics     : Level-2 heading topic segmenter.
context    : Context selection and prompt context assembly.
prompts    : System prompt template loading and filling.
llm        : Ollama chat transform used for per-chunk formatting.
formatting : Chunked formatting pipeline.
documents  : Transcription directory loader.
indexes    : LlamaIndex settings bootstrap and vector index factory.
retrieval  : Passage search and topic-level index sync.
tools      : All @mcp.tool()-decorated MCP tool functions.
backends   : Database-specific helpers (qdrant).
"""

__version__ = "1.0.0"
