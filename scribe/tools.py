# Version: v1.0
"""
scribe.tools — All @mcp.tool() decorated functions.

server.py is a thin wrapper that imports this module to register the tools
on the shared mcp instance. Tools report problems as "Error: ..." strings
(or an "error" key) instead of raising across the MCP boundary.
"""

from typing import Optional, Union

from scribe import retrieval
from scribe.backends import qdrant as qdrant_backend
from scribe.chunking import describe_chunks, split_into_chunks
from scribe.config import (
    logger,
    mcp,
    BOUNDARY_WINDOW,
    CHUNK_SIZE,
    DEFAULT_OLLAMA_URL,
    DEFAULT_QDRANT_URL,
    DEFAULT_RAG_TOP_K,
    FORMAT_CONCURRENCY,
    MAX_TOKENS_PROMPT,
    MAX_TOKENS_TRANSCRIPTION,
)
from scribe.context import ContextSelection, assemble_context
from scribe.documents import FileDocumentLoader, formatted_name_for
from scribe.errors import DocumentNotFound, TransformError
from scribe.formatting import format_pending_transcriptions, format_transcription
from scribe.llm import make_transform, transform
from scribe.topics import segment_topics

SelectionItems = list[Union[str, dict]]


def _loader() -> FileDocumentLoader:
    return FileDocumentLoader()


# ---------------------------------------------------------------------------
# Formatting tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def format_document(
    filename: str,
    output_filename: str = "",
    concurrency: int = FORMAT_CONCURRENCY,
    chunk_size: int = CHUNK_SIZE,
    boundary_window: int = BOUNDARY_WINDOW,
) -> dict:
    """Format a raw transcription with the LLM and save the result.

    Oversized transcripts are split at natural boundaries (paragraphs,
    speaker turns, timestamps, sentences) and formatted chunk by chunk. A
    chunk that fails to format is kept as raw text under an error heading.

    Args:
        filename: Raw transcription file in the transcriptions directory.
        output_filename: Where to save the result. Defaults to the matching
            ``interview_formatted_*.md`` name, or ``<filename>.formatted.md``.
        concurrency: Chunks formatted in parallel (1 = sequential).
        chunk_size: Target chunk size in characters.
        boundary_window: Boundary search radius in characters.

    Returns:
        Dictionary with 'filename', 'chunks', 'failed_chunks' and 'warning',
        or an 'error' key.
    """
    if not filename or not filename.strip():
        return {"error": "'filename' must not be empty."}
    if concurrency < 1:
        return {"error": "'concurrency' must be >= 1."}

    loader = _loader()
    target = output_filename.strip() or formatted_name_for(filename) or f"{filename}.formatted.md"
    try:
        raw_text = await loader.load(filename)
        result = await format_transcription(
            raw_text,
            make_transform(max_tokens=MAX_TOKENS_TRANSCRIPTION),
            chunk_size=chunk_size,
            boundary_window=boundary_window,
            concurrency=concurrency,
        )
        await loader.save(target, result.text)
    except DocumentNotFound as e:
        return {"error": str(e)}
    except Exception as e:
        logger.error(f"Error formatting {filename}: {e}")
        return {"error": f"Error formatting {filename}: {e}"}

    return {
        "filename": target,
        "chunks": len(result.chunks),
        "failed_chunks": [i + 1 for i in result.failed_indices],
        "warning": result.warning or "",
    }


@mcp.tool()
async def format_pending() -> dict[str, int]:
    """Format every raw transcription that has no formatted version yet.

    Returns:
        Counts: {'formatted': N, 'skipped': M, 'errors': K}.
    """
    return await format_pending_transcriptions(
        make_transform(max_tokens=MAX_TOKENS_TRANSCRIPTION), _loader()
    )


@mcp.tool()
async def preview_chunks(
    filename: str,
    chunk_size: int = CHUNK_SIZE,
    boundary_window: int = BOUNDARY_WINDOW,
) -> Union[list[dict], dict]:
    """Show how a document would be split, without calling the LLM.

    Returns:
        One record per chunk (index, start, end, size, boundary), or an
        'error' key.
    """
    try:
        text = await _loader().load(filename)
        return describe_chunks(split_into_chunks(text, chunk_size, boundary_window))
    except (DocumentNotFound, ValueError) as e:
        return {"error": str(e)}


# ---------------------------------------------------------------------------
# Topic & context tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def list_topics(filename: str) -> Union[list[dict], dict]:
    """List the ``## `` topics of a formatted document.

    Returns:
        [{'title', 'id', 'startLine'}, ...] in document order, or an 'error' key.
    """
    try:
        text = await _loader().load(filename)
    except DocumentNotFound as e:
        return {"error": str(e)}
    return [
        {"title": t.title, "id": t.id, "startLine": t.start_line}
        for t in segment_topics(text)
    ]


async def _build_context(files: SelectionItems, query: str, top_k: int) -> str:
    selection = ContextSelection.from_api(files or [])
    passages = await retrieval.search(query, top_k) if query and query.strip() else None
    return await assemble_context(selection, passages, _loader())


@mcp.tool()
async def build_context(
    files: Optional[SelectionItems] = None,
    query: str = "",
    top_k: int = DEFAULT_RAG_TOP_K,
) -> str:
    """Assemble prompt context from selected documents and retrieved passages.

    Args:
        files: Items are either a filename (whole file) or
            ``{"file": name, "topicIds": [...]}`` to include only those topics.
        query: If set, passages retrieved for it are included first.
        top_k: Maximum retrieved passages.

    Returns:
        The context string, or an error message.
    """
    try:
        return await _build_context(files or [], query, top_k)
    except (DocumentNotFound, ValueError) as e:
        return f"Error: {e}"


@mcp.tool()
async def run_prompt(
    prompt: str,
    files: Optional[SelectionItems] = None,
    query: str = "",
    top_k: int = DEFAULT_RAG_TOP_K,
    model: str = "",
) -> str:
    """Run a prompt against the selected documents and retrieved passages.

    Args:
        prompt: Instructions for the LLM.
        files: Selection, as in build_context.
        query: Optional retrieval query.
        top_k: Maximum retrieved passages.
        model: Ollama model override.

    Returns:
        LLM answer, or an error message.
    """
    if not prompt or not prompt.strip():
        return "Error: 'prompt' must not be empty."
    try:
        context_text = await _build_context(files or [], query, top_k)
    except (DocumentNotFound, ValueError) as e:
        return f"Error: {e}"

    full_prompt = f"{prompt}\n\n{context_text}" if context_text else prompt
    logger.info(f"run_prompt: {len(full_prompt)} chars, {len(files or [])} files")
    try:
        return await transform(full_prompt, model=model, max_tokens=MAX_TOKENS_PROMPT)
    except TransformError as e:
        logger.error(str(e))
        return f"Error generating answer: {e}"


# ---------------------------------------------------------------------------
# Retrieval index tools
# ---------------------------------------------------------------------------


@mcp.tool()
async def sync_rag_index(files: list[str]) -> dict[str, int]:
    """Index formatted documents topic by topic for retrieval.

    Unchanged topics are skipped by content hash.

    Returns:
        Counts: {'indexed': N, 'skipped': M, 'errors': K}.
    """
    loader = _loader()
    totals = {"indexed": 0, "skipped": 0, "errors": 0}
    for name in files:
        try:
            text = await loader.load(name)
        except DocumentNotFound as e:
            logger.warning(str(e))
            totals["errors"] += 1
            continue
        for key, value in retrieval.sync_document(name, text).items():
            totals[key] += value
    logger.info(f"RAG sync complete: {totals}")
    return totals


@mcp.tool()
async def remove_from_rag_index(filename: str) -> str:
    """Remove all indexed passages of a document."""
    if not filename or not filename.strip():
        return "Error: 'filename' must not be empty."
    try:
        retrieval.remove_document(filename)
    except Exception as e:
        return f"Error removing {filename}: {e}"
    return f"Successfully removed {filename} from the retrieval index."


@mcp.tool()
async def list_indexed_documents() -> list[str]:
    """Return the sorted names of all documents in the retrieval index."""
    return qdrant_backend.get_distinct_metadata("source")


@mcp.tool()
async def health_check() -> dict[str, str]:
    """Check connectivity to Qdrant and Ollama.

    Returns:
        Dictionary with status of each service: "ok" or error message.
    """
    import httpx

    status = {}

    try:
        client = qdrant_backend.get_client(DEFAULT_QDRANT_URL)
        client.get_collections()
        status["qdrant"] = "ok"
    except Exception as e:
        status["qdrant"] = f"error: {str(e)[:100]}"

    try:
        async with httpx.AsyncClient(timeout=5.0) as http_client:
            response = await http_client.get(f"{DEFAULT_OLLAMA_URL}/api/tags")
            if response.status_code == 200:
                status["ollama"] = "ok"
            else:
                status["ollama"] = f"error: HTTP {response.status_code}"
    except Exception as e:
        status["ollama"] = f"error: {str(e)[:100]}"

    logger.info(f"Health check: {status}")
    return status
