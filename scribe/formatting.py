# Version: v1.0
"""
scribe.formatting — Chunked LLM formatting of raw transcripts.

The raw text is split with scribe.chunking, each chunk is sent through the
transform with its overlap context, and the outputs are joined in chunk
order. A chunk whose transform fails is kept as an error placeholder that
still carries the raw text, so nothing is silently lost.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional

from scribe.chunking import build_overlap, split_into_chunks
from scribe.config import (
    logger,
    CHUNK_SIZE,
    BOUNDARY_WINDOW,
    OVERLAP_SIZE,
    FORMAT_CONCURRENCY,
)
from scribe.documents import FileDocumentLoader, RAW_PREFIX, RAW_SUFFIX, formatted_name_for
from scribe.errors import TransformError
from scribe.llm import Transform
from scribe.models import Chunk, ChunkFailed, ChunkOk, ChunkResult
from scribe.prompts import fill_prompt_template, resolve_format_template

CHUNK_DIVIDER = "\n\n---\n\n"


@dataclass
class FormatResult:
    """Combined output of one formatting run."""

    text: str
    chunks: list[Chunk] = field(default_factory=list)
    results: list[ChunkResult] = field(default_factory=list)

    @property
    def failed_indices(self) -> list[int]:
        return [r.index for r in self.results if isinstance(r, ChunkFailed)]

    @property
    def warning(self) -> Optional[str]:
        failed = self.failed_indices
        if not failed:
            return None
        numbers = ", ".join(str(i + 1) for i in failed)
        return f"{len(failed)} of {len(self.results)} chunk(s) failed to format: {numbers}"


def combine_results(results: list[ChunkResult]) -> str:
    """Join rendered chunk results; a single result is returned verbatim."""
    if len(results) == 1:
        return results[0].render()
    return CHUNK_DIVIDER.join(r.render() for r in results)


def build_chunk_prompt(template: str, chunks: list[Chunk], index: int, overlap_size: int) -> str:
    """Fill *template* for ``chunks[index]``.

    Single-chunk runs only get ``{content}``; multi-chunk runs also get the
    chunk position and the overlap window.
    """
    if len(chunks) == 1:
        return fill_prompt_template(template, {"content": chunks[index].text})
    overlap = build_overlap(chunks, index, overlap_size)
    return fill_prompt_template(
        template,
        {
            "chunk_number": index + 1,
            "total_chunks": len(chunks),
            "overlap_before": overlap.before,
            "overlap_after": overlap.after,
            "content": chunks[index].text,
        },
    )


async def format_transcription(
    raw_text: str,
    transform: Transform,
    *,
    template: Optional[str] = None,
    chunk_size: int = CHUNK_SIZE,
    boundary_window: int = BOUNDARY_WINDOW,
    overlap_size: int = OVERLAP_SIZE,
    concurrency: int = FORMAT_CONCURRENCY,
    prompts_dir: Optional[str] = None,
) -> FormatResult:
    """Format *raw_text* chunk by chunk.

    Args:
        raw_text: The unformatted transcript.
        transform: Async callable turning a filled prompt into formatted text.
        template: Prompt template override. By default the single or
            multi-chunk system prompt is resolved from *prompts_dir*.
        chunk_size: Target chunk size in characters.
        boundary_window: Boundary search radius in characters.
        overlap_size: Overlap window size in characters.
        concurrency: Transforms allowed in flight at once (1 = sequential).
        prompts_dir: Directory holding system prompt templates.

    Returns:
        FormatResult. Per-chunk transform failures are recorded in it rather
        than raised.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1.")

    start_time = time.monotonic()
    chunks = split_into_chunks(raw_text, chunk_size, boundary_window)
    if not chunks:
        return FormatResult(text="")

    logger.info(f"Formatting transcription: {len(raw_text)} chars in {len(chunks)} chunk(s)")
    if template is None:
        template = resolve_format_template(len(chunks) > 1, prompts_dir)

    semaphore = asyncio.Semaphore(concurrency)

    async def _run(index: int) -> ChunkResult:
        prompt = build_chunk_prompt(template, chunks, index, overlap_size)
        async with semaphore:
            chunk_start = time.monotonic()
            logger.info(
                f"Processing chunk {index + 1}/{len(chunks)} "
                f"({len(chunks[index].text)} chars, boundary={chunks[index].boundary_type.value})"
            )
            try:
                text = await transform(prompt)
            except Exception as e:
                cause = e if isinstance(e, TransformError) else TransformError(str(e), e)
                logger.warning(
                    f"Error formatting chunk {index + 1} after "
                    f"{time.monotonic() - chunk_start:.2f}s: {e}"
                )
                return ChunkFailed(index=index, original_text=chunks[index].text, cause=cause)
            logger.info(
                f"Chunk {index + 1} completed in {time.monotonic() - chunk_start:.2f}s: "
                f"{len(chunks[index].text)} -> {len(text)} chars"
            )
            return ChunkOk(index=index, text=text)

    results = list(await asyncio.gather(*(_run(i) for i in range(len(chunks)))))
    result = FormatResult(text=combine_results(results), chunks=chunks, results=results)

    if result.warning:
        logger.warning(result.warning)
    logger.info(
        f"Formatting finished in {time.monotonic() - start_time:.2f}s: "
        f"{len(raw_text)} chars in, {len(result.text)} chars out"
    )
    return result


async def format_pending_transcriptions(
    transform: Transform,
    loader: Optional[FileDocumentLoader] = None,
    **options,
) -> dict[str, int]:
    """Format every raw transcription that has no formatted sibling yet.

    Args:
        transform: Async transform passed to format_transcription.
        loader: Directory loader; defaults to TRANSCRIPTIONS_DIR.
        **options: Extra keyword arguments for format_transcription.

    Returns:
        Counts: {'formatted': N, 'skipped': M, 'errors': K}.
    """
    loader = loader or FileDocumentLoader()
    raw_names = [
        n for n in loader.list_names() if n.startswith(RAW_PREFIX) and n.endswith(RAW_SUFFIX)
    ]
    logger.info(f"Found {len(raw_names)} raw transcription(s) to check")

    formatted = 0
    skipped = 0
    errors = 0
    for raw_name in raw_names:
        target = formatted_name_for(raw_name)
        if loader.exists(target):
            skipped += 1
            continue
        try:
            raw_text = await loader.load(raw_name)
            result = await format_transcription(raw_text, transform, **options)
            await loader.save(target, result.text)
            formatted += 1
        except Exception as e:
            logger.error(f"Error formatting {raw_name}: {e}")
            errors += 1

    logger.info(
        f"Transcription processing complete: formatted={formatted}, "
        f"skipped={skipped}, errors={errors}"
    )
    return {"formatted": formatted, "skipped": skipped, "errors": errors}
