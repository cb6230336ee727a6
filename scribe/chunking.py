# Version: v1.0
"""
scribe.chunking — Boundary-aware splitting of oversized transcripts.

A transcript is partitioned into ordered, gap-free chunks of roughly
CHUNK_SIZE characters. Each cut is moved to the nearest natural boundary
inside a BOUNDARY_WINDOW radius, trying paragraph breaks first, then speaker
turns, timestamps, sentence ends and finally bare newlines. Overlap windows
are derived from neighbouring chunks on demand and never stored in the
chunk sequence.
"""

import re
from typing import Optional, Sequence

from scribe.config import (
    logger,
    CHUNK_SIZE,
    BOUNDARY_WINDOW,
    OVERLAP_SIZE,
)
from scribe.errors import ChunkingInvariantViolation
from scribe.models import Boundary, BoundaryType, Chunk, OverlapWindow

# ---------------------------------------------------------------------------
# Boundary patterns, highest priority first. Every match ends right after
# its delimiter, so the cut offset is always ``match.end()``.
# ---------------------------------------------------------------------------
BOUNDARY_PATTERNS: tuple[tuple[BoundaryType, re.Pattern], ...] = (
    (BoundaryType.PARAGRAPH, re.compile(r"\n\n+")),
    (BoundaryType.SPEAKER, re.compile(r"\n(?=[A-Z][\w.'\-]*(?: [\w.'\-]+){0,3}:)")),
    (BoundaryType.TIMESTAMP, re.compile(r"\n(?=\[\d{1,2}:\d{2})")),
    (BoundaryType.SENTENCE, re.compile(r"[.!?][ \t]*\n")),
    (BoundaryType.LINE, re.compile(r"\n")),
)


def find_boundary(
    text: str,
    target_offset: int,
    window_radius: int,
    *,
    lower: int = 0,
) -> Optional[Boundary]:
    """Find the best split point near *target_offset*.

    Searches ``[target_offset - window_radius, target_offset + window_radius)``
    clamped to the text (and to *lower*). A match counts when it starts
    inside the window; it may extend past the window end, so a run of blank
    lines or a speaker label crossing the edge is taken whole. The first
    pattern level with at least one match wins; within it the match closest
    to the target is chosen, the earlier one on a tie.

    Args:
        text: The text to scan.
        target_offset: Desired cut position.
        window_radius: Half-width of the search window in characters.
        lower: Smallest offset the window may start at. The splitter passes
            ``cursor + 1`` so a cut can never land at or behind the cursor.

    Returns:
        A Boundary positioned after the matched delimiter, or None when no
        pattern matches anywhere in the window.
    """
    start = max(0, lower, target_offset - window_radius)
    end = min(len(text), target_offset + window_radius)
    if start >= end:
        return None

    for boundary_type, pattern in BOUNDARY_PATTERNS:
        offsets = []
        for m in pattern.finditer(text, start):
            if m.start() >= end:
                break
            offsets.append(m.end())
        if offsets:
            best = min(offsets, key=lambda o: (abs(o - target_offset), o))
            return Boundary(offset=best, type=boundary_type)
    return None


def split_into_chunks(
    document: str,
    target_chunk_size: int = CHUNK_SIZE,
    boundary_window_radius: int = BOUNDARY_WINDOW,
) -> list[Chunk]:
    """Partition *document* into ordered, non-overlapping, loss-free chunks.

    Args:
        document: Full document text.
        target_chunk_size: Desired chunk length in characters (>= 1).
        boundary_window_radius: Search radius handed to find_boundary (>= 0).

    Returns:
        Chunks whose texts concatenate back to *document* exactly. An empty
        document yields an empty list; a document no longer than
        *target_chunk_size* yields one chunk of type ``end``.

    Raises:
        ValueError: If the size or radius is out of range.
        ChunkingInvariantViolation: If a zero-length chunk or a cut past the
            end would be emitted, or the chunks fail to cover the document.
    """
    if target_chunk_size < 1:
        raise ValueError("target_chunk_size must be a positive integer.")
    if boundary_window_radius < 0:
        raise ValueError("boundary_window_radius must be >= 0.")

    length = len(document)
    chunks: list[Chunk] = []
    cursor = 0

    while cursor < length:
        target = cursor + target_chunk_size
        if target >= length:
            cut, kind = length, BoundaryType.END
        else:
            boundary = find_boundary(
                document, target, boundary_window_radius, lower=cursor + 1
            )
            if boundary is None or boundary.offset <= cursor:
                cut, kind = target, BoundaryType.HARD
            else:
                cut, kind = boundary.offset, boundary.type

        if cut <= cursor or cut > length:
            raise ChunkingInvariantViolation(
                f"Invalid cut at offset {cursor} (cut={cut}, length={length})"
            )

        chunk = Chunk(
            text=document[cursor:cut],
            start_offset=cursor,
            end_offset=cut,
            boundary_type=kind,
        )
        logger.debug(
            f"Chunk {len(chunks) + 1}: [{cursor}, {cut}) "
            f"size={len(chunk.text)} boundary={kind.value}"
        )
        chunks.append(chunk)
        cursor = cut

    if sum(len(c.text) for c in chunks) != length:
        raise ChunkingInvariantViolation(
            f"Chunks cover {sum(len(c.text) for c in chunks)} of {length} characters"
        )

    if len(chunks) > 1:
        logger.info(
            f"Split {length} chars into {len(chunks)} chunks "
            f"(target={target_chunk_size}, window={boundary_window_radius})"
        )
    return chunks


def build_overlap(
    chunks: Sequence[Chunk],
    index: int,
    overlap_size: int = OVERLAP_SIZE,
) -> OverlapWindow:
    """Return the lookback/lookahead context for ``chunks[index]``.

    ``before`` is the tail of the previous chunk and ``after`` the head of the
    next one, each at most *overlap_size* characters. Neighbours shorter than
    that are taken whole. *chunks* is not modified.

    Raises:
        ValueError: If *overlap_size* is negative.
        IndexError: If *index* is outside the chunk sequence.
    """
    if overlap_size < 0:
        raise ValueError("overlap_size must be >= 0.")
    if not 0 <= index < len(chunks):
        raise IndexError(f"Chunk index {index} out of range for {len(chunks)} chunks")
    if overlap_size == 0:
        return OverlapWindow()

    before = chunks[index - 1].text[-overlap_size:] if index > 0 else ""
    after = chunks[index + 1].text[:overlap_size] if index + 1 < len(chunks) else ""
    return OverlapWindow(before=before, after=after)


def describe_chunks(chunks: Sequence[Chunk]) -> list[dict]:
    """One diagnostic record per chunk: position, size and boundary type."""
    return [
        {
            "index": i,
            "start": c.start_offset,
            "end": c.end_offset,
            "size": len(c.text),
            "boundary": c.boundary_type.value,
        }
        for i, c in enumerate(chunks)
    ]
