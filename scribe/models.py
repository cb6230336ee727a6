# Version: v1.0
"""
scribe.models — Core data models for chunks, topics, selections and results.

Chunks and topics are recomputed from source text on demand; none of these
objects is persisted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class BoundaryType(str, Enum):
    """Why a chunk ends where it does, highest priority first."""

    PARAGRAPH = "paragraph"
    SPEAKER = "speaker"
    TIMESTAMP = "timestamp"
    SENTENCE = "sentence"
    LINE = "line"
    END = "end"
    HARD = "hard"


@dataclass(frozen=True)
class Boundary:
    """A split point found by the boundary scanner."""

    offset: int
    type: BoundaryType


@dataclass(frozen=True)
class Chunk:
    """One contiguous slice ``document[start_offset:end_offset]``."""

    text: str
    start_offset: int
    end_offset: int
    boundary_type: BoundaryType

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class OverlapWindow:
    """Context borrowed from the neighbouring chunks."""

    before: str = ""
    after: str = ""


@dataclass(frozen=True)
class Topic:
    """A level-2 heading section of a formatted document."""

    title: str
    id: str
    start_line: int
    content: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "id": self.id,
            "startLine": self.start_line,
            "content": self.content,
        }


@dataclass(frozen=True)
class RetrievedPassage:
    """A ranked passage handed over by the retrieval collaborator."""

    content: str
    source_document: str
    topic_label: Optional[str] = None
    relevance: float = 0.0


# ---------------------------------------------------------------------------
# Per-document selection variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WholeFile:
    """Include the full document."""


@dataclass(frozen=True)
class TopicSubset:
    """Include only the topics whose ids are listed.

    An empty subset is never stored in a ``ContextSelection``; it is
    normalised to ``WholeFile`` on the way in.
    """

    topic_ids: frozenset


DocumentSelection = Union[WholeFile, TopicSubset]


# ---------------------------------------------------------------------------
# Per-chunk transform results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChunkOk:
    index: int
    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class ChunkFailed:
    """A chunk whose transform failed; the raw text is kept for output."""

    index: int
    original_text: str
    cause: BaseException

    def render(self) -> str:
        return f"## Chunk {self.index + 1} (Error formatting)\n\n{self.original_text}"


ChunkResult = Union[ChunkOk, ChunkFailed]
