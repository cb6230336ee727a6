# Version: v1.0
"""
scribe.errors — Exceptions raised by the chunking, loading and transform layers.
"""

from typing import Optional


class ScribeError(Exception):
    """Base class for all scribe errors."""


class ChunkingInvariantViolation(ScribeError):
    """The splitter was about to emit an empty or non-advancing chunk."""


class DocumentNotFound(ScribeError):
    """A document name did not resolve to a readable file."""

    def __init__(self, name: str):
        super().__init__(f"Document not found: {name!r}")
        self.name = name


class PromptNotFound(ScribeError):
    """No system prompt template exists for the requested name."""

    def __init__(self, name: str):
        super().__init__(f"System prompt not found: {name}")
        self.name = name


class TransformError(ScribeError):
    """The LLM transform failed; the underlying exception is kept in *cause*."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
