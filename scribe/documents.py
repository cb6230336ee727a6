# Version: v1.0
"""
scribe.documents — Loading and saving documents in the transcriptions directory.

File naming follows the transcription workflow:
``interview_raw_{timestamp}.txt`` is formatted into
``interview_formatted_{timestamp}.md``.
"""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from scribe.config import TRANSCRIPTIONS_DIR, logger
from scribe.errors import DocumentNotFound

RAW_PREFIX = "interview_raw_"
RAW_SUFFIX = ".txt"
FORMATTED_PREFIX = "interview_formatted_"
FORMATTED_SUFFIX = ".md"


@runtime_checkable
class DocumentLoader(Protocol):
    """Anything that can fetch a document's text by name."""

    async def load(self, name: str) -> str:
        """Return the document text, raising DocumentNotFound if missing."""
        ...


class FileDocumentLoader:
    """Load documents from a directory, refusing names that escape it."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or TRANSCRIPTIONS_DIR)

    def resolve(self, name: str) -> Path:
        """Map *name* to a path inside the root.

        Raises:
            DocumentNotFound: If *name* is empty or points outside the root.
        """
        if not name or not name.strip():
            raise DocumentNotFound(name)
        root = self.root.resolve()
        path = (root / name).resolve()
        if path.parent != root:
            raise DocumentNotFound(name)
        return path

    async def load(self, name: str) -> str:
        path = self.resolve(name)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError) as e:
            raise DocumentNotFound(name) from e

    async def save(self, name: str, text: str) -> Path:
        """Write *text* under the root, creating the directory if needed."""
        path = self.resolve(name)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_text, text, encoding="utf-8")
        logger.info(f"Wrote {name} ({len(text)} chars)")
        return path

    def exists(self, name: str) -> bool:
        try:
            return self.resolve(name).is_file()
        except DocumentNotFound:
            return False

    def list_names(self) -> list[str]:
        """Sorted file names directly under the root (empty if it is missing)."""
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file())


def formatted_name_for(raw_name: str) -> Optional[str]:
    """Return the formatted file name for a raw transcription, else None.

    >>> formatted_name_for("interview_raw_20251101_140000.txt")
    'interview_formatted_20251101_140000.md'
    """
    if not (raw_name.startswith(RAW_PREFIX) and raw_name.endswith(RAW_SUFFIX)):
        return None
    timestamp = raw_name[len(RAW_PREFIX):-len(RAW_SUFFIX)]
    return f"{FORMATTED_PREFIX}{timestamp}{FORMATTED_SUFFIX}"
