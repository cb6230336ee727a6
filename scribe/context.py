# Version: v1.0
"""
scribe.context — Prompt context assembly from retrieved passages and documents.

The caller describes what to include with a ContextSelection: for each
document, either the whole file or a subset of its topic ids. Retrieved
passages are rendered first, in the order given, followed by the selected
documents in selection order. Nothing is truncated here.
"""

import asyncio
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Union

from scribe.config import logger
from scribe.documents import DocumentLoader
from scribe.models import DocumentSelection, RetrievedPassage, TopicSubset, WholeFile
from scribe.topics import filter_topics, segment_topics

PASSAGE_SEPARATOR = "\n\n---\n\n"
FILE_SEPARATOR = "\n\n"
SECTION_DIVIDER = "\n\n" + "=" * 20 + " SELECTED DOCUMENTS " + "=" * 20 + "\n\n"

WHOLE_FILE = WholeFile()


def _normalise(selection: DocumentSelection) -> DocumentSelection:
    if isinstance(selection, TopicSubset) and not selection.topic_ids:
        return WHOLE_FILE
    return selection


class ContextSelection:
    """Ordered mapping of document name to WholeFile or TopicSubset.

    An empty topic subset means "whole file", so it is stored as WholeFile.
    Iteration follows insertion order.
    """

    def __init__(self, entries: Optional[Mapping[str, DocumentSelection]] = None):
        self._entries: dict[str, DocumentSelection] = {}
        for name, selection in (entries or {}).items():
            self.set(name, selection)

    # -- construction -------------------------------------------------------

    @classmethod
    def from_files(
        cls,
        files: Iterable[str],
        topics: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "ContextSelection":
        """Select *files*, narrowing any that have topic ids in *topics*.

        Files missing from *topics*, or mapped to no ids, are whole files.
        """
        topics = topics or {}
        selection = cls()
        for name in files:
            selection.select_topics(name, topics.get(name, ()))
        return selection

    @classmethod
    def from_api(cls, items: Sequence[Union[str, Mapping]]) -> "ContextSelection":
        """Parse the request format: filenames or ``{"file", "topicIds"}`` dicts.

        Raises:
            ValueError: If an item is neither shape.
        """
        selection = cls()
        for item in items:
            if isinstance(item, str):
                selection.select_whole_file(item)
            elif isinstance(item, Mapping) and isinstance(item.get("file"), str):
                selection.select_topics(item["file"], item.get("topicIds") or ())
            else:
                raise ValueError(f"Invalid selection item: {item!r}")
        return selection

    def to_api(self) -> list[Union[str, dict]]:
        result: list[Union[str, dict]] = []
        for name, selection in self._entries.items():
            if isinstance(selection, TopicSubset):
                result.append({"file": name, "topicIds": sorted(selection.topic_ids)})
            else:
                result.append(name)
        return result

    # -- mutation -----------------------------------------------------------

    def set(self, name: str, selection: DocumentSelection) -> None:
        self._entries[name] = _normalise(selection)

    def select_whole_file(self, name: str) -> None:
        self.set(name, WHOLE_FILE)

    def select_topics(self, name: str, topic_ids: Iterable[str]) -> None:
        self.set(name, TopicSubset(frozenset(topic_ids)))

    def toggle_topic(self, name: str, topic_id: str) -> None:
        """Add or remove one topic id; removing the last one reverts to whole file."""
        current = self._entries.get(name)
        ids = set(current.topic_ids) if isinstance(current, TopicSubset) else set()
        ids.symmetric_difference_update({topic_id})
        self.select_topics(name, ids)

    def remove(self, name: str) -> None:
        self._entries.pop(name, None)

    # -- access -------------------------------------------------------------

    def get(self, name: str) -> Optional[DocumentSelection]:
        return self._entries.get(name)

    def items(self) -> Iterator[tuple[str, DocumentSelection]]:
        return iter(list(self._entries.items()))

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContextSelection):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"ContextSelection({self._entries!r})"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_passages(passages: Sequence[RetrievedPassage]) -> str:
    """Render retrieved passages as numbered, source-labelled blocks."""
    blocks = []
    for i, passage in enumerate(passages, start=1):
        label = f"Source: {passage.source_document}"
        if passage.topic_label:
            label += f", Topic: {passage.topic_label}"
        blocks.append(f"[RAG Context {i}] ({label})\n{passage.content}")
    return PASSAGE_SEPARATOR.join(blocks)


def render_document(name: str, content: str, selection: DocumentSelection) -> str:
    """Render one selected document, falling back to the whole file for stale ids."""
    if isinstance(selection, TopicSubset):
        topics = filter_topics(segment_topics(content), selection.topic_ids)
        if topics:
            titles = ", ".join(t.title for t in topics)
            body = "\n\n".join(t.content for t in topics)
            return f"--- File: {name} (Topics: {titles}) ---\n{body}"
        logger.warning(
            f"No topics in {name!r} match {sorted(selection.topic_ids)}; "
            f"using the whole file"
        )
    return f"--- File: {name} ---\n{content}"


async def assemble_context(
    selection: Optional[ContextSelection],
    retrieved: Optional[Sequence[RetrievedPassage]],
    loader: DocumentLoader,
) -> str:
    """Build the prompt context string.

    Args:
        selection: Documents (whole or by topic) to include; may be None.
        retrieved: Ranked passages to include first; None or empty to skip.
        loader: Document source for the selected names.

    Returns:
        Retrieved blocks, then file blocks, joined by SECTION_DIVIDER when
        both are present. Empty string when there is nothing to include.

    Raises:
        DocumentNotFound: Propagated from the loader.
    """
    sections: list[str] = []

    if retrieved:
        sections.append(render_passages(retrieved))

    entries = list(selection.items()) if selection is not None else []
    if entries:
        contents = await asyncio.gather(*(loader.load(name) for name, _ in entries))
        blocks = [
            render_document(name, content, doc_selection)
            for (name, doc_selection), content in zip(entries, contents)
        ]
        sections.append(FILE_SEPARATOR.join(blocks))

    logger.info(
        f"Assembled context: {len(retrieved or [])} passages, "
        f"{len(entries)} documents"
    )
    return SECTION_DIVIDER.join(sections)
