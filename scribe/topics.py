# Version: v1.0
"""
scribe.topics — Split a formatted markdown transcript into addressable topics.

A topic starts at every line beginning with ``## ``. Material before the
first heading is gathered into a synthesized "Introduction" topic. Ids are
slugs derived from the heading title and are not de-duplicated.

Pure functions, no I/O.
"""

import re
from typing import Iterable, Optional, Sequence

from scribe.models import Topic

HEADING_PREFIX = "## "
INTRODUCTION_TITLE = "Introduction"
INTRODUCTION_ID = "introduction"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Lowercase *title*, collapse non-alphanumeric runs to '-', trim dashes.

    >>> slugify("Technical Background & Experience")
    'technical-background-experience'
    """
    return _NON_ALNUM.sub("-", title.lower()).strip("-")


def segment_topics(markdown_text: str) -> list[Topic]:
    """Parse *markdown_text* into an ordered list of topics.

    Args:
        markdown_text: A formatted document.

    Returns:
        Topics in document order. Each heading topic's content starts with
        its own heading line. Empty when the document has no headings and
        no non-blank lines.
    """
    topics: list[Topic] = []
    title: Optional[str] = None
    topic_id = ""
    start_line = 0
    lines: list[str] = []

    def close() -> None:
        topics.append(
            Topic(
                title=title,
                id=topic_id,
                start_line=start_line,
                content="\n".join(lines).strip(),
            )
        )

    for number, line in enumerate(markdown_text.split("\n"), start=1):
        if line.startswith(HEADING_PREFIX):
            if title is not None:
                close()
            title = line[len(HEADING_PREFIX):].strip()
            topic_id = slugify(title)
            start_line = number
            lines = [line]
        elif title is not None:
            lines.append(line)
        elif line.strip():
            # Preamble ahead of the first heading; leading blank lines are dropped
            title = INTRODUCTION_TITLE
            topic_id = INTRODUCTION_ID
            start_line = 1
            lines = [line]

    if title is not None:
        close()
    return topics


def find_topic(topics: Sequence[Topic], topic_id: str) -> Optional[Topic]:
    """Return the first topic with *topic_id*, or None.

    Empty ids are unaddressable and never match.
    """
    if not topic_id:
        return None
    return next((t for t in topics if t.id == topic_id), None)


def filter_topics(topics: Sequence[Topic], topic_ids: Iterable[str]) -> list[Topic]:
    """Keep every topic whose id is in *topic_ids*, in document order."""
    wanted = {tid for tid in topic_ids if tid}
    return [t for t in topics if t.id in wanted]
