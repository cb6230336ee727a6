# Version: v1.0
"""
scribe.prompts — System prompt templates for transcript formatting.

Templates live in PROMPTS_DIR as ``system_{name}_v1_{timestamp}.txt`` and use
``{placeholder}`` markers. Built-in templates are used when no file exists.
"""

import re
from pathlib import Path
from typing import Mapping, Optional

from scribe.config import (
    logger,
    PROMPTS_DIR,
    SYSTEM_PROMPT_SINGLE_CHUNK,
    SYSTEM_PROMPT_MULTI_CHUNK,
)
from scribe.errors import PromptNotFound

_PLACEHOLDER = re.compile(r"\{(\w+)\}")

DEFAULT_SINGLE_CHUNK_TEMPLATE = """\
Format the following interview transcript as clean markdown.

- Group the conversation into topics, each under a `## ` heading.
- Render every speaker turn as **Speaker:** followed by what they said.
- Keep timestamps such as [00:12:34] where they appear.
- Do not summarise, reorder or drop any content.

Transcript:
{content}
"""

DEFAULT_MULTI_CHUNK_TEMPLATE = """\
You are formatting part {chunk_number} of {total_chunks} of a long interview \
transcript as clean markdown.

- Group the conversation into topics, each under a `## ` heading.
- Render every speaker turn as **Speaker:** followed by what they said.
- Keep timestamps such as [00:12:34] where they appear.
- Do not summarise, reorder or drop any content.

The surrounding text below is for orientation only. Do NOT include it in
your output; format only the section marked PART.

Preceding text:
{overlap_before}

PART {chunk_number}:
{content}

Following text:
{overlap_after}
"""


def fill_prompt_template(template: str, replacements: Mapping[str, object]) -> str:
    """Replace every ``{key}`` in *template* for each supplied key.

    All placeholders are filled in a single pass, so braces inside a
    substituted value are never expanded. Placeholders without a
    replacement are left as they are.

    >>> fill_prompt_template("{a} and {a}, not {b}", {"a": "x"})
    'x and x, not {b}'
    """
    return _PLACEHOLDER.sub(
        lambda m: str(replacements[m[1]]) if m[1] in replacements else m[0],
        template,
    )


def load_system_prompt(name: str, prompts_dir: Optional[str] = None) -> str:
    """Read the ``system_{name}_v1_*.txt`` template.

    Args:
        name: Template name, e.g. ``format-multi-chunk``.
        prompts_dir: Directory to search; defaults to PROMPTS_DIR.

    Returns:
        Template text of the first matching file in sorted order.

    Raises:
        PromptNotFound: If the directory or a matching file is missing.
    """
    directory = Path(prompts_dir or PROMPTS_DIR)
    if not directory.is_dir():
        raise PromptNotFound(name)
    matches = sorted(directory.glob(f"system_{name}_v1_*.txt"))
    if not matches:
        raise PromptNotFound(name)
    return matches[0].read_text(encoding="utf-8")


def resolve_format_template(multi_chunk: bool, prompts_dir: Optional[str] = None) -> str:
    """Return the formatting template for single or multi-chunk runs."""
    name = SYSTEM_PROMPT_MULTI_CHUNK if multi_chunk else SYSTEM_PROMPT_SINGLE_CHUNK
    try:
        return load_system_prompt(name, prompts_dir)
    except PromptNotFound:
        logger.info(f"No system prompt file for '{name}', using built-in template")
        return DEFAULT_MULTI_CHUNK_TEMPLATE if multi_chunk else DEFAULT_SINGLE_CHUNK_TEMPLATE
