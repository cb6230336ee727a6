# Version: v1.0
"""
tests/conftest.py — Shared fixtures and fakes for the scribe test suite.

No live Qdrant or Ollama is needed: documents come from an in-memory loader
and LLM calls go through scripted async transforms.
"""

import pytest
from unittest.mock import MagicMock

from scribe.errors import DocumentNotFound, TransformError


# ---------------------------------------------------------------------------
# Fakes — re-usable across all test modules
# ---------------------------------------------------------------------------


class InMemoryLoader:
    """DocumentLoader over a dict; records every name it is asked for."""

    def __init__(self, documents=None):
        self.documents = dict(documents or {})
        self.requested = []

    async def load(self, name):
        self.requested.append(name)
        if name not in self.documents:
            raise DocumentNotFound(name)
        return self.documents[name]


def make_recording_transform(reply=None, fail_on=()):
    """Build an async transform that records prompts.

    Args:
        reply: Callable mapping (call_number, prompt) to the output text;
            defaults to ``"formatted {call_number}"``.
        fail_on: 1-based call numbers that raise TransformError instead.

    Returns:
        Tuple(transform, prompts) where *prompts* is the list of received prompts.
    """
    prompts = []

    async def _transform(prompt):
        prompts.append(prompt)
        call_number = len(prompts)
        if call_number in fail_on:
            raise TransformError(f"boom {call_number}")
        if reply is None:
            return f"formatted {call_number}"
        return reply(call_number, prompt)

    return _transform, prompts


# ---------------------------------------------------------------------------
# Pytest fixtures exposed to all test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_loader():
    """Fixture returning a factory for InMemoryLoader."""

    def _factory(documents=None):
        return InMemoryLoader(documents)

    return _factory


@pytest.fixture()
def mock_qdrant_client(monkeypatch):
    """Fixture that injects a MagicMock QdrantClient into qdrant_backend.get_client."""
    from scribe.backends import qdrant as qdrant_backend

    client = MagicMock()
    monkeypatch.setattr(qdrant_backend, "get_client", lambda *a, **kw: client)
    return client


@pytest.fixture()
def transcriptions_dir(tmp_path, monkeypatch):
    """Point the MCP tools at an empty temporary transcriptions directory."""
    from scribe import tools
    from scribe.documents import FileDocumentLoader

    monkeypatch.setattr(tools, "_loader", lambda: FileDocumentLoader(str(tmp_path)))
    return tmp_path
