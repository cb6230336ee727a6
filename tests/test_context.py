# Version: v1.0
"""
Tests for scribe.context — selections, rendering and context assembly.
"""

import pytest

from scribe.context import (
    SECTION_DIVIDER,
    ContextSelection,
    assemble_context,
    render_document,
    render_passages,
)
from scribe.errors import DocumentNotFound
from scribe.models import RetrievedPassage, TopicSubset, WholeFile

DOC = "## Alpha\nfirst\n\n## Beta\nsecond\n\n## Gamma\nthird"


class TestContextSelection:
    """Tests for the ContextSelection mapping."""

    def test_empty_topics_normalise_to_whole_file(self):
        selection = ContextSelection()
        selection.select_topics("doc.md", [])
        assert selection.get("doc.md") == WholeFile()

    def test_set_normalises_empty_subset(self):
        selection = ContextSelection({"doc.md": TopicSubset(frozenset())})
        assert selection.get("doc.md") == WholeFile()

    def test_preserves_insertion_order(self):
        selection = ContextSelection.from_files(["b.md", "a.md", "c.md"])
        assert list(selection) == ["b.md", "a.md", "c.md"]

    def test_from_files_with_topic_overlay(self):
        selection = ContextSelection.from_files(
            ["a.md", "b.md"], {"a.md": ["alpha", "beta"]}
        )
        assert selection.get("a.md") == TopicSubset(frozenset({"alpha", "beta"}))
        assert selection.get("b.md") == WholeFile()

    def test_from_api(self):
        selection = ContextSelection.from_api(
            ["a.md", {"file": "b.md", "topicIds": ["beta"]}, {"file": "c.md"}]
        )
        assert selection.get("a.md") == WholeFile()
        assert selection.get("b.md") == TopicSubset(frozenset({"beta"}))
        assert selection.get("c.md") == WholeFile()

    @pytest.mark.parametrize("item", [42, {"topicIds": ["x"]}, {"file": 3}])
    def test_from_api_rejects_bad_items(self, item):
        with pytest.raises(ValueError):
            ContextSelection.from_api([item])

    def test_to_api_round_trip(self):
        items = ["a.md", {"file": "b.md", "topicIds": ["alpha", "beta"]}]
        assert ContextSelection.from_api(items).to_api() == items

    def test_toggle_topic(self):
        selection = ContextSelection.from_files(["doc.md"])
        selection.toggle_topic("doc.md", "alpha")
        selection.toggle_topic("doc.md", "beta")
        assert selection.get("doc.md") == TopicSubset(frozenset({"alpha", "beta"}))
        selection.toggle_topic("doc.md", "alpha")
        selection.toggle_topic("doc.md", "beta")
        assert selection.get("doc.md") == WholeFile()

    def test_remove_and_contains(self):
        selection = ContextSelection.from_files(["a.md", "b.md"])
        selection.remove("a.md")
        selection.remove("missing.md")
        assert "a.md" not in selection
        assert "b.md" in selection
        assert len(selection) == 1

    def test_equality(self):
        assert ContextSelection.from_files(["a.md"]) == ContextSelection.from_api(["a.md"])
        assert ContextSelection.from_files(["a.md", "b.md"]) != ContextSelection.from_files(
            ["b.md", "a.md"]
        )


class TestRendering:
    """Tests for render_passages() and render_document()."""

    def test_passages_numbered_and_labelled(self):
        text = render_passages(
            [
                RetrievedPassage("p1", "a.md", "Alpha", 0.9),
                RetrievedPassage("p2", "b.md", None, 0.5),
            ]
        )
        assert text == (
            "[RAG Context 1] (Source: a.md, Topic: Alpha)\np1"
            "\n\n---\n\n"
            "[RAG Context 2] (Source: b.md)\np2"
        )

    def test_whole_file(self):
        assert render_document("doc.md", DOC, WholeFile()) == f"--- File: doc.md ---\n{DOC}"

    def test_topic_subset_in_document_order(self):
        text = render_document("doc.md", DOC, TopicSubset(frozenset({"gamma", "alpha"})))
        assert text == (
            "--- File: doc.md (Topics: Alpha, Gamma) ---\n"
            "## Alpha\nfirst\n\n## Gamma\nthird"
        )

    def test_stale_topic_ids_fall_back_to_whole_file(self):
        text = render_document("doc.md", DOC, TopicSubset(frozenset({"stale-id"})))
        assert text == f"--- File: doc.md ---\n{DOC}"


class TestAssembleContext:
    """Tests for assemble_context()."""

    async def test_nothing_selected(self, memory_loader):
        assert await assemble_context(None, None, memory_loader()) == ""
        assert await assemble_context(ContextSelection(), [], memory_loader()) == ""

    async def test_passages_then_documents(self, memory_loader):
        loader = memory_loader({"doc.md": DOC, "notes.md": "plain notes"})
        selection = ContextSelection.from_api(
            [{"file": "doc.md", "topicIds": ["beta"]}, "notes.md"]
        )
        passages = [RetrievedPassage("hit", "other.md", "Topic", 1.0)]

        text = await assemble_context(selection, passages, loader)

        assert text == (
            "[RAG Context 1] (Source: other.md, Topic: Topic)\nhit"
            + SECTION_DIVIDER
            + "--- File: doc.md (Topics: Beta) ---\n## Beta\nsecond"
            + "\n\n"
            + "--- File: notes.md ---\nplain notes"
        )

    async def test_documents_only_has_no_divider(self, memory_loader):
        loader = memory_loader({"doc.md": DOC})
        text = await assemble_context(ContextSelection.from_files(["doc.md"]), None, loader)
        assert "SELECTED DOCUMENTS" not in text
        assert text == f"--- File: doc.md ---\n{DOC}"

    async def test_passages_only(self):
        text = await assemble_context(
            None, [RetrievedPassage("hit", "a.md")], loader=None
        )
        assert text == "[RAG Context 1] (Source: a.md)\nhit"

    async def test_stale_selection_includes_whole_file(self, memory_loader):
        loader = memory_loader({"doc.md": DOC})
        selection = ContextSelection.from_files(["doc.md"], {"doc.md": ["stale-id"]})
        text = await assemble_context(selection, None, loader)
        assert text == f"--- File: doc.md ---\n{DOC}"

    async def test_empty_topic_list_means_whole_file(self, memory_loader):
        loader = memory_loader({"doc.md": DOC})
        selection = ContextSelection.from_api([{"file": "doc.md", "topicIds": []}])
        assert await assemble_context(selection, None, loader) == f"--- File: doc.md ---\n{DOC}"

    async def test_missing_document_propagates(self, memory_loader):
        selection = ContextSelection.from_files(["ghost.md"])
        with pytest.raises(DocumentNotFound):
            await assemble_context(selection, None, memory_loader())

    async def test_is_deterministic(self, memory_loader):
        loader = memory_loader({"doc.md": DOC, "b.md": "b"})
        selection = ContextSelection.from_files(["b.md", "doc.md"], {"doc.md": ["alpha"]})
        passages = [RetrievedPassage("hit", "x.md")]
        first = await assemble_context(selection, passages, loader)
        second = await assemble_context(selection, passages, loader)
        assert first == second
        assert loader.requested == ["b.md", "doc.md", "b.md", "doc.md"]
