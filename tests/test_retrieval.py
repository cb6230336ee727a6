# Version: v1.0
"""
Tests for scribe.retrieval — passage search, reranking and topic indexing.
The vector index, Qdrant and the reranker are mocked.
"""

from unittest.mock import AsyncMock, MagicMock, patch

from llama_index.core.schema import NodeWithScore, TextNode

from scribe import retrieval
from scribe.backends import qdrant as qdrant_backend
from scribe.models import RetrievedPassage


def _node(text, source="doc.md", topic="Topic", score=0.5):
    return NodeWithScore(
        node=TextNode(text=text, metadata={"source": source, "topic": topic}),
        score=score,
    )


def _mock_index(nodes=None, side_effect=None):
    mock_index = MagicMock()
    mock_index.as_retriever.return_value.aretrieve = AsyncMock(
        return_value=nodes or [], side_effect=side_effect
    )
    return mock_index


class TestSearch:
    """Tests for retrieval.search()."""

    async def test_maps_nodes_to_passages(self):
        index = _mock_index([_node("alpha", "a.md", "Skills", 0.9), _node("beta", "b.md", "", 0.4)])
        with patch.object(retrieval, "get_vector_index", return_value=index):
            passages = await retrieval.search("python", top_k=5, rerank=False)

        assert passages == [
            RetrievedPassage("alpha", "a.md", "Skills", 0.9),
            RetrievedPassage("beta", "b.md", None, 0.4),
        ]

    async def test_requests_candidate_pool(self):
        index = _mock_index([])
        with patch.object(retrieval, "get_vector_index", return_value=index):
            await retrieval.search("q", top_k=2, rerank=False)
        index.as_retriever.assert_called_once_with(
            similarity_top_k=retrieval.DEFAULT_RERANKER_CANDIDATE_K
        )

    async def test_truncates_to_top_k(self):
        nodes = [_node(f"text {i}") for i in range(6)]
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index(nodes)):
            passages = await retrieval.search("q", top_k=3, rerank=False)
        assert [p.content for p in passages] == ["text 0", "text 1", "text 2"]

    async def test_drops_duplicate_content(self):
        nodes = [_node("same", "a.md"), _node("same", "b.md"), _node("other")]
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index(nodes)):
            passages = await retrieval.search("q", rerank=False)
        assert [(p.content, p.source_document) for p in passages] == [
            ("same", "a.md"),
            ("other", "doc.md"),
        ]

    async def test_missing_metadata_defaults(self):
        node = NodeWithScore(node=TextNode(text="bare"), score=None)
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index([node])):
            passages = await retrieval.search("q", rerank=False)
        assert passages == [RetrievedPassage("bare", "unknown", None, 0.0)]

    async def test_empty_query_or_top_k(self):
        with patch.object(retrieval, "get_vector_index") as mock_get_index:
            assert await retrieval.search("   ") == []
            assert await retrieval.search("q", top_k=0) == []
        mock_get_index.assert_not_called()

    async def test_retrieval_failure_returns_empty(self):
        index = _mock_index(side_effect=ConnectionError("qdrant down"))
        with patch.object(retrieval, "get_vector_index", return_value=index):
            assert await retrieval.search("q") == []

    async def test_reranker_reorders(self):
        nodes = [_node("first", score=0.9), _node("second", score=0.1)]
        mock_reranker = MagicMock()
        mock_reranker.postprocess_nodes.return_value = list(reversed(nodes))
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index(nodes)), \
                patch.object(retrieval, "RERANKER_ENABLED", True), \
                patch.object(retrieval, "get_reranker", return_value=mock_reranker) as mock_get:
            passages = await retrieval.search("q", top_k=2)

        mock_get.assert_called_once_with(2)
        assert [p.content for p in passages] == ["second", "first"]

    async def test_reranker_failure_keeps_original_order(self):
        nodes = [_node("first"), _node("second")]
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index(nodes)), \
                patch.object(retrieval, "RERANKER_ENABLED", True), \
                patch.object(retrieval, "get_reranker", side_effect=ImportError("no FlagEmbedding")):
            passages = await retrieval.search("q")
        assert [p.content for p in passages] == ["first", "second"]

    async def test_reranker_disabled(self):
        nodes = [_node("first")]
        with patch.object(retrieval, "get_vector_index", return_value=_mock_index(nodes)), \
                patch.object(retrieval, "RERANKER_ENABLED", False), \
                patch.object(retrieval, "get_reranker") as mock_get:
            await retrieval.search("q")
        mock_get.assert_not_called()


class TestGetReranker:
    """Tests for the reranker singleton."""

    def test_singleton_updates_top_n(self):
        retrieval.reset_reranker()
        mock_cls = MagicMock()
        with patch.dict(
            "sys.modules",
            {"llama_index.postprocessor.flag_reranker": MagicMock(FlagEmbeddingReranker=mock_cls)},
        ):
            first = retrieval.get_reranker(3)
            second = retrieval.get_reranker(7)
        try:
            assert first is second
            mock_cls.assert_called_once()
            assert second.top_n == 7
        finally:
            retrieval.reset_reranker()


class TestSyncDocument:
    """Tests for retrieval.sync_document() and remove_document()."""

    DOC = "Preamble\n## Skills\nPython\n## Goals\nLead a team"

    def test_indexes_one_document_per_topic(self):
        mock_index = MagicMock()
        with patch.object(retrieval, "get_vector_index", return_value=mock_index), \
                patch.object(qdrant_backend, "is_duplicate", return_value=False):
            counts = retrieval.sync_document("doc.md", self.DOC)

        assert counts == {"indexed": 3, "skipped": 0, "errors": 0}
        docs = [c.args[0] for c in mock_index.insert.call_args_list]
        assert [d.metadata["topic_id"] for d in docs] == ["introduction", "skills", "goals"]
        skills = docs[1]
        assert skills.text == "## Skills\nPython"
        assert skills.metadata["source"] == "doc.md"
        assert skills.metadata["topic"] == "Skills"
        assert skills.metadata["content_hash"] == retrieval.content_hash("## Skills\nPython", "doc.md")
        assert skills.doc_id == skills.metadata["content_hash"]

    def test_skips_duplicates(self):
        mock_index = MagicMock()
        with patch.object(retrieval, "get_vector_index", return_value=mock_index), \
                patch.object(qdrant_backend, "is_duplicate", return_value=True):
            counts = retrieval.sync_document("doc.md", self.DOC)
        assert counts == {"indexed": 0, "skipped": 3, "errors": 0}
        mock_index.insert.assert_not_called()

    def test_duplicate_check_can_be_disabled(self):
        mock_index = MagicMock()
        with patch.object(retrieval, "get_vector_index", return_value=mock_index), \
                patch.object(qdrant_backend, "is_duplicate") as mock_dup:
            counts = retrieval.sync_document("doc.md", "## A\nx", skip_duplicates=False)
        assert counts["indexed"] == 1
        mock_dup.assert_not_called()

    def test_insert_errors_are_counted(self):
        mock_index = MagicMock()
        mock_index.insert.side_effect = [None, RuntimeError("embed failed"), None]
        with patch.object(retrieval, "get_vector_index", return_value=mock_index), \
                patch.object(qdrant_backend, "is_duplicate", return_value=False):
            counts = retrieval.sync_document("doc.md", self.DOC)
        assert counts == {"indexed": 2, "skipped": 0, "errors": 1}

    def test_empty_document(self):
        with patch.object(retrieval, "get_vector_index") as mock_get_index:
            counts = retrieval.sync_document("doc.md", "  \n")
        assert counts == {"indexed": 0, "skipped": 0, "errors": 0}
        mock_get_index.assert_not_called()

    def test_remove_document(self):
        with patch.object(qdrant_backend, "delete_by_source") as mock_delete:
            retrieval.remove_document("doc.md")
        mock_delete.assert_called_once_with("doc.md")


class TestContentHash:
    """Tests for retrieval.content_hash()."""

    def test_same_text_same_source_is_identical(self):
        assert retrieval.content_hash("Hello", "a.md") == retrieval.content_hash("Hello", "a.md")

    def test_different_source_gives_different_hash(self):
        assert retrieval.content_hash("Hello", "a.md") != retrieval.content_hash("Hello", "b.md")

    def test_returns_64_char_hex_string(self):
        h = retrieval.content_hash("x", "a.md")
        assert len(h) == 64
        assert all(c in "0123456789abcdef" for c in h)

    def test_null_byte_separator_prevents_collisions(self):
        """'AB' + 'C' must hash differently from 'A' + 'BC'."""
        assert retrieval.content_hash("C", "AB") != retrieval.content_hash("BC", "A")
