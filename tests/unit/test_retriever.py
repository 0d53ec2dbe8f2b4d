"""Unit tests for retrieval.retriever module."""

from unittest.mock import AsyncMock

import numpy as np
import pytest

from minirag.exceptions import CollectionNotFound, EmbeddingFailed
from minirag.retrieval.retriever import Retriever
from minirag.retrieval.vector_store import Record, SearchResult


async def _fill(store, embedder, texts, name="docs"):
    await store.create_collection(name, embedder.dimension)
    records = [
        Record(vector=await embedder.aembed(text), text=text, source=f"https://example.test/{i}")
        for i, text in enumerate(texts)
    ]
    await store.insert_many(name, records)


@pytest.mark.unit
class TestRetriever:
    """Tests for Retriever class."""

    @pytest.mark.asyncio
    async def test_returns_most_similar_first(self, store, keyword_embedder):
        await _fill(store, keyword_embedder, ["alpha alpha", "beta", "alpha beta"])
        retriever = Retriever(keyword_embedder, store, "docs")

        results = await retriever.retrieve("tell me about alpha", k=2)

        assert [r.text for r in results] == ["alpha alpha", "alpha beta"]
        assert results[0].score >= results[1].score

    @pytest.mark.asyncio
    async def test_at_most_k_results(self, store, hash_embedder):
        await _fill(store, hash_embedder, [f"passage {i}" for i in range(10)])
        retriever = Retriever(hash_embedder, store, "docs")

        results = await retriever.retrieve("question", k=3)

        assert len(results) == 3
        assert all(isinstance(r, SearchResult) for r in results)

    @pytest.mark.asyncio
    async def test_exact_passage_is_top(self, store, hash_embedder):
        texts = [f"passage {i}" for i in range(10)]
        await _fill(store, hash_embedder, texts)
        retriever = Retriever(hash_embedder, store, "docs")

        results = await retriever.retrieve("passage 7", k=1)

        assert results[0].text == "passage 7"
        assert results[0].source == "https://example.test/7"

    @pytest.mark.asyncio
    async def test_passes_query_to_store(self):
        embedder = AsyncMock()
        embedder.aembed.return_value = np.array([1.0, 0.0], dtype=np.float32)
        store = AsyncMock()
        store.query.return_value = []

        results = await Retriever(embedder, store, "kb").retrieve("What is RAG?", k=4)

        assert results == []
        embedder.aembed.assert_awaited_once_with("What is RAG?")
        name, vector, k = store.query.await_args.args
        assert name == "kb"
        assert k == 4
        np.testing.assert_array_equal(vector, [1.0, 0.0])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   "])
    async def test_empty_question(self, store, keyword_embedder, question):
        with pytest.raises(ValueError):
            await Retriever(keyword_embedder, store, "docs").retrieve(question)

    @pytest.mark.asyncio
    async def test_invalid_k(self, store, keyword_embedder):
        with pytest.raises(ValueError):
            await Retriever(keyword_embedder, store, "docs").retrieve("alpha", k=0)

    @pytest.mark.asyncio
    async def test_missing_collection(self, store, keyword_embedder):
        with pytest.raises(CollectionNotFound):
            await Retriever(keyword_embedder, store, "docs").retrieve("alpha")

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, store):
        embedder = AsyncMock()
        embedder.aembed.side_effect = EmbeddingFailed("service down")

        with pytest.raises(EmbeddingFailed):
            await Retriever(embedder, store, "docs").retrieve("alpha")
