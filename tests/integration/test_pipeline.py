"""
Integration tests for the RAG pipeline.

These tests run ingestion and question answering end to end over the real
FAISS store, with deterministic in-process embedders, scrapers and LLMs.
"""

import pytest

from minirag.exceptions import CollectionAlreadyExists
from minirag.pipeline import Pipeline
from minirag.retrieval.chunker import Document, chunk_document
from minirag.retrieval.ingestor import Ingestor
from minirag.retrieval.retriever import Retriever
from minirag.retrieval.vector_store import FAISSVectorStore

from tests.conftest import DictScraper, FakeLLM, HashEmbedder, KeywordEmbedder

ALPHA_URL = "https://example.test/alpha"
BETA_URL = "https://example.test/beta"
GAMMA_URL = "https://example.test/gamma"


def _ingestor(embedder, store, collection="docs") -> Ingestor:
    return Ingestor(
        embedder,
        store,
        collection_name=collection,
        metric="dot_product",
        chunk_size=50,
        chunk_overlap=10,
        max_concurrency=4,
    )


@pytest.mark.integration
class TestTopicSeparation:
    """Questions about one topic retrieve that topic's chunks."""

    @pytest.mark.asyncio
    async def test_topic_a_question_retrieves_topic_a(self, topic_documents):
        embedder = KeywordEmbedder()
        store = FAISSVectorStore()
        await _ingestor(embedder, store).ingest(topic_documents)

        results = await Retriever(embedder, store, "docs").retrieve(
            "What do alpha sources include?", k=1
        )

        assert len(results) == 1
        assert results[0].source == ALPHA_URL
        assert "lpha" in results[0].text

    @pytest.mark.asyncio
    async def test_topic_b_question_retrieves_topic_b(self, topic_documents):
        embedder = KeywordEmbedder()
        store = FAISSVectorStore()
        await _ingestor(embedder, store).ingest(topic_documents)

        results = await Retriever(embedder, store, "docs").retrieve("beta decay?", k=1)

        assert results[0].source == BETA_URL


@pytest.mark.integration
class TestRoundTrip:
    """A question embedded like a stored chunk retrieves that chunk."""

    @pytest.mark.asyncio
    async def test_chunk_text_as_question(self, topic_documents):
        embedder = HashEmbedder()
        store = FAISSVectorStore()
        await _ingestor(embedder, store).ingest(topic_documents)

        target = chunk_document(topic_documents[1], 50, 10)[1]
        results = await Retriever(embedder, store, "docs").retrieve(target.text, k=3)

        assert results[0].text == target.text
        assert results[0].source == BETA_URL
        assert results[0].score == pytest.approx(1.0, rel=1e-5)


@pytest.mark.integration
class TestCollectionReuse:
    """Collections survive repeated creation and persistence."""

    @pytest.mark.asyncio
    async def test_create_collection_twice_does_not_abort_ingestion(self, topic_documents):
        embedder = KeywordEmbedder()
        store = FAISSVectorStore()
        await store.create_collection("docs", embedder.dimension, "dot_product")

        with pytest.raises(CollectionAlreadyExists) as exc_info:
            await store.create_collection("docs", embedder.dimension, "dot_product")
        assert exc_info.value.same_config

        report = await _ingestor(embedder, store).ingest(topic_documents)

        assert report.errors == []
        assert report.records_inserted > 0

    @pytest.mark.asyncio
    async def test_saved_store_answers_questions(self, mock_settings, topic_a_text, tmp_path):
        config = mock_settings.model_copy(update={"store_path": tmp_path / "store"})
        scraper = DictScraper({ALPHA_URL: topic_a_text})

        writer = Pipeline(KeywordEmbedder(), FAISSVectorStore(), FakeLLM(), scraper=scraper, config=config)
        await writer.run_ingestion([ALPHA_URL])

        reader = Pipeline(
            KeywordEmbedder(),
            FAISSVectorStore.from_disk(config.store_path),
            FakeLLM(answer="Paper."),
            scraper=scraper,
            config=config,
        )
        result = await reader.ask_question_with_sources("What stops alpha radiation?", k=1)

        assert result.answer == "Paper."
        assert result.passages[0].source == ALPHA_URL


@pytest.mark.integration
class TestPartialIngestion:
    """Scrape failures are reported without stopping the run."""

    @pytest.mark.asyncio
    async def test_one_of_three_scrapes_fails(self, mock_settings, topic_a_text, topic_b_text):
        scraper = DictScraper({ALPHA_URL: topic_a_text, BETA_URL: topic_b_text})
        fake_llm = FakeLLM()
        pipeline = Pipeline(KeywordEmbedder(), FAISSVectorStore(), fake_llm, scraper=scraper, config=mock_settings)

        report = await pipeline.run_ingestion([ALPHA_URL, GAMMA_URL, BETA_URL])

        expected_chunks = sum(
            len(chunk_document(Document(source_url=url, raw_text=text), 50, 10))
            for url, text in [(ALPHA_URL, topic_a_text), (BETA_URL, topic_b_text)]
        )
        assert len(report.errors) == 1
        assert report.errors[0].source == GAMMA_URL
        assert report.documents_processed == 2
        assert report.records_inserted == expected_chunks
        assert pipeline.store.describe("test_docs").size == expected_chunks

        answer = await pipeline.ask_question("What stops beta radiation?")

        assert answer == fake_llm.answer
        assert "aluminium" in fake_llm.prompts[0]
