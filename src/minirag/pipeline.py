"""
Pipeline wiring: explicit construction of the collaborators.

The embedder, vector store, LLM and scraper are built once (usually with
``Pipeline.from_settings()``) and handed to the Ingestor, Retriever and
Answerer. Nothing is cached at module level; whoever builds a Pipeline owns
its lifetime (the CLI for one command, the API for the server process).

Usage:
    pipeline = Pipeline.from_settings()
    report = await pipeline.run_ingestion(["https://example.com/a"])
    answer = await pipeline.ask_question("What does A say about B?")
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from minirag.config import Settings, get_settings
from minirag.generation import Answerer
from minirag.llm import LLMProtocol, create_llm
from minirag.retrieval.embeddings import Embedder, HuggingFaceEmbedder
from minirag.retrieval.ingestor import Ingestor, IngestReport
from minirag.retrieval.retriever import Retriever
from minirag.retrieval.scraper import Scraper, WebScraper
from minirag.retrieval.vector_store import FAISSVectorStore, SearchResult, VectorStore

logger = logging.getLogger(__name__)


@dataclass
class Answer:
    """An answer together with the passages it was grounded on."""

    answer: str
    passages: list[SearchResult] = field(default_factory=list)


class Pipeline:
    """Owns the collaborators and exposes ingestion and question answering."""

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        llm: LLMProtocol,
        scraper: Optional[Scraper] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.config = config or get_settings()
        self.embedder = embedder
        self.store = store
        self.llm = llm
        self.scraper = scraper or WebScraper(
            timeout=self.config.scrape_timeout, user_agent=self.config.user_agent
        )

        self.ingestor = Ingestor(
            embedder=embedder,
            store=store,
            collection_name=self.config.collection_name,
            dimension=self.config.embedding_dimension,
            metric=self.config.similarity_metric,
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
            max_concurrency=self.config.ingest_concurrency,
        )
        self.retriever = Retriever(embedder, store, self.config.collection_name)
        self.answerer = Answerer(llm)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "Pipeline":
        """
        Build every collaborator from settings.

        Loads the FAISS store from ``store_path`` when it exists.
        """
        config = config or get_settings()

        embedder = HuggingFaceEmbedder(
            model=config.embedding_model,
            api_key=config.hf_api_key_value,
            batch_size=config.embedding_batch_size,
            dimension=config.embedding_dimension,
            normalize=config.normalize_embeddings,
            timeout=config.embedding_timeout,
        )

        if config.store_path is not None and config.store_path.is_dir():
            logger.info(f"Loading vector store from {config.store_path}")
            store = FAISSVectorStore.from_disk(config.store_path)
        else:
            store = FAISSVectorStore()

        return cls(embedder=embedder, store=store, llm=create_llm(config), config=config)

    async def run_ingestion(self, urls: Sequence[str]) -> IngestReport:
        """
        Scrape, chunk, embed and store the given URLs.

        Saves the store afterwards when ``store_path`` is configured.
        """
        report = await self.ingestor.ingest_urls(urls, self.scraper)
        self.persist()
        return report

    async def ask_question_with_sources(self, question: str, k: Optional[int] = None) -> Answer:
        """
        Answer a question and return the passages used.

        Raises:
            EmbeddingFailed, CollectionNotFound, DimensionMismatch, GenerationFailed
        """
        passages = await self.retriever.retrieve(question, k or self.config.retrieval_top_k)
        answer = await self.answerer.answer(question, [p.text for p in passages])
        return Answer(answer=answer, passages=passages)

    async def ask_question(self, question: str, k: Optional[int] = None) -> str:
        """Answer a question from the stored passages."""
        result = await self.ask_question_with_sources(question, k)
        return result.answer

    def persist(self) -> None:
        """Save the store to ``store_path`` if configured and supported."""
        if self.config.store_path is None:
            return
        save = getattr(self.store, "save", None)
        if save is not None:
            save(self.config.store_path)
