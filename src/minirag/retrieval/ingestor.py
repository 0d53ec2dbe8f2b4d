"""
Ingestion: documents -> chunks -> embeddings -> vector store records.

Documents are processed concurrently. Within a document, chunk embeddings
are gathered positionally, so records are inserted in chunk order no matter
which embedding call finishes first. A semaphore caps the number of
in-flight embedder and store calls across the whole run.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from minirag.config import settings
from minirag.exceptions import (
    CollectionAlreadyExists,
    DimensionMismatch,
    EmbeddingFailed,
    SourceError,
)
from minirag.retrieval.chunker import Chunk, Document, chunk_document
from minirag.retrieval.embeddings import Embedder
from minirag.retrieval.scraper import Scraper
from minirag.retrieval.vector_store import Record, SimilarityMetric, VectorStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestError:
    """A non-fatal failure recorded during ingestion."""

    source: str
    """URL of the document (or source) that failed."""

    stage: Literal["scrape", "embed", "insert"]
    """Pipeline step that failed."""

    message: str

    sequence_index: Optional[int] = None
    """Chunk position for embed/insert failures."""


@dataclass
class IngestReport:
    """Summary of an ingestion run."""

    documents_processed: int = 0
    chunks_created: int = 0
    records_inserted: int = 0
    errors: list[IngestError] = field(default_factory=list)

    def merge(self, other: "IngestReport") -> None:
        self.documents_processed += other.documents_processed
        self.chunks_created += other.chunks_created
        self.records_inserted += other.records_inserted
        self.errors.extend(other.errors)


class Ingestor:
    """
    Chunk, embed and store documents in a single collection.

    Example:
        >>> ingestor = Ingestor(embedder, store)
        >>> report = await ingestor.ingest(documents)
        >>> report.records_inserted
        42
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        collection_name: Optional[str] = None,
        dimension: Optional[int] = None,
        metric: SimilarityMetric | str | None = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        """
        Initialize the ingestor.

        Args:
            embedder: Embedding collaborator
            store: Vector store collaborator
            collection_name: Target collection (default from settings)
            dimension: Collection dimension (default: the embedder's)
            metric: Collection metric (default from settings)
            chunk_size: Maximum characters per chunk (default from settings)
            chunk_overlap: Characters shared by neighbours (default from settings)
            max_concurrency: Cap on in-flight embedder/store calls (default from settings)
        """
        self.embedder = embedder
        self.store = store
        self.collection_name = collection_name or settings.collection_name
        self.dimension = dimension or embedder.dimension
        self.metric = SimilarityMetric(metric or settings.similarity_metric)
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        self.max_concurrency = max_concurrency or settings.ingest_concurrency

        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than chunk_size ({self.chunk_size})"
            )

    async def ensure_collection(self) -> None:
        """
        Create the target collection, accepting an identical existing one.

        Raises:
            DimensionMismatch: If the embedder or an existing collection
                disagrees with the configured dimension
            CollectionAlreadyExists: If an existing collection uses another metric
        """
        embedder_dimension = getattr(self.embedder, "dimension", self.dimension)
        if embedder_dimension != self.dimension:
            raise DimensionMismatch(
                self.dimension,
                embedder_dimension,
                f"Embedder produces {embedder_dimension}-d vectors but collection "
                f"{self.collection_name} is configured for {self.dimension}",
            )

        try:
            await self.store.create_collection(self.collection_name, self.dimension, self.metric)
        except CollectionAlreadyExists as e:
            if e.same_config:
                logger.info(f"Collection {self.collection_name} already exists, appending")
                return
            info = self.store.describe(self.collection_name)
            if info.dimension != self.dimension:
                raise DimensionMismatch(
                    info.dimension,
                    self.dimension,
                    f"Collection {self.collection_name} has dimension {info.dimension}, "
                    f"embedder produces {self.dimension}",
                ) from e
            raise

    async def check_dimension(self, text: str) -> NDArray[np.float32] | None:
        """
        Embed one text and check the vector length against the collection.

        Args:
            text: Text to embed, usually the first chunk of the run

        Returns:
            The vector, or None when the embedder failed for this text (the
            chunk is then retried and reported like any other)

        Raises:
            DimensionMismatch: If the embedder returns vectors of another length
        """
        try:
            vector = await self.embedder.aembed(text)
        except EmbeddingFailed as e:
            logger.warning(f"Dimension check skipped, embedder failed: {e}")
            return None

        actual = len(vector)
        if actual != self.dimension:
            raise DimensionMismatch(
                self.dimension,
                actual,
                f"Embedder returned {actual}-d vectors but collection "
                f"{self.collection_name} is configured for {self.dimension}",
            )
        return vector

    async def ingest(self, documents: Iterable[Document]) -> IngestReport:
        """
        Ingest documents into the collection.

        Per-chunk embedding failures and rejected records are collected in
        the report; they do not stop other chunks or documents. A dimension
        mismatch between embedder and collection stops the run before any
        insert.

        Args:
            documents: Documents to ingest

        Returns:
            Counts and collected errors

        Raises:
            DimensionMismatch: If the embedder's vectors do not fit the collection
            CollectionAlreadyExists: If an existing collection uses another metric
        """
        chunked = [
            (document, chunk_document(document, self.chunk_size, self.chunk_overlap))
            for document in documents
        ]
        report = IngestReport()

        embedded: dict[Chunk, NDArray[np.float32]] = {}
        first = next((chunks[0] for _, chunks in chunked if chunks), None)
        if first is not None:
            vector = await self.check_dimension(first.text)
            if vector is not None:
                embedded[first] = vector

        await self.ensure_collection()

        semaphore = asyncio.Semaphore(self.max_concurrency)
        document_reports = await asyncio.gather(
            *(
                self._ingest_document(document, chunks, embedded, semaphore)
                for document, chunks in chunked
            )
        )
        for document_report in document_reports:
            report.merge(document_report)

        logger.info(
            f"Ingested {report.documents_processed} documents: "
            f"{report.chunks_created} chunks, {report.records_inserted} records, "
            f"{len(report.errors)} errors"
        )
        return report

    async def ingest_urls(self, urls: Sequence[str], scraper: Scraper) -> IngestReport:
        """
        Scrape URLs and ingest the resulting documents.

        A URL that fails to scrape adds one error and is skipped.

        Args:
            urls: Source URLs
            scraper: Scraper collaborator

        Returns:
            Counts and collected errors, scrape errors first
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(url: str) -> Document | SourceError:
            async with semaphore:
                try:
                    return await scraper.scrape(url)
                except SourceError as e:
                    logger.warning(f"Skipping {url}: {e.message}")
                    return e

        fetched = await asyncio.gather(*(fetch(url) for url in urls))

        documents = [item for item in fetched if isinstance(item, Document)]
        report = IngestReport(
            errors=[
                IngestError(source=item.url, stage="scrape", message=item.message)
                for item in fetched
                if isinstance(item, SourceError)
            ]
        )
        report.merge(await self.ingest(documents))
        return report

    async def _ingest_document(
        self,
        document: Document,
        chunks: list[Chunk],
        embedded: dict[Chunk, NDArray[np.float32]],
        semaphore: asyncio.Semaphore,
    ) -> IngestReport:
        report = IngestReport(documents_processed=1, chunks_created=len(chunks))
        if not chunks:
            return report

        # gather keeps results aligned with chunks
        vectors = await asyncio.gather(
            *(self._embed_chunk(chunk, embedded, semaphore) for chunk in chunks)
        )

        records: list[Record] = []
        record_chunks: list[Chunk] = []
        for chunk, vector in zip(chunks, vectors):
            if isinstance(vector, EmbeddingFailed):
                report.errors.append(
                    IngestError(
                        source=document.source_url,
                        stage="embed",
                        message=str(vector),
                        sequence_index=chunk.sequence_index,
                    )
                )
                continue
            records.append(Record(vector=vector, text=chunk.text, source=chunk.source_url))
            record_chunks.append(chunk)

        if not records:
            return report

        async with semaphore:
            result = await self.store.insert_many(self.collection_name, records)

        report.records_inserted = result.inserted
        for error in result.errors:
            report.errors.append(
                IngestError(
                    source=document.source_url,
                    stage="insert",
                    message=error.message,
                    sequence_index=record_chunks[error.position].sequence_index,
                )
            )

        logger.info(
            f"{document.source_url}: {len(chunks)} chunks, {result.inserted} records inserted"
        )
        return report

    async def _embed_chunk(
        self,
        chunk: Chunk,
        embedded: dict[Chunk, NDArray[np.float32]],
        semaphore: asyncio.Semaphore,
    ) -> NDArray[np.float32] | EmbeddingFailed:
        if chunk in embedded:
            return embedded[chunk]
        async with semaphore:
            try:
                return await self.embedder.aembed(chunk.text)
            except EmbeddingFailed as e:
                logger.warning(
                    f"Embedding failed for {chunk.source_url} chunk {chunk.sequence_index}: {e}"
                )
                return e
