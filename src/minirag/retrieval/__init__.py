"""
Document retrieval components for the RAG pipeline.

Components:
    - chunker: Split documents into bounded, overlapping chunks
    - embeddings: Generate vector embeddings via HuggingFace API
    - vector_store: Collection-based FAISS vector store
    - scraper: Fetch source URLs and extract text
    - ingestor: Chunk, embed and store documents concurrently
    - retriever: Embed a question and fetch the nearest passages
"""

from minirag.retrieval.chunker import BoundaryTextSplitter, Chunk, Document, chunk_document, split
from minirag.retrieval.embeddings import Embedder, HuggingFaceEmbedder
from minirag.retrieval.ingestor import IngestError, Ingestor, IngestReport
from minirag.retrieval.retriever import Retriever
from minirag.retrieval.scraper import Scraper, WebScraper
from minirag.retrieval.vector_store import (
    FAISSVectorStore,
    Record,
    SearchResult,
    SimilarityMetric,
    VectorStore,
)

__all__ = [
    "BoundaryTextSplitter",
    "Chunk",
    "Document",
    "chunk_document",
    "split",
    "Embedder",
    "HuggingFaceEmbedder",
    "IngestError",
    "Ingestor",
    "IngestReport",
    "Retriever",
    "Scraper",
    "WebScraper",
    "FAISSVectorStore",
    "Record",
    "SearchResult",
    "SimilarityMetric",
    "VectorStore",
]
