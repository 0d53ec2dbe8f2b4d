"""
Retriever: embeds a question and fetches the nearest stored passages.
"""

import logging
from typing import Optional

from minirag.config import settings
from minirag.retrieval.embeddings import Embedder
from minirag.retrieval.vector_store import SearchResult, VectorStore

logger = logging.getLogger(__name__)


class Retriever:
    """
    Top-k passage retrieval over one collection.

    Results come back exactly as the store ranks them: descending score,
    at most k, no deduplication.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        collection_name: Optional[str] = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.collection_name = collection_name or settings.collection_name

    async def retrieve(self, question: str, k: int = 10) -> list[SearchResult]:
        """
        Retrieve the passages most similar to a question.

        Args:
            question: Natural-language question
            k: Maximum number of passages

        Returns:
            Passages sorted by descending similarity

        Raises:
            ValueError: If the question is empty or k is not positive
            EmbeddingFailed: If the question cannot be embedded
            CollectionNotFound: If nothing has been ingested yet
            DimensionMismatch: If the embedder and collection disagree
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        query_vector = await self.embedder.aembed(question)
        results = await self.store.query(self.collection_name, query_vector, k)

        if results:
            logger.debug(f"Retrieved {len(results)} passages (top score {results[0].score:.3f})")
        else:
            logger.debug(f"No passages in collection {self.collection_name}")
        return results
