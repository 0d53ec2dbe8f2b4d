"""
Embedding generation via HuggingFace Inference API.

Uses sentence-transformers models to generate vector embeddings
for document chunks and questions.
"""

import asyncio
import time
from typing import Optional, Protocol

import httpx
import numpy as np
from numpy.typing import NDArray

from minirag.config import settings
from minirag.exceptions import DimensionMismatch, EmbeddingFailed

HF_FEATURE_EXTRACTION_URL = "https://api-inference.huggingface.co/pipeline/feature-extraction"


class Embedder(Protocol):
    """Protocol that all embedding clients must implement."""

    dimension: int

    async def aembed(self, text: str) -> NDArray[np.float32]:
        """Embed a single text into a vector of length ``dimension``."""
        ...


class HuggingFaceEmbedder:
    """
    Generate embeddings using HuggingFace Inference API.

    Batches requests and retries rate-limited (429) calls with exponential
    backoff. Any other failure surfaces as EmbeddingFailed.

    Example:
        >>> embedder = HuggingFaceEmbedder()
        >>> vectors = embedder.embed_texts(["What is a vector store?"])
        >>> vectors.shape
        (1, 384)
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        batch_size: Optional[int] = None,
        dimension: Optional[int] = None,
        normalize: Optional[bool] = None,
        timeout: Optional[float] = None,
        base_url: str = HF_FEATURE_EXTRACTION_URL,
    ) -> None:
        """
        Initialize the embedder.

        Args:
            model: HuggingFace model ID (default from settings)
            api_key: HuggingFace API key (default from settings)
            batch_size: Number of texts per API call (default from settings)
            dimension: Expected vector dimension (default from settings)
            normalize: L2-normalize returned vectors (default from settings)
            timeout: Request timeout in seconds (default from settings)
            base_url: Feature-extraction endpoint prefix
        """
        self.model = model or settings.embedding_model
        self.api_key = api_key or settings.hf_api_key_value
        self.batch_size = batch_size or settings.embedding_batch_size
        self.dimension = dimension or settings.embedding_dimension
        self.normalize = settings.normalize_embeddings if normalize is None else normalize
        self.timeout = timeout or settings.embedding_timeout
        self.base_url = base_url
        self.max_retries = 3
        self.initial_retry_delay = 1.0  # seconds

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.model}"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _empty(self) -> NDArray[np.float32]:
        return np.empty((0, self.dimension), dtype=np.float32)

    def embed_texts(self, texts: list[str]) -> NDArray[np.float32]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of texts to embed

        Returns:
            Array of shape (len(texts), dimension)

        Raises:
            EmbeddingFailed: If the API call fails after retries
            DimensionMismatch: If the model returns vectors of another width
        """
        if not texts:
            return self._empty()

        batches = [
            self._embed_batch_sync(texts[i : i + self.batch_size])
            for i in range(0, len(texts), self.batch_size)
        ]
        return np.vstack(batches)

    def _embed_batch_sync(self, texts: list[str]) -> NDArray[np.float32]:
        payload = {"inputs": texts}
        retry_delay = self.initial_retry_delay

        try:
            with httpx.Client(timeout=self.timeout) as client:
                for attempt in range(self.max_retries):
                    response = client.post(self.url, json=payload, headers=self._headers())

                    # Handle rate limiting with exponential backoff
                    if response.status_code == 429 and attempt < self.max_retries - 1:
                        time.sleep(retry_delay)
                        retry_delay *= 2
                        continue

                    response.raise_for_status()
                    return self._parse(self._decode(response), len(texts))
        except httpx.HTTPError as e:
            raise EmbeddingFailed(f"Embedding request to {self.model} failed: {e}") from e

        raise EmbeddingFailed(f"Embedding request to {self.model} failed after retries")

    async def aembed_texts(self, texts: list[str]) -> NDArray[np.float32]:
        """
        Async version of embed_texts; batches are sent concurrently.

        Args:
            texts: List of texts to embed

        Returns:
            Array of shape (len(texts), dimension), rows in input order
        """
        if not texts:
            return self._empty()

        batches = [
            texts[i : i + self.batch_size]
            for i in range(0, len(texts), self.batch_size)
        ]
        # gather preserves task order, so rows line up with texts
        batch_results = await asyncio.gather(
            *(self._embed_batch_async(batch) for batch in batches)
        )
        return np.vstack(batch_results)

    async def _embed_batch_async(self, texts: list[str]) -> NDArray[np.float32]:
        payload = {"inputs": texts}
        retry_delay = self.initial_retry_delay

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                for attempt in range(self.max_retries):
                    response = await client.post(self.url, json=payload, headers=self._headers())

                    if response.status_code == 429 and attempt < self.max_retries - 1:
                        await asyncio.sleep(retry_delay)
                        retry_delay *= 2
                        continue

                    response.raise_for_status()
                    return self._parse(self._decode(response), len(texts))
        except httpx.HTTPError as e:
            raise EmbeddingFailed(f"Embedding request to {self.model} failed: {e}") from e

        raise EmbeddingFailed(f"Embedding request to {self.model} failed after retries")

    def _decode(self, response: httpx.Response) -> object:
        try:
            return response.json()
        except ValueError as e:
            raise EmbeddingFailed(
                f"Embedding response from {self.model} is not JSON: {response.text[:80]!r}"
            ) from e

    def _parse(self, body: object, expected_rows: int) -> NDArray[np.float32]:
        """
        Convert a response body to a float32 array of shape (expected_rows, dimension).

        Raises:
            EmbeddingFailed: If the body is not a matrix with one row per input
            DimensionMismatch: If the model returns vectors of another width
        """
        try:
            embeddings = np.array(body, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise EmbeddingFailed(f"Malformed embedding response: {e}") from e

        if embeddings.ndim != 2 or embeddings.shape[0] != expected_rows:
            raise EmbeddingFailed(
                f"Expected {expected_rows} embeddings, got array of shape {embeddings.shape}"
            )
        if embeddings.shape[1] != self.dimension:
            raise DimensionMismatch(
                self.dimension,
                embeddings.shape[1],
                f"Model {self.model} returned {embeddings.shape[1]}-d vectors, "
                f"expected {self.dimension}",
            )

        if self.normalize:
            return self._normalize_embeddings(embeddings)
        return embeddings

    def _normalize_embeddings(self, embeddings: NDArray[np.float32]) -> NDArray[np.float32]:
        """
        Normalize embeddings to unit length.

        With unit vectors a dot_product collection ranks by cosine similarity.

        Args:
            embeddings: Array of shape (n, dimension)

        Returns:
            Normalized embeddings of same shape
        """
        norms = np.linalg.norm(embeddings, axis=1, keepdims=True)
        # Avoid division by zero
        norms = np.where(norms == 0, 1, norms)
        return (embeddings / norms).astype(np.float32)

    def embed_query(self, query: str) -> NDArray[np.float32]:
        """
        Generate embedding for a single text.

        Args:
            query: Text to embed

        Returns:
            Array of shape (dimension,)
        """
        return self.embed_texts([query])[0]

    async def aembed_query(self, query: str) -> NDArray[np.float32]:
        """Async version of embed_query."""
        result = await self.aembed_texts([query])
        return result[0]

    aembed = aembed_query
