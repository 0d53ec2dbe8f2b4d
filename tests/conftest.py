"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - Deterministic in-process embedders, scrapers and LLMs
    - Sample documents about distinct topics
    - A fresh FAISS vector store
"""

import asyncio
import hashlib
from typing import Callable, Optional
from unittest.mock import patch

import numpy as np
import pytest

from minirag.exceptions import EmbeddingFailed, SourceError
from minirag.retrieval.chunker import Document
from minirag.retrieval.vector_store import FAISSVectorStore


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "HF_API_KEY": "test-api-key",
            "EMBEDDING_MODEL": "sentence-transformers/all-MiniLM-L6-v2",
            "EMBEDDING_DIMENSION": "4",
            "CHUNK_SIZE": "50",
            "CHUNK_OVERLAP": "10",
            "COLLECTION_NAME": "test_docs",
            "SIMILARITY_METRIC": "dot_product",
            "INGEST_CONCURRENCY": "4",
            "RETRIEVAL_TOP_K": "3",
        },
    ):
        from minirag.config import Settings
        yield Settings()


# =============================================================================
# Collaborator Fakes
# =============================================================================

class KeywordEmbedder:
    """
    Deterministic embedder with one dimension per keyword.

    Each component counts occurrences of its keyword, so texts about
    different topics land on different axes.
    """

    def __init__(
        self,
        keywords: tuple[str, ...] = ("alpha", "beta", "gamma", "delta"),
        fail_on: tuple[str, ...] = (),
        delay: Optional[Callable[[str], float]] = None,
    ) -> None:
        self.keywords = keywords
        self.dimension = len(keywords)
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def aembed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay(text) if self.delay else 0)
            if any(marker in text for marker in self.fail_on):
                raise EmbeddingFailed(f"refused to embed {text[:20]!r}")
            lowered = text.lower()
            return np.array([lowered.count(k) for k in self.keywords], dtype=np.float32)
        finally:
            self.in_flight -= 1


class HashEmbedder:
    """Unit-length pseudo-random vectors seeded by the text content."""

    def __init__(self, dimension: int = 16) -> None:
        self.dimension = dimension

    def vector(self, text: str) -> np.ndarray:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        v = rng.standard_normal(self.dimension).astype(np.float32)
        return v / np.linalg.norm(v)

    async def aembed(self, text: str) -> np.ndarray:
        return self.vector(text)


class DictScraper:
    """Serves documents from a dict; unknown URLs fail like a 404."""

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.requested: list[str] = []

    async def scrape(self, url: str) -> Document:
        self.requested.append(url)
        if url not in self.pages:
            raise SourceError(url, "fetch failed: 404 Not Found")
        return Document(source_url=url, raw_text=self.pages[url])


class FakeLLM:
    """Records prompts and returns a fixed answer (or raises)."""

    def __init__(self, answer: str = "It is about alpha.", error: Optional[Exception] = None) -> None:
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def hash_embedder() -> HashEmbedder:
    return HashEmbedder()


@pytest.fixture
def store() -> FAISSVectorStore:
    return FAISSVectorStore()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def topic_a_text() -> str:
    return (
        "Alpha particles are helium nuclei. Alpha decay emits an alpha particle.\n\n"
        "Alpha radiation is stopped by paper. Alpha sources include radon."
    )


@pytest.fixture
def topic_b_text() -> str:
    return (
        "Beta particles are fast electrons. Beta decay emits a beta particle.\n\n"
        "Beta radiation is stopped by aluminium. Beta sources include tritium."
    )


@pytest.fixture
def topic_documents(topic_a_text, topic_b_text) -> list[Document]:
    return [
        Document(source_url="https://example.test/alpha", raw_text=topic_a_text),
        Document(source_url="https://example.test/beta", raw_text=topic_b_text),
    ]


@pytest.fixture
def sample_html() -> str:
    return """<html>
<head><title>Vector stores</title><style>body { color: red; }</style></head>
<body>
<nav>Home | About</nav>
<h1>Vector stores</h1>
<p>A vector store keeps embeddings.</p>
<p>Queries return the nearest neighbours.</p>
<script>console.log("tracking");</script>
</body>
</html>"""
