"""
Vector store contract and a FAISS-backed implementation.

A store holds named collections, each configured once with a vector
dimension and a similarity metric. Collections are append-only: records
are inserted in batches and queried for their top-k nearest neighbours.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, Sequence

import faiss
import numpy as np
from numpy.typing import NDArray

from minirag.exceptions import CollectionAlreadyExists, CollectionNotFound, DimensionMismatch

logger = logging.getLogger(__name__)

COLLECTION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class SimilarityMetric(str, Enum):
    """Scoring function used to rank stored vectors against a query."""

    DOT_PRODUCT = "dot_product"
    COSINE = "cosine"
    EUCLIDEAN = "euclidean"


@dataclass(frozen=True)
class Record:
    """A stored unit: one embedded chunk."""

    vector: Sequence[float] | NDArray[np.float32]
    text: str
    source: str


@dataclass(frozen=True)
class SearchResult:
    """A record returned by a query, with its similarity score."""

    text: str
    source: str
    score: float


@dataclass(frozen=True)
class RecordError:
    """A record rejected by insert_many."""

    position: int
    """Index of the record in the submitted batch."""

    message: str


@dataclass
class InsertResult:
    """Outcome of an insert_many call."""

    inserted: int = 0
    errors: list[RecordError] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionInfo:
    """Configuration and size of a collection."""

    name: str
    dimension: int
    metric: SimilarityMetric
    size: int


class VectorStore(Protocol):
    """Operations the ingestion and retrieval paths need from a vector store."""

    async def create_collection(
        self, name: str, dimension: int, metric: SimilarityMetric | str
    ) -> None:
        ...

    async def insert_many(self, name: str, records: Sequence[Record]) -> InsertResult:
        ...

    async def query(
        self, name: str, vector: Sequence[float] | NDArray[np.float32], k: int
    ) -> list[SearchResult]:
        ...

    def describe(self, name: str) -> CollectionInfo:
        ...


class _Collection:
    """A single FAISS index plus the text/source of every stored vector."""

    def __init__(self, name: str, dimension: int, metric: SimilarityMetric) -> None:
        self.name = name
        self.dimension = dimension
        self.metric = metric
        if metric is SimilarityMetric.EUCLIDEAN:
            self.index: faiss.Index = faiss.IndexFlatL2(dimension)
        else:
            self.index = faiss.IndexFlatIP(dimension)
        self.texts: list[str] = []
        self.sources: list[str] = []

    @property
    def size(self) -> int:
        return int(self.index.ntotal)

    def prepare(self, vectors: NDArray[np.float32]) -> NDArray[np.float32]:
        """Apply metric-specific preprocessing and make the array FAISS-ready."""
        if self.metric is SimilarityMetric.COSINE:
            norms = np.linalg.norm(vectors, axis=1, keepdims=True)
            norms = np.where(norms == 0, 1, norms)
            vectors = vectors / norms
        return np.ascontiguousarray(vectors, dtype=np.float32)

    def to_scores(self, raw: NDArray[np.float32]) -> NDArray[np.float32]:
        """Convert FAISS output to similarity scores where larger is better."""
        if self.metric is SimilarityMetric.EUCLIDEAN:
            # IndexFlatL2 returns squared distances
            return 1.0 / (1.0 + raw)
        return raw


def _as_vector(vector: Sequence[float] | NDArray[np.float32]) -> NDArray[np.float32]:
    return np.asarray(vector, dtype=np.float32)


class FAISSVectorStore:
    """
    In-process vector store with one exact FAISS index per collection.

    Uses IndexFlatIP for dot_product and cosine (vectors normalized for
    cosine) and IndexFlatL2 for euclidean. Search is exhaustive, which lets
    ties be broken by insertion order.

    Example:
        >>> store = FAISSVectorStore()
        >>> await store.create_collection("docs", 384, "dot_product")
        >>> await store.insert_many("docs", records)
        >>> results = await store.query("docs", query_vector, k=5)
        >>> store.save("data/store")
    """

    def __init__(self) -> None:
        self._collections: dict[str, _Collection] = {}

    # ------------------------------------------------------------------
    # Collection lifecycle
    # ------------------------------------------------------------------
    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def list_collections(self) -> list[str]:
        return sorted(self._collections)

    def describe(self, name: str) -> CollectionInfo:
        """
        Get configuration and size of a collection.

        Raises:
            CollectionNotFound: If the collection does not exist
        """
        collection = self._get(name)
        return CollectionInfo(
            name=collection.name,
            dimension=collection.dimension,
            metric=collection.metric,
            size=collection.size,
        )

    async def create_collection(
        self, name: str, dimension: int, metric: SimilarityMetric | str = SimilarityMetric.DOT_PRODUCT
    ) -> None:
        """
        Create an empty collection.

        Args:
            name: Collection name (letters, digits, '_' and '-')
            dimension: Vector dimension every record must have
            metric: Similarity metric for queries

        Raises:
            ValueError: If the name, dimension or metric is invalid
            CollectionAlreadyExists: If the name is taken; ``same_config``
                tells whether the existing collection matches
        """
        metric = SimilarityMetric(metric)
        if not COLLECTION_NAME_PATTERN.match(name):
            raise ValueError(f"Invalid collection name: {name!r}")
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")

        existing = self._collections.get(name)
        if existing is not None:
            same = existing.dimension == dimension and existing.metric is metric
            raise CollectionAlreadyExists(name, same_config=same)

        self._collections[name] = _Collection(name, dimension, metric)
        logger.info(f"Created collection {name} (dimension={dimension}, metric={metric.value})")

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    async def insert_many(self, name: str, records: Sequence[Record]) -> InsertResult:
        """
        Append records to a collection.

        Records with a wrong vector dimension are skipped and reported in
        the result; the others are inserted in order.

        Args:
            name: Collection name
            records: Records to insert

        Returns:
            Count inserted and per-record errors

        Raises:
            CollectionNotFound: If the collection does not exist
            DimensionMismatch: If no record has the collection dimension
        """
        collection = self._get(name)
        result = InsertResult()
        if not records:
            return result

        accepted: list[NDArray[np.float32]] = []
        texts: list[str] = []
        sources: list[str] = []
        actual = None

        for position, record in enumerate(records):
            vector = _as_vector(record.vector)
            if vector.ndim != 1 or vector.shape[0] != collection.dimension:
                actual = vector.shape[-1] if vector.ndim else 0
                result.errors.append(
                    RecordError(
                        position=position,
                        message=str(DimensionMismatch(collection.dimension, actual)),
                    )
                )
                continue
            accepted.append(vector)
            texts.append(record.text)
            sources.append(record.source)

        if not accepted:
            raise DimensionMismatch(
                collection.dimension,
                actual or 0,
                f"No record in batch matches collection {name} dimension {collection.dimension}",
            )

        collection.index.add(collection.prepare(np.vstack(accepted)))
        collection.texts.extend(texts)
        collection.sources.extend(sources)
        result.inserted = len(accepted)

        logger.debug(f"Inserted {result.inserted} records into {name} ({len(result.errors)} rejected)")
        return result

    async def query(
        self, name: str, vector: Sequence[float] | NDArray[np.float32], k: int = 10
    ) -> list[SearchResult]:
        """
        Find the k records most similar to a query vector.

        Args:
            name: Collection name
            vector: Query vector
            k: Maximum number of results

        Returns:
            Up to k results sorted by score descending; equal scores keep
            insertion order

        Raises:
            ValueError: If k is not positive
            CollectionNotFound: If the collection does not exist
            DimensionMismatch: If the query vector has the wrong dimension
        """
        if k <= 0:
            raise ValueError(f"k must be positive, got {k}")

        collection = self._get(name)
        query_vector = _as_vector(vector)
        if query_vector.ndim != 1 or query_vector.shape[0] != collection.dimension:
            raise DimensionMismatch(collection.dimension, query_vector.shape[-1] if query_vector.ndim else 0)

        if collection.size == 0:
            return []

        # Score every record so ties can be ordered by insertion position
        raw, ids = collection.index.search(
            collection.prepare(query_vector.reshape(1, -1)), collection.size
        )
        scores = collection.to_scores(raw[0])
        ids = ids[0]
        order = np.lexsort((ids, -scores))[:k]

        return [
            SearchResult(
                text=collection.texts[ids[i]],
                source=collection.sources[ids[i]],
                score=float(scores[i]),
            )
            for i in order
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def save(self, directory: str | Path) -> None:
        """
        Save every collection to a directory.

        Writes ``<name>.index`` (FAISS) and ``<name>.json`` (configuration
        and record text/source) per collection.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        for collection in self._collections.values():
            faiss.write_index(collection.index, str(directory / f"{collection.name}.index"))

            metadata = {
                "name": collection.name,
                "dimension": collection.dimension,
                "metric": collection.metric.value,
                "records": [
                    {"text": text, "source": source}
                    for text, source in zip(collection.texts, collection.sources)
                ],
            }
            with (directory / f"{collection.name}.json").open("w", encoding="utf-8") as f:
                json.dump(metadata, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved {len(self._collections)} collections to {directory}")

    def load(self, directory: str | Path) -> None:
        """
        Load every collection found in a directory, replacing same-named ones.

        Raises:
            FileNotFoundError: If the directory or an index file is missing
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Store directory not found: {directory}")

        for metadata_file in sorted(directory.glob("*.json")):
            with metadata_file.open(encoding="utf-8") as f:
                metadata = json.load(f)

            index_file = metadata_file.with_suffix(".index")
            if not index_file.exists():
                raise FileNotFoundError(f"Index file not found: {index_file}")

            collection = _Collection(
                metadata["name"], int(metadata["dimension"]), SimilarityMetric(metadata["metric"])
            )
            collection.index = faiss.read_index(str(index_file))
            collection.texts = [r["text"] for r in metadata["records"]]
            collection.sources = [r["source"] for r in metadata["records"]]
            self._collections[collection.name] = collection

        logger.info(f"Loaded {len(self._collections)} collections from {directory}")

    @classmethod
    def from_disk(cls, directory: str | Path) -> "FAISSVectorStore":
        """Create a store from a directory written by save()."""
        store = cls()
        store.load(directory)
        return store

    def _get(self, name: str) -> _Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise CollectionNotFound(name) from None
