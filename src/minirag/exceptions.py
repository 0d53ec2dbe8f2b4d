"""
Exception taxonomy for the RAG pipeline.

Ingestion collects SourceError, EmbeddingFailed and per-record
DimensionMismatch failures into its report. Question answering lets
EmbeddingFailed, CollectionNotFound and GenerationFailed propagate.
"""


class RAGError(Exception):
    """Base exception for all pipeline errors."""
    pass


class SourceError(RAGError):
    """
    A source document could not be fetched or parsed.

    Non-fatal to an ingestion run: the URL is skipped and reported.
    """

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


IngestSourceError = SourceError


class EmbeddingFailed(RAGError):
    """The embedding collaborator failed for a chunk or a question."""
    pass


class DimensionMismatch(RAGError):
    """
    A vector's length does not match the collection dimension.

    Usually a configuration bug: the embedder in use produces vectors of
    a different size than the collection was created with.
    """

    def __init__(self, expected: int, actual: int, message: str | None = None):
        super().__init__(
            message or f"Expected vector dimension {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class CollectionNotFound(RAGError):
    """The named collection does not exist in the vector store."""

    def __init__(self, name: str):
        super().__init__(f"Collection not found: {name}")
        self.name = name


class CollectionAlreadyExists(RAGError):
    """
    The collection name is taken.

    ``same_config`` is True when the existing collection has the requested
    dimension and metric, in which case callers may treat the create as done.
    """

    def __init__(self, name: str, same_config: bool):
        super().__init__(f"Collection already exists: {name}")
        self.name = name
        self.same_config = same_config


class GenerationFailed(RAGError):
    """The generation collaborator failed to produce an answer."""
    pass
