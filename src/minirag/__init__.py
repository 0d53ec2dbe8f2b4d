"""
minirag: a minimal retrieval-augmented generation pipeline

Ingests web documents into a vector store and answers natural-language
questions by retrieving the most relevant passages and grounding an LLM's
answer on them.

Key Components:
    - retrieval: Chunking, embeddings, vector store, scraping, ingestion, retrieval
    - generation: Grounding prompt assembly and answer generation
    - llm: LLM clients (OpenAI-compatible endpoint, HuggingFace Inference)
    - pipeline: Explicit collaborator wiring (run_ingestion, ask_question)
    - api: FastAPI REST endpoints
    - cli: Typer command-line interface

Example:
    >>> from minirag.pipeline import Pipeline
    >>> pipeline = Pipeline.from_settings()
    >>> await pipeline.run_ingestion(["https://example.com/article"])
    >>> print(await pipeline.ask_question("What is the article about?"))
"""

__version__ = "0.1.0"

from minirag.config import settings

__all__ = [
    "__version__",
    "settings",
]
